# ============================================
# tracker/selectors/user.py
# ============================================
import logging
from typing import Iterable

from tracker.exceptions import IdentityDenied
from tracker.models import User

logger = logging.getLogger(__name__)


def resolve_caller(caller_id) -> User:
    """
    Load the full, current user row for an authenticated caller id.

    Fails closed: a malformed id, a missing row and a deactivated account
    all raise ``IdentityDenied``. The row is re-read on every call so role
    and activation changes apply to the very next request.
    """
    if caller_id is None or isinstance(caller_id, bool):
        raise IdentityDenied("Invalid user token.")
    try:
        user_id = int(caller_id)
    except (TypeError, ValueError):
        raise IdentityDenied("Invalid user token.")
    if user_id <= 0:
        raise IdentityDenied("Invalid user token.")

    user = User.objects.filter(pk=user_id).first()
    if user is None or not user.is_active:
        logger.info("[identity] rejected caller_id=%s", user_id)
        raise IdentityDenied("User not active or not found.")

    return user


def count_existing_users(user_ids: Iterable[int]) -> int:
    """Single batched existence count"""
    ids = set(user_ids)
    if not ids:
        return 0
    return User.objects.filter(pk__in=ids).count()


def all_users_exist(user_ids: Iterable[int]) -> bool:
    ids = set(user_ids)
    return count_existing_users(ids) == len(ids)
