# ============================================
# tracker/access.py
# ============================================
"""
Access decisions over (user, project, resource).

Every predicate here is a pure function of already-loaded values: no
queries, no caching, no exceptions. Callers build a ``ProjectScope`` from
the rows they loaded for the current request and turn a ``Decision`` into
an error with ``ensure``.
"""
import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from django.core.exceptions import PermissionDenied
from django.db import models

from tracker.exceptions import AccessContextMissing
from tracker.models.user import Role

logger = logging.getLogger(__name__)


class Reason(models.TextChoices):
    ADMIN = 'admin', 'Admin'
    LEAD = 'lead', 'Project lead'
    MEMBER = 'member', 'Project member'
    AUTHOR = 'author', 'Comment author'
    ROLE_ALLOWED = 'role_allowed', 'Role allowed'
    ROLE_NOT_ALLOWED = 'role_not_allowed', 'Role not allowed'
    NOT_MEMBER = 'not_member', 'Not a member'
    NOT_LEAD = 'not_lead', 'Not the lead'
    NOT_AUTHOR = 'not_author', 'Not the author'
    INACTIVE = 'inactive', 'Inactive user'
    CONTEXT_MISSING = 'context_missing', 'Context missing'


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str

    def __bool__(self):
        return self.allowed


@dataclass(frozen=True)
class ProjectScope:
    """Snapshot of the project fields access decisions depend on"""
    project_id: int
    lead_id: int
    member_ids: FrozenSet[int]


def allow(reason: str) -> Decision:
    return Decision(True, reason)


def deny(reason: str) -> Decision:
    return Decision(False, reason)


def _precheck(user, *context) -> Optional[Decision]:
    if user is None or any(c is None for c in context):
        return deny(Reason.CONTEXT_MISSING)
    if not getattr(user, 'is_active', False):
        return deny(Reason.INACTIVE)
    return None


def has_global_role(user, allowed_roles: Iterable[str]) -> Decision:
    """Exact match of the caller's single global role against ``allowed_roles``"""
    failed = _precheck(user)
    if failed is not None:
        return failed
    if user.role in set(allowed_roles):
        return allow(Reason.ROLE_ALLOWED)
    return deny(Reason.ROLE_NOT_ALLOWED)


def is_project_member_or_admin(user, scope: ProjectScope) -> Decision:
    failed = _precheck(user, scope)
    if failed is not None:
        return failed
    if user.role == Role.ADMIN:
        return allow(Reason.ADMIN)
    if user.pk == scope.lead_id:
        return allow(Reason.LEAD)
    if user.pk in scope.member_ids:
        return allow(Reason.MEMBER)
    return deny(Reason.NOT_MEMBER)


def is_project_lead_or_admin(user, scope: ProjectScope) -> Decision:
    failed = _precheck(user, scope)
    if failed is not None:
        return failed
    if user.role == Role.ADMIN:
        return allow(Reason.ADMIN)
    if user.pk == scope.lead_id:
        return allow(Reason.LEAD)
    return deny(Reason.NOT_LEAD)


def can_edit_or_moderate_comment(user, scope: ProjectScope, comment) -> Decision:
    failed = _precheck(user, scope, comment)
    if failed is not None:
        return failed
    if user.role == Role.ADMIN:
        return allow(Reason.ADMIN)
    if user.pk == scope.lead_id:
        return allow(Reason.LEAD)
    if user.pk == comment.author_id:
        return allow(Reason.AUTHOR)
    return deny(Reason.NOT_AUTHOR)


def ensure(decision: Decision, message: str = "Access denied.") -> Decision:
    """Raise for a denial; context-missing is a server defect, everything else is forbidden"""
    if decision.allowed:
        return decision
    if decision.reason == Reason.CONTEXT_MISSING:
        raise AccessContextMissing("Auth or resource context missing.")
    logger.warning("[access] denied: reason=%s", decision.reason)
    raise PermissionDenied(message)
