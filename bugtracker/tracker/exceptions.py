# ============================================
# tracker/exceptions.py
# ============================================
import logging

from django.core.exceptions import (
    ObjectDoesNotExist,
    PermissionDenied,
    ValidationError as DjangoValidationError,
)
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class Conflict(Exception):
    """A unique key is already taken (duplicate submission, not malformed input)"""


class IdentityDenied(PermissionDenied):
    """Caller id is malformed, unknown or belongs to a deactivated account"""


class AccessContextMissing(Exception):
    """
    An access decision was asked for without a resolved user or a loaded
    resource. This is a server-side wiring defect, never a client error.
    """


def _validation_detail(exc: DjangoValidationError):
    if hasattr(exc, 'error_dict'):
        return exc.message_dict
    return {'detail': exc.messages[0] if len(exc.messages) == 1 else exc.messages}


def tracker_exception_handler(exc, context):
    """Map service-layer exceptions onto DRF responses, then defer to DRF"""
    if isinstance(exc, DjangoValidationError):
        exc = DRFValidationError(detail=_validation_detail(exc))
    elif isinstance(exc, ObjectDoesNotExist):
        exc = NotFound(detail=str(exc) or None)
    elif isinstance(exc, Conflict):
        return Response({'detail': str(exc)}, status=status.HTTP_409_CONFLICT)
    elif isinstance(exc, AccessContextMissing):
        view = context.get('view')
        logger.error("[access] context missing in %s: %s", type(view).__name__, exc)
        return Response(
            {'detail': 'Access context missing.'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return exception_handler(exc, context)
