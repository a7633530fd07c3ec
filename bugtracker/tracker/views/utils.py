# views/utils.py
"""
Shared drf-spectacular helpers and request plumbing for the tracker APIViews.
"""
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, inline_serializer
from drf_spectacular.types import OpenApiTypes
from rest_framework import serializers

from tracker.selectors.user import resolve_caller

# ---- Reusable error schema
ErrorSerializer = inline_serializer(
    name="Error",
    fields={"detail": serializers.CharField()}
)

# ---- Param helpers

def path_int(name: str, description: str):
    return OpenApiParameter(name, OpenApiTypes.INT, OpenApiParameter.PATH, description=description)

def q_int(name: str, description: str, required: bool = False):
    return OpenApiParameter(name, OpenApiTypes.INT, OpenApiParameter.QUERY, required=required, description=description)

def q_str(name: str, description: str, required: bool = False):
    return OpenApiParameter(name, OpenApiTypes.STR, OpenApiParameter.QUERY, required=required, description=description)

PAGE_PARAMS = [
    q_int("page", "Page number (default 1)"),
    q_int("page_size", "Page size"),
]

SKIP_LIMIT_PARAMS = [
    q_int("skip", "How many items to skip (default 0)"),
    q_int("limit", "Page size, capped server-side"),
]

# ---- Convenience for common responses

def std_errors(*codes: int):
    """Error response mapping you can merge into responses=..."""
    descriptions = {
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        409: "Conflict",
    }
    codes = codes or (400, 401, 403, 404)
    return {
        code: OpenApiResponse(ErrorSerializer, description=descriptions[code])
        for code in codes
    }


def caller(request):
    """Current, active user for this request; fails closed"""
    return resolve_caller(getattr(request.user, "id", None))
