# -*- coding: utf-8 -*-
from typing import Tuple

from django.conf import settings
from rest_framework import serializers
from rest_framework.pagination import PageNumberPagination


class DefaultPagination(PageNumberPagination):
    page_size = 20
    page_query_param = "page"
    page_size_query_param = "page_size"
    max_page_size = 100


class IssuePagination(DefaultPagination):
    page_size = 50
    max_page_size = 200


class SkipLimitQuerySerializer(serializers.Serializer):
    skip = serializers.IntegerField(required=False, default=0)
    limit = serializers.IntegerField(required=False)


def skip_limit(query_params, *, default: int, maximum: int) -> Tuple[int, int]:
    """
    Read ``skip``/``limit`` from the query string.

    Negative skip becomes 0; limit falls back to ``default`` and is capped
    at ``maximum``. Non-integers are rejected as bad input.
    """
    ser = SkipLimitQuerySerializer(data=query_params)
    ser.is_valid(raise_exception=True)
    skip = max(ser.validated_data.get("skip") or 0, 0)
    limit = ser.validated_data.get("limit")
    if limit is None or limit <= 0:
        limit = default
    return skip, min(limit, maximum)


def comment_page(query_params) -> Tuple[int, int]:
    return skip_limit(
        query_params,
        default=getattr(settings, "TRACKER_COMMENT_PAGE_DEFAULT", 20),
        maximum=getattr(settings, "TRACKER_COMMENT_PAGE_MAX", 100),
    )


def reply_page(query_params) -> Tuple[int, int]:
    return skip_limit(
        query_params,
        default=getattr(settings, "TRACKER_REPLY_PAGE_DEFAULT", 50),
        maximum=getattr(settings, "TRACKER_REPLY_PAGE_MAX", 200),
    )
