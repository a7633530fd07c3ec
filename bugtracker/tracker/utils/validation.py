# -*- coding: utf-8 -*-
from typing import Iterable, List

from django.core.exceptions import ValidationError


def to_id(value, label: str = "id") -> int:
    """Coerce a positive integer id or raise bad-input"""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {label}: {value}")
    try:
        result = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"Invalid {label}: {value}")
    if isinstance(value, float) and result != value:
        raise ValidationError(f"Invalid {label}: {value}")
    if result <= 0:
        raise ValidationError(f"Invalid {label}: {value}")
    return result


def unique_ids(values: Iterable, label: str = "user id") -> List[int]:
    """Validate and de-duplicate ids, keeping first-seen order; falsy entries are dropped"""
    seen = []
    for value in values or []:
        if value in (None, ""):
            continue
        uid = to_id(value, label)
        if uid not in seen:
            seen.append(uid)
    return seen


def require_text(value, message: str) -> str:
    """Trimmed non-empty string"""
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValidationError(message)
    return text
