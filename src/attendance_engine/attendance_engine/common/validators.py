from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required", code=f"{field_name.upper()}_REQUIRED", missing_fields=[field_name])
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value.strip()) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters", missing_fields=[field_name])
    return value.strip()


def has_min_length(value: Optional[str], min_len: int) -> bool:
    return value is not None and len(value.strip()) >= min_len
