from __future__ import annotations

from datetime import timedelta

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} must not be empty")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_positive_ttl(ttl: timedelta, field_name: str = "ttl") -> timedelta:
    if ttl.total_seconds() <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return ttl
