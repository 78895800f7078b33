from __future__ import annotations

from datetime import date
from typing import Optional, Union

from ..core.exceptions import ValidationError
from .datetime_utils import TimeOfDay


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_time_of_day(value: str, field_name: str) -> str:
    """Validate a ``HH:MM`` value and return it normalized (``9:5`` -> ``09:05``)."""

    try:
        return str(TimeOfDay.parse(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be a time in HH:MM format", code="INVALID_TIME")


def optional_time_of_day(value: Optional[str], field_name: str) -> Optional[str]:
    if value is None or not str(value).strip():
        return None
    return require_time_of_day(value, field_name)


def require_date(value: Union[str, date, None], field_name: str) -> date:
    """Accept a ``date`` or an ISO ``YYYY-MM-DD`` string."""

    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value or "").strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be a date in YYYY-MM-DD format", code="INVALID_DATE")


def optional_date(value: Union[str, date, None], field_name: str) -> Optional[date]:
    if value is None or not str(value).strip():
        return None
    return require_date(value, field_name)


def optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None
