from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.constants import TEST_EMPLOYEE_PREFIX
from ..core.enums import ExperienceLevel, PPType


@dataclass(frozen=True)
class User:
    """Domain entity: a staff member.

    Note: plain data object (no DB access). ``user_id`` equals the id of the
    user's auth identity. ``role_name`` is joined from ``roles``.
    """

    user_id: str
    employee_id: str
    first_name: str
    last_name: str
    store_id: str
    role_id: Optional[str]
    role_name: Optional[str] = None
    experience_level: Optional[ExperienceLevel] = None
    pp_type: Optional[PPType] = None
    week_offs_count: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_test_user(self) -> bool:
        return self.employee_id.startswith(TEST_EMPLOYEE_PREFIX)


@dataclass(frozen=True)
class AuthIdentity:
    """Login identity backing a user (email + werkzeug password hash)."""

    identity_id: str
    email: str
    password_hash: str
