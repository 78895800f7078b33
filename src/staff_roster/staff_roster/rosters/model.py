from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, RosterStatus


@dataclass(frozen=True)
class Roster:
    """Domain entity: one scheduled shift occurrence that owns roster slots."""

    roster_id: str
    store_id: str
    date: date
    shift_id: Optional[str]
    shift_type: Optional[str]
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    status: RosterStatus = RosterStatus.DRAFT
    published_at: Optional[datetime] = None
    published_by: Optional[str] = None

    @property
    def is_published(self) -> bool:
        return self.status == RosterStatus.PUBLISHED

    @property
    def display_name(self) -> str:
        return f"{self.date.strftime('%b %d, %Y')} - {self.shift_type or 'Unknown Shift'}"


@dataclass(frozen=True)
class RosterSlot:
    """Domain entity: one planned staff assignment plus what actually happened.

    ``user_id`` is the planned occupant (None = vacant); ``actual_user_id`` is who
    actually worked. Start/end times are ``HH:MM`` strings.
    """

    slot_id: str
    roster_id: str
    user_id: Optional[str]
    start_time: str
    end_time: str
    actual_user_id: Optional[str] = None
    actual_start_time: Optional[str] = None
    actual_end_time: Optional[str] = None
    attendance_status: AttendanceStatus = AttendanceStatus.PRESENT
    substitution_reason: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    checked_in_by: Optional[str] = None
    checked_out_by: Optional[str] = None
    notes: Optional[str] = None

    @property
    def is_checked_in(self) -> bool:
        return self.checked_in_at is not None

    @property
    def is_checked_out(self) -> bool:
        return self.checked_out_at is not None

    @property
    def is_substituted(self) -> bool:
        return self.actual_user_id is not None and self.actual_user_id != self.user_id
