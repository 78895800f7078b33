from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import Roster, RosterSlot


class RosterRepository(Protocol):
    def get_by_id(self, roster_id: str) -> Optional[Roster]:
        raise NotImplementedError

    def find_for_shift(self, *, store_id: str, roster_date: date, shift_type: Optional[str]) -> Optional[Roster]:
        raise NotImplementedError

    def list_for_store(
        self, *, store_id: str, roster_date: Optional[date] = None, shift_type: Optional[str] = None
    ) -> Sequence[Roster]:
        """Newest date first."""

        raise NotImplementedError

    def create(self, roster: Roster) -> str:
        raise NotImplementedError

    def touch(self, roster_id: str, *, updated_by: str) -> None:
        raise NotImplementedError

    def mark_published(self, roster_id: str, *, published_at: datetime, published_by: str) -> bool:
        """Conditional write: only applies while the roster is still a draft."""

        raise NotImplementedError

    def list_ids_touched_by(self, *, store_id: str, user_ids: Sequence[str]) -> Sequence[str]:
        """Ids of rosters in the store created or last updated by any of ``user_ids``."""

        raise NotImplementedError

    def delete_many(self, roster_ids: Iterable[str]) -> int:
        raise NotImplementedError


class RosterSlotRepository(Protocol):
    def list_for_roster(self, roster_id: str) -> Sequence[RosterSlot]:
        raise NotImplementedError

    def find_for_user(self, *, roster_id: str, user_id: str, slot_id: Optional[str] = None) -> Sequence[RosterSlot]:
        """Slots of ``roster_id`` planned for ``user_id``, ordered by start time."""

        raise NotImplementedError

    def get(self, *, roster_id: str, slot_id: str) -> Optional[RosterSlot]:
        raise NotImplementedError

    def insert_many(self, slots: Sequence[RosterSlot]) -> int:
        raise NotImplementedError

    def mark_checked_in(
        self,
        *,
        slot_id: str,
        actual_start_time: str,
        attendance_status: AttendanceStatus,
        checked_in_at: datetime,
        checked_in_by: str,
        notes: Optional[str] = None,
    ) -> bool:
        """Conditional write: only applies while ``checked_in_at`` is still empty.

        Also sets ``actual_user_id`` to ``checked_in_by``. Returns False when another
        check-in got there first.
        """

        raise NotImplementedError

    def mark_checked_out(
        self,
        *,
        slot_id: str,
        actual_end_time: str,
        checked_out_at: datetime,
        checked_out_by: str,
        notes: Optional[str] = None,
    ) -> bool:
        """Conditional write: only applies while ``checked_out_at`` is still empty."""

        raise NotImplementedError

    def save_actuals(self, slot: RosterSlot, *, expected: RosterSlot) -> bool:
        """Persist every actual-* field, status and check timestamps of ``slot``.

        Conditional write: only applies while the stored check-in and check-out
        timestamps still equal those of ``expected``. Returns False otherwise.
        """

        raise NotImplementedError

    def delete_for_rosters(self, roster_ids: Iterable[str]) -> int:
        raise NotImplementedError

    def delete_for_users(self, user_ids: Iterable[str]) -> int:
        raise NotImplementedError

    def delete_for_actual_users(self, user_ids: Iterable[str]) -> int:
        raise NotImplementedError
