from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..audit.service import AuditLogger, diff_changes
from ..common.datetime_utils import format_hhmm, now_local
from ..common.validators import optional_text, optional_time_of_day, require_non_empty
from ..core.constants import CHECK_OUT_NOTE_PREFIX
from ..core.enums import AttendanceStatus, AuditAction, EntityType, Permission
from ..core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    DomainError,
    NotCheckedIn,
    SlotChanged,
    SlotNotFound,
    ValidationError,
)
from ..roles.permissions import PermissionService
from ..rosters.model import Roster, RosterSlot
from ..rosters.repository import RosterRepository, RosterSlotRepository
from ..rosters.service import get_store_roster
from ..users.model import User
from .evaluator import decide_check_in, decide_check_out
from .factory import AttendanceStrategyFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckInResult:
    slot: RosterSlot
    minutes_late: int

    def to_dict(self) -> dict:
        return {
            "slotId": self.slot.slot_id,
            "actualStartTime": self.slot.actual_start_time,
            "attendanceStatus": self.slot.attendance_status.value,
            "minutesLate": self.minutes_late,
            "checkedInAt": self.slot.checked_in_at.isoformat() if self.slot.checked_in_at else None,
        }


@dataclass(frozen=True)
class CheckOutResult:
    slot: RosterSlot
    minutes_early: int

    def to_dict(self) -> dict:
        return {
            "slotId": self.slot.slot_id,
            "actualEndTime": self.slot.actual_end_time,
            "attendanceStatus": self.slot.attendance_status.value,
            "minutesEarly": self.minutes_early,
            "checkedOutAt": self.slot.checked_out_at.isoformat() if self.slot.checked_out_at else None,
        }


def slot_to_dict(slot: RosterSlot) -> dict[str, Any]:
    return {
        "slotId": slot.slot_id,
        "rosterId": slot.roster_id,
        "userId": slot.user_id,
        "startTime": slot.start_time,
        "endTime": slot.end_time,
        "actualUserId": slot.actual_user_id,
        "actualStartTime": slot.actual_start_time,
        "actualEndTime": slot.actual_end_time,
        "attendanceStatus": slot.attendance_status.value,
        "substitutionReason": slot.substitution_reason,
        "checkedInAt": slot.checked_in_at.isoformat() if slot.checked_in_at else None,
        "checkedOutAt": slot.checked_out_at.isoformat() if slot.checked_out_at else None,
        "checkedInBy": slot.checked_in_by,
        "checkedOutBy": slot.checked_out_by,
        "notes": slot.notes,
    }


@dataclass(frozen=True)
class ActualsUpdate:
    """Manager input for one slot. ``None`` fields are left as stored."""

    slot_id: str
    actual_user_id: Optional[str] = None
    actual_start_time: Optional[str] = None
    actual_end_time: Optional[str] = None
    substitution_reason: Optional[str] = None
    notes: Optional[str] = None
    absent: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, slot_id: Optional[str] = None) -> "ActualsUpdate":
        if not isinstance(data, Mapping):
            raise ValidationError("Each actuals entry must be a JSON object")
        absent = data.get("absent")
        return cls(
            slot_id=require_non_empty(slot_id or data.get("slotId"), "slotId"),
            actual_user_id=data.get("actualUserId"),
            actual_start_time=data.get("actualStartTime"),
            actual_end_time=data.get("actualEndTime"),
            substitution_reason=data.get("substitutionReason"),
            notes=data.get("notes"),
            absent=None if absent is None else bool(absent),
        )


@dataclass(frozen=True)
class BulkActualsResult:
    slots: list[RosterSlot]
    skipped: list[dict[str, str]]

    def to_dict(self) -> dict:
        return {
            "slotsUpdated": len(self.slots),
            "slots": [slot_to_dict(s) for s in self.slots],
            "skipped": self.skipped,
        }


class AttendanceService:
    """Applies check-in / check-out events and manager actuals to roster slots.

    Per slot: NOT_CHECKED_IN -> CHECKED_IN -> CHECKED_OUT, forward only. The
    attendance status is always derived here, never taken from the caller.
    """

    def __init__(
        self,
        rosters: RosterRepository,
        slots: RosterSlotRepository,
        audit: AuditLogger,
        permissions: Optional[PermissionService] = None,
        *,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
    ):
        self._rosters = rosters
        self._slots = slots
        self._audit = audit
        self._permissions = permissions or PermissionService()
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def _get_roster(self, actor: User, roster_id: str) -> Roster:
        return get_store_roster(self._rosters, actor, roster_id)

    def _resolve_own_slot(self, *, roster_id: str, actor: User, slot_id: Optional[str]) -> RosterSlot:
        candidates = self._slots.find_for_user(roster_id=roster_id, user_id=actor.user_id, slot_id=slot_id)
        if not candidates:
            raise SlotNotFound("No slot found for this user in this roster")
        return candidates[0]

    def check_in(
        self,
        actor: User,
        roster_id: str,
        *,
        slot_id: Optional[str] = None,
        actual_start_time: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CheckInResult:
        roster = self._get_roster(actor, roster_id)
        slot = self._resolve_own_slot(roster_id=roster_id, actor=actor, slot_id=slot_id)
        if slot.is_checked_in:
            raise AlreadyCheckedIn("You have already checked in for this shift")

        now = now or now_local()
        actual_start = optional_time_of_day(actual_start_time, "actualStartTime") or format_hhmm(now)
        decision = decide_check_in(slot.start_time, actual_start, factory=self._factory)
        notes = optional_text(notes)

        applied = self._slots.mark_checked_in(
            slot_id=slot.slot_id,
            actual_start_time=actual_start,
            attendance_status=decision.status,
            checked_in_at=now,
            checked_in_by=actor.user_id,
            notes=notes,
        )
        if not applied:
            # Lost the race against a concurrent check-in for the same slot.
            raise AlreadyCheckedIn("You have already checked in for this shift")

        updated = replace(
            slot,
            actual_start_time=actual_start,
            attendance_status=decision.status,
            checked_in_at=now,
            checked_in_by=actor.user_id,
            actual_user_id=actor.user_id,
            notes=notes if notes else slot.notes,
        )

        self._audit.record(
            actor_id=actor.user_id,
            store_id=actor.store_id,
            action=AuditAction.CHECK_IN,
            entity_type=EntityType.ROSTER,
            entity_id=roster.roster_id,
            entity_name=f"Check-in for {roster.display_name}",
            metadata={
                "slotId": slot.slot_id,
                "plannedStartTime": slot.start_time,
                "actualStartTime": actual_start,
                "attendanceStatus": decision.status.value,
                "minutesLate": decision.minutes_late,
            },
        )
        return CheckInResult(slot=updated, minutes_late=decision.minutes_late)

    def check_out(
        self,
        actor: User,
        roster_id: str,
        *,
        slot_id: Optional[str] = None,
        actual_end_time: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CheckOutResult:
        roster = self._get_roster(actor, roster_id)
        slot = self._resolve_own_slot(roster_id=roster_id, actor=actor, slot_id=slot_id)
        if not slot.is_checked_in:
            raise NotCheckedIn("You must check in before checking out")
        if slot.is_checked_out:
            raise AlreadyCheckedOut("You have already checked out for this shift")

        now = now or now_local()
        actual_end = optional_time_of_day(actual_end_time, "actualEndTime") or format_hhmm(now)
        # The status set at check-in stays; only the early departure is reported.
        decision = decide_check_out(slot.end_time, actual_end, slot.attendance_status, factory=self._factory)

        merged_notes = slot.notes
        extra = optional_text(notes)
        if extra:
            entry = f"{CHECK_OUT_NOTE_PREFIX}{extra}"
            merged_notes = f"{slot.notes}\n{entry}" if slot.notes else entry

        applied = self._slots.mark_checked_out(
            slot_id=slot.slot_id,
            actual_end_time=actual_end,
            checked_out_at=now,
            checked_out_by=actor.user_id,
            notes=merged_notes if extra else None,
        )
        if not applied:
            raise AlreadyCheckedOut("You have already checked out for this shift")

        updated = replace(
            slot,
            actual_end_time=actual_end,
            checked_out_at=now,
            checked_out_by=actor.user_id,
            notes=merged_notes,
        )

        self._audit.record(
            actor_id=actor.user_id,
            store_id=actor.store_id,
            action=AuditAction.CHECK_OUT,
            entity_type=EntityType.ROSTER,
            entity_id=roster.roster_id,
            entity_name=f"Check-out for {roster.display_name}",
            metadata={
                "slotId": slot.slot_id,
                "plannedEndTime": slot.end_time,
                "actualEndTime": actual_end,
                "attendanceStatus": updated.attendance_status.value,
                "minutesEarly": decision.minutes_early,
            },
        )
        return CheckOutResult(slot=updated, minutes_early=decision.minutes_early)

    def _derive_status(
        self,
        slot: RosterSlot,
        *,
        absent: Optional[bool],
        actual_user_id: Optional[str],
        actual_start: Optional[str],
        actual_end: Optional[str],
    ) -> AttendanceStatus:
        if absent:
            return AttendanceStatus.ABSENT
        if actual_user_id and slot.user_id and actual_user_id != slot.user_id:
            return AttendanceStatus.SUBSTITUTED
        if not actual_start:
            # An explicit absent=False lifts an earlier absent mark.
            if absent is False and slot.attendance_status == AttendanceStatus.ABSENT:
                return AttendanceStatus.PRESENT
            return slot.attendance_status

        status = decide_check_in(slot.start_time, actual_start, factory=self._factory).status
        if actual_end:
            status = decide_check_out(slot.end_time, actual_end, status, factory=self._factory).status
        return status

    def _apply_actuals(
        self, actor: User, roster_id: str, update: ActualsUpdate, now: datetime
    ) -> tuple[RosterSlot, dict[str, Any]]:
        """Write one slot's actuals. Returns the resulting slot and the changed fields."""

        slot = self._slots.get(roster_id=roster_id, slot_id=update.slot_id)
        if not slot:
            raise SlotNotFound("Slot not found")

        new_start = optional_time_of_day(update.actual_start_time, "actualStartTime")
        new_end = optional_time_of_day(update.actual_end_time, "actualEndTime")
        if update.absent and (new_start or new_end):
            raise ValidationError("An absent slot cannot have actual start or end times")
        if update.absent and (slot.is_checked_in or slot.actual_start_time):
            raise ValidationError("A checked-in slot cannot be marked absent")

        actual_user = optional_text(update.actual_user_id) or slot.actual_user_id
        actual_start = new_start or slot.actual_start_time
        actual_end = new_end or slot.actual_end_time

        checked_in_at, checked_in_by = slot.checked_in_at, slot.checked_in_by
        if new_start and checked_in_at is None:
            checked_in_at, checked_in_by = now, actor.user_id

        checked_out_at, checked_out_by = slot.checked_out_at, slot.checked_out_by
        if new_end and checked_out_at is None:
            if checked_in_at is None:
                raise NotCheckedIn("Record an actual start time before the end time")
            checked_out_at, checked_out_by = now, actor.user_id

        updated = replace(
            slot,
            actual_user_id=actual_user,
            actual_start_time=actual_start,
            actual_end_time=actual_end,
            attendance_status=self._derive_status(
                slot,
                absent=update.absent,
                actual_user_id=actual_user,
                actual_start=actual_start,
                actual_end=actual_end,
            ),
            substitution_reason=optional_text(update.substitution_reason) or slot.substitution_reason,
            notes=optional_text(update.notes) or slot.notes,
            checked_in_at=checked_in_at,
            checked_in_by=checked_in_by,
            checked_out_at=checked_out_at,
            checked_out_by=checked_out_by,
        )

        changes = diff_changes(slot_to_dict(slot), slot_to_dict(updated))
        if not changes:
            return slot, changes

        if not self._slots.save_actuals(updated, expected=slot):
            # A check-in or check-out landed between the read and this write.
            raise SlotChanged("The slot was changed by someone else; reload it and try again")
        logger.info("Actuals recorded on slot=%s by %s: %s", slot.slot_id, actor.user_id, ", ".join(sorted(changes)))
        return updated, changes

    def record_actuals(
        self,
        actor: User,
        roster_id: str,
        slot_id: str,
        *,
        actual_user_id: Optional[str] = None,
        actual_start_time: Optional[str] = None,
        actual_end_time: Optional[str] = None,
        substitution_reason: Optional[str] = None,
        notes: Optional[str] = None,
        absent: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> RosterSlot:
        """Manager correction of what actually happened on a slot.

        Only supplied fields change. Check timestamps are filled when still empty
        and never cleared. ``absent=False`` lifts an absent mark; ``None`` leaves
        the status alone.
        """

        self._permissions.require(actor, Permission.MODIFY_ROSTER)
        roster = self._get_roster(actor, roster_id)
        update = ActualsUpdate(
            slot_id=slot_id,
            actual_user_id=actual_user_id,
            actual_start_time=actual_start_time,
            actual_end_time=actual_end_time,
            substitution_reason=substitution_reason,
            notes=notes,
            absent=absent,
        )
        updated, changes = self._apply_actuals(actor, roster.roster_id, update, now or now_local())
        if not changes:
            return updated

        self._audit.record(
            actor_id=actor.user_id,
            store_id=actor.store_id,
            action=AuditAction.RECORD_ACTUALS,
            entity_type=EntityType.ROSTER,
            entity_id=roster.roster_id,
            entity_name=f"Actuals updated for slot in {roster.display_name}",
            changes=changes,
            metadata={"slotId": slot_id},
        )
        return updated

    def record_actuals_bulk(
        self,
        actor: User,
        roster_id: str,
        updates: Sequence[ActualsUpdate],
        *,
        now: Optional[datetime] = None,
    ) -> BulkActualsResult:
        """Apply several slot corrections in one call.

        Each slot is written on its own: a slot that is missing or rejected is
        reported in ``skipped`` and the rest still apply. One audit entry covers
        the whole batch.
        """

        self._permissions.require(actor, Permission.MODIFY_ROSTER)
        roster = self._get_roster(actor, roster_id)
        if not updates:
            raise ValidationError("actuals must be a non-empty list")

        now = now or now_local()
        written: list[RosterSlot] = []
        skipped: list[dict[str, str]] = []
        for update in updates:
            try:
                slot, changes = self._apply_actuals(actor, roster.roster_id, update, now)
            except DomainError as exc:
                logger.info("Bulk actuals skipped slot=%s: %s (%s)", update.slot_id, exc.code, exc.message)
                skipped.append({"slotId": update.slot_id, "code": exc.code, "message": exc.message})
                continue
            if changes:
                written.append(slot)

        if written:
            self._audit.record(
                actor_id=actor.user_id,
                store_id=actor.store_id,
                action=AuditAction.RECORD_ACTUALS,
                entity_type=EntityType.ROSTER,
                entity_id=roster.roster_id,
                entity_name=f"Bulk actuals update for {roster.display_name}",
                metadata={
                    "slotsUpdated": len(written),
                    "totalRequested": len(updates),
                    "slotIds": [s.slot_id for s in written],
                },
            )
        return BulkActualsResult(slots=written, skipped=skipped)
