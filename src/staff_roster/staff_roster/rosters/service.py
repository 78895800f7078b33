from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence, Union

from ..audit.service import AuditLogger
from ..common.datetime_utils import now_local
from ..common.validators import optional_date, optional_text, require_date, require_time_of_day
from ..core.enums import AuditAction, EntityType, Permission, RosterStatus
from ..core.exceptions import RosterNotFound, RosterPublished, ValidationError
from ..roles.permissions import PermissionService
from ..users.model import User
from .model import Roster, RosterSlot
from .repository import RosterRepository, RosterSlotRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotPlan:
    """One planned assignment submitted with a roster. ``user_id`` None = vacant."""

    start_time: str
    end_time: str
    user_id: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SlotPlan":
        if not isinstance(data, Mapping):
            raise ValidationError("Each slot must be a JSON object")
        return cls(
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            user_id=data.get("userId"),
            notes=data.get("notes"),
        )


def coverage_of(slots: Sequence[RosterSlot]) -> dict[str, int]:
    total = len(slots)
    filled = sum(1 for s in slots if s.user_id)
    return {
        "totalSlots": total,
        "filledSlots": filled,
        "vacantSlots": total - filled,
        "coveragePercentage": round(filled / total * 100) if total else 0,
    }


def roster_to_dict(roster: Roster, slots: Sequence[RosterSlot]) -> dict[str, Any]:
    return {
        "rosterId": roster.roster_id,
        "storeId": roster.store_id,
        "date": roster.date.isoformat(),
        "shiftId": roster.shift_id,
        "shiftType": roster.shift_type,
        "status": roster.status.value,
        "publishedAt": roster.published_at.isoformat() if roster.published_at else None,
        "publishedBy": roster.published_by,
        "createdBy": roster.created_by,
        "updatedBy": roster.updated_by,
        "slots": [
            {
                "slotId": s.slot_id,
                "userId": s.user_id,
                "startTime": s.start_time,
                "endTime": s.end_time,
                "attendanceStatus": s.attendance_status.value,
                "notes": s.notes,
            }
            for s in slots
        ],
        "coverage": coverage_of(slots),
    }


def get_store_roster(rosters: RosterRepository, actor: User, roster_id: str) -> Roster:
    """Load a roster of the actor's own store; other stores' rosters look missing."""

    roster = rosters.get_by_id(roster_id)
    if not roster or roster.store_id != actor.store_id:
        raise RosterNotFound("Roster not found")
    return roster


class RosterService:
    def __init__(
        self,
        rosters: RosterRepository,
        slots: RosterSlotRepository,
        audit: AuditLogger,
        permissions: PermissionService | None = None,
    ):
        self._rosters = rosters
        self._slots = slots
        self._audit = audit
        self._permissions = permissions or PermissionService()

    def list_rosters(
        self,
        actor: User,
        *,
        roster_date: Union[str, date, None] = None,
        shift_type: Optional[str] = None,
    ) -> list[tuple[Roster, list[RosterSlot]]]:
        self._permissions.require(actor, Permission.VIEW_ROSTER)
        rosters = self._rosters.list_for_store(
            store_id=actor.store_id,
            roster_date=optional_date(roster_date, "date"),
            shift_type=optional_text(shift_type),
        )
        return [(r, list(self._slots.list_for_roster(r.roster_id))) for r in rosters]

    def create_roster(
        self,
        actor: User,
        *,
        roster_date: Union[str, date, None],
        shift_type: Optional[str],
        shift_id: Optional[str] = None,
        slots: Sequence[SlotPlan] = (),
    ) -> tuple[Roster, list[RosterSlot]]:
        """Create the draft roster for (store, date, shift type) with its slots.

        Posting again for the same shift replaces the slots of the draft. A
        published roster is never replaced.
        """

        self._permissions.require(actor, Permission.CREATE_ROSTER)
        on_date = require_date(roster_date, "date")
        shift_type = optional_text(shift_type)

        planned: list[tuple[str, str, Optional[str], Optional[str]]] = []
        for i, plan in enumerate(slots):
            planned.append(
                (
                    require_time_of_day(plan.start_time, f"slots[{i}].startTime"),
                    require_time_of_day(plan.end_time, f"slots[{i}].endTime"),
                    optional_text(plan.user_id),
                    optional_text(plan.notes),
                )
            )

        existing = self._rosters.find_for_shift(store_id=actor.store_id, roster_date=on_date, shift_type=shift_type)
        if existing and existing.is_published:
            raise RosterPublished("A published roster already exists for this shift")

        if existing:
            roster = replace(existing, updated_by=actor.user_id)
            removed = self._slots.delete_for_rosters([roster.roster_id])
            self._rosters.touch(roster.roster_id, updated_by=actor.user_id)
            logger.info("Roster %s redrafted by %s (%s slots replaced)", roster.roster_id, actor.user_id, removed)
        else:
            roster = Roster(
                roster_id=str(uuid.uuid4()),
                store_id=actor.store_id,
                date=on_date,
                shift_id=optional_text(shift_id),
                shift_type=shift_type,
                created_by=actor.user_id,
                status=RosterStatus.DRAFT,
            )
            self._rosters.create(roster)
            logger.info("Roster %s created by %s", roster.roster_id, actor.user_id)

        new_slots = [
            RosterSlot(
                slot_id=str(uuid.uuid4()),
                roster_id=roster.roster_id,
                user_id=user_id,
                start_time=start,
                end_time=end,
                notes=notes,
            )
            for start, end, user_id, notes in planned
        ]
        self._slots.insert_many(new_slots)

        self._audit.record(
            actor_id=actor.user_id,
            store_id=actor.store_id,
            action=AuditAction.CREATE_ROSTER,
            entity_type=EntityType.ROSTER,
            entity_id=roster.roster_id,
            entity_name=roster.display_name,
            metadata={"slotCount": len(new_slots), "replaced": existing is not None},
        )
        return roster, list(self._slots.list_for_roster(roster.roster_id))

    def publish_roster(
        self, actor: User, roster_id: str, *, now: Optional[datetime] = None
    ) -> tuple[Roster, list[RosterSlot]]:
        """Publish a draft roster. Publishing an already published roster is a no-op."""

        self._permissions.require(actor, Permission.PUBLISH_ROSTER)
        roster = get_store_roster(self._rosters, actor, roster_id)
        if roster.is_published:
            return roster, list(self._slots.list_for_roster(roster.roster_id))

        now = now or now_local()
        if not self._rosters.mark_published(roster.roster_id, published_at=now, published_by=actor.user_id):
            current = get_store_roster(self._rosters, actor, roster_id)
            return current, list(self._slots.list_for_roster(current.roster_id))

        published = replace(
            roster,
            status=RosterStatus.PUBLISHED,
            published_at=now,
            published_by=actor.user_id,
            updated_by=actor.user_id,
        )
        logger.info("Roster %s published by %s", roster.roster_id, actor.user_id)

        self._audit.record(
            actor_id=actor.user_id,
            store_id=actor.store_id,
            action=AuditAction.PUBLISH_ROSTER,
            entity_type=EntityType.ROSTER,
            entity_id=roster.roster_id,
            entity_name=roster.display_name,
            changes={"status": {"old": roster.status.value, "new": published.status.value}},
        )
        return published, list(self._slots.list_for_roster(roster.roster_id))

    def delete_roster(self, actor: User, roster_id: str) -> int:
        """Delete a roster and its slots (slots first). Returns the number of slots removed."""

        self._permissions.require(actor, Permission.DELETE_ROSTER)
        roster = get_store_roster(self._rosters, actor, roster_id)

        slot_count = self._slots.delete_for_rosters([roster.roster_id])
        self._rosters.delete_many([roster.roster_id])
        logger.info("Roster %s deleted by %s (%s slots)", roster.roster_id, actor.user_id, slot_count)

        self._audit.record(
            actor_id=actor.user_id,
            store_id=actor.store_id,
            action=AuditAction.DELETE_ROSTER,
            entity_type=EntityType.ROSTER,
            entity_id=roster.roster_id,
            entity_name=roster.display_name,
            metadata={"slotsDeleted": slot_count},
        )
        return slot_count
