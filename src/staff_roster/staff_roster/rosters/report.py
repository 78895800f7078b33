from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import Optional

from ..audit.service import AuditLogger
from ..common.datetime_utils import TimeOfDay
from ..core.enums import AttendanceStatus, AuditAction, EntityType, Permission
from ..roles.permissions import PermissionService
from ..users.repository import UserRepository
from ..users.model import User
from .model import Roster, RosterSlot
from .repository import RosterRepository, RosterSlotRepository
from .service import get_store_roster

NOT_RECORDED = "Not Recorded"

CSV_FIELDS = [
    "slot_id",
    "planned_user",
    "actual_user",
    "planned_start",
    "actual_start",
    "start_diff_minutes",
    "planned_end",
    "actual_end",
    "status",
    "substituted",
    "notes",
]


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: dict


def _start_diff(slot: RosterSlot) -> Optional[int]:
    if not slot.actual_start_time:
        return None
    return TimeOfDay.parse(slot.actual_start_time).minutes_after(TimeOfDay.parse(slot.start_time))


def _is_recorded(slot: RosterSlot) -> bool:
    return slot.checked_in_at is not None or slot.attendance_status in (
        AttendanceStatus.ABSENT,
        AttendanceStatus.SUBSTITUTED,
    )


class ActualsReportService:
    """Planned vs. actual attendance for one roster (table rows + summary)."""

    def __init__(
        self,
        rosters: RosterRepository,
        slots: RosterSlotRepository,
        users: UserRepository,
        audit: AuditLogger,
        permissions: PermissionService | None = None,
    ):
        self._rosters = rosters
        self._slots = slots
        self._users = users
        self._audit = audit
        self._permissions = permissions or PermissionService()

    def _name_of(self, user_id: Optional[str], cache: dict[str, str]) -> str:
        if not user_id:
            return "-"
        if user_id not in cache:
            user = self._users.get_by_id(user_id)
            cache[user_id] = user.full_name if user else user_id
        return cache[user_id]

    def _load(self, actor: User, roster_id: str) -> tuple[Roster, list[RosterSlot]]:
        roster = get_store_roster(self._rosters, actor, roster_id)
        return roster, list(self._slots.list_for_roster(roster.roster_id))

    def _build(self, slots: list[RosterSlot]) -> ReportData:
        names: dict[str, str] = {}
        rows: list[dict] = []
        counts = {status: 0 for status in AttendanceStatus}
        recorded = 0
        substituted = 0

        for s in slots:
            is_recorded = _is_recorded(s)
            if is_recorded:
                recorded += 1
                counts[s.attendance_status] += 1
            if s.is_substituted:
                substituted += 1

            diff = _start_diff(s)
            rows.append(
                {
                    "slot_id": s.slot_id,
                    "planned_user": self._name_of(s.user_id, names),
                    "actual_user": self._name_of(s.actual_user_id, names),
                    "planned_start": s.start_time,
                    "actual_start": s.actual_start_time or "-",
                    "start_diff_minutes": "" if diff is None else diff,
                    "planned_end": s.end_time,
                    "actual_end": s.actual_end_time or "-",
                    "status": s.attendance_status.value if is_recorded else NOT_RECORDED,
                    "substituted": "yes" if s.is_substituted else "no",
                    "notes": s.notes or "",
                }
            )

        total = len(slots)
        attended = (
            counts[AttendanceStatus.PRESENT] + counts[AttendanceStatus.LATE] + counts[AttendanceStatus.LEFT_EARLY]
        )
        summary = {
            "total": total,
            "recorded": recorded,
            "present": counts[AttendanceStatus.PRESENT],
            "late": counts[AttendanceStatus.LATE],
            "left_early": counts[AttendanceStatus.LEFT_EARLY],
            "absent": counts[AttendanceStatus.ABSENT],
            "substituted": substituted,
            "attendance_rate": round(attended / total * 100) if total else 0,
        }
        return ReportData(rows=rows, summary=summary)

    def build_actuals_report(self, actor: User, roster_id: str) -> ReportData:
        self._permissions.require(actor, Permission.VIEW_ROSTER)
        _, slots = self._load(actor, roster_id)
        return self._build(slots)

    def export_csv(self, actor: User, roster_id: str) -> tuple[str, bytes]:
        """Returns ``(filename, csv_bytes)``."""

        self._permissions.require(actor, Permission.EXPORT_ROSTER)
        roster, slots = self._load(actor, roster_id)
        data = self._build(slots)

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)
        out.write("\n")
        for key, value in data.summary.items():
            out.write(f"{key},{value}\n")

        self._audit.record(
            actor_id=actor.user_id,
            store_id=actor.store_id,
            action=AuditAction.EXPORT_ROSTER,
            entity_type=EntityType.ROSTER,
            entity_id=roster.roster_id,
            entity_name=roster.display_name,
            metadata={"format": "csv", "rows": len(data.rows)},
        )

        filename = f"roster_actuals_{roster.date.strftime('%Y%m%d')}_{roster.roster_id[:8]}.csv"
        return filename, out.getvalue().encode("utf-8-sig")
