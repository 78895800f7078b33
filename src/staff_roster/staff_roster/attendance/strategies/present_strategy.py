from __future__ import annotations

from ...common.datetime_utils import TimeOfDay
from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision, minutes_early, minutes_late


class PresentStrategy(AttendanceStrategy):
    """On time (or within grace) check-in, normal check-out."""

    def decide_checkin(self, *, planned_start: TimeOfDay, actual_start: TimeOfDay) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.PRESENT,
            minutes_late=minutes_late(planned_start, actual_start),
        )

    def decide_checkout(
        self, *, planned_end: TimeOfDay, actual_end: TimeOfDay, current: AttendanceStatus
    ) -> StatusDecision:
        return StatusDecision(status=current, minutes_early=minutes_early(planned_end, actual_end))
