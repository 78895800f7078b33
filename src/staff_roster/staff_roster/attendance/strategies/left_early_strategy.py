from __future__ import annotations

from ...common.datetime_utils import TimeOfDay
from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision, minutes_early, minutes_late


class LeftEarlyStrategy(AttendanceStrategy):
    """Early departure (only applied when the slot was PRESENT)."""

    def decide_checkin(self, *, planned_start: TimeOfDay, actual_start: TimeOfDay) -> StatusDecision:
        """Same as :class:`PresentStrategy`; the factory only picks this strategy for check-out."""

        return StatusDecision(
            status=AttendanceStatus.PRESENT,
            minutes_late=minutes_late(planned_start, actual_start),
        )

    def decide_checkout(
        self, *, planned_end: TimeOfDay, actual_end: TimeOfDay, current: AttendanceStatus
    ) -> StatusDecision:
        early = minutes_early(planned_end, actual_end)
        return StatusDecision(
            status=AttendanceStatus.LEFT_EARLY,
            minutes_early=early,
            note=f"Left {early} minutes early",
        )
