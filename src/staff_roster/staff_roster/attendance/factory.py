from __future__ import annotations

from dataclasses import dataclass

from ..common.datetime_utils import TimeOfDay
from ..core.constants import DEFAULT_EARLY_LEAVE_MINUTES, DEFAULT_LATE_GRACE_MINUTES
from ..core.enums import AttendanceStatus
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.left_early_strategy import LeftEarlyStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules.

    A check-in more than ``grace_minutes`` after the planned start is late; exactly
    ``grace_minutes`` late is still present.
    """

    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES
    early_leave_minutes: int = DEFAULT_EARLY_LEAVE_MINUTES

    def for_checkin(self, *, planned_start: TimeOfDay, actual_start: TimeOfDay) -> AttendanceStrategy:
        if actual_start <= planned_start:
            return PresentStrategy()

        if actual_start.minutes_after(planned_start) > self.grace_minutes:
            return LateStrategy()
        return PresentStrategy()

    def for_checkout(
        self, *, planned_end: TimeOfDay, actual_end: TimeOfDay, current_status: AttendanceStatus
    ) -> AttendanceStrategy:
        early = planned_end.minutes_after(actual_end)
        if early > self.early_leave_minutes and current_status == AttendanceStatus.PRESENT:
            return LeftEarlyStrategy()
        return PresentStrategy()
