from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...common.datetime_utils import TimeOfDay
from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    minutes_late: int = 0
    minutes_early: int = 0
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an attendance status."""

    @abstractmethod
    def decide_checkin(self, *, planned_start: TimeOfDay, actual_start: TimeOfDay) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(
        self, *, planned_end: TimeOfDay, actual_end: TimeOfDay, current: AttendanceStatus
    ) -> StatusDecision:
        raise NotImplementedError


def minutes_late(planned_start: TimeOfDay, actual_start: TimeOfDay) -> int:
    return max(0, actual_start.minutes_after(planned_start))


def minutes_early(planned_end: TimeOfDay, actual_end: TimeOfDay) -> int:
    return max(0, planned_end.minutes_after(actual_end))
