"""Attendance evaluation over ``HH:MM`` wall-clock times.

Pure functions. Inputs are validated by callers; a malformed time string raises
``ValueError`` from :meth:`TimeOfDay.parse`.
"""

from __future__ import annotations

from typing import Optional, Union

from ..common.datetime_utils import TimeOfDay
from ..core.enums import AttendanceStatus
from .factory import AttendanceStrategyFactory
from .strategies.base import StatusDecision

TimeLike = Union[str, TimeOfDay]


def _as_time(value: TimeLike) -> TimeOfDay:
    return value if isinstance(value, TimeOfDay) else TimeOfDay.parse(value)


def decide_check_in(
    planned_start: TimeLike,
    actual_start: TimeLike,
    *,
    factory: Optional[AttendanceStrategyFactory] = None,
) -> StatusDecision:
    factory = factory or AttendanceStrategyFactory()
    planned, actual = _as_time(planned_start), _as_time(actual_start)
    strategy = factory.for_checkin(planned_start=planned, actual_start=actual)
    return strategy.decide_checkin(planned_start=planned, actual_start=actual)


def decide_check_out(
    planned_end: TimeLike,
    actual_end: TimeLike,
    current: AttendanceStatus,
    *,
    factory: Optional[AttendanceStrategyFactory] = None,
) -> StatusDecision:
    factory = factory or AttendanceStrategyFactory()
    planned, actual = _as_time(planned_end), _as_time(actual_end)
    strategy = factory.for_checkout(planned_end=planned, actual_end=actual, current_status=current)
    return strategy.decide_checkout(planned_end=planned, actual_end=actual, current=current)


def evaluate(planned_start: TimeLike, actual_start: TimeLike) -> AttendanceStatus:
    """Status for a check-in at ``actual_start`` against ``planned_start``."""
    return decide_check_in(planned_start, actual_start).status
