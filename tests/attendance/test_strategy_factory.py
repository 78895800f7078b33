from src.staff_roster.staff_roster.attendance.factory import AttendanceStrategyFactory
from src.staff_roster.staff_roster.attendance.strategies.late_strategy import LateStrategy
from src.staff_roster.staff_roster.attendance.strategies.left_early_strategy import LeftEarlyStrategy
from src.staff_roster.staff_roster.attendance.strategies.present_strategy import PresentStrategy
from src.staff_roster.staff_roster.common.datetime_utils import TimeOfDay
from src.staff_roster.staff_roster.core.enums import AttendanceStatus


def test_factory_checkin_on_time_within_grace():
    factory = AttendanceStrategyFactory()
    strategy = factory.for_checkin(planned_start=TimeOfDay.parse("08:00"), actual_start=TimeOfDay.parse("08:15"))

    assert isinstance(strategy, PresentStrategy)


def test_factory_checkin_late_after_grace():
    factory = AttendanceStrategyFactory()
    strategy = factory.for_checkin(planned_start=TimeOfDay.parse("08:00"), actual_start=TimeOfDay.parse("08:16"))

    assert isinstance(strategy, LateStrategy)


def test_factory_checkin_early_arrival_is_present():
    factory = AttendanceStrategyFactory(grace_minutes=0)
    strategy = factory.for_checkin(planned_start=TimeOfDay.parse("08:00"), actual_start=TimeOfDay.parse("07:30"))

    assert isinstance(strategy, PresentStrategy)


def test_factory_checkout_left_early_only_from_present():
    factory = AttendanceStrategyFactory()
    planned_end, actual_end = TimeOfDay.parse("17:00"), TimeOfDay.parse("16:00")

    assert isinstance(
        factory.for_checkout(planned_end=planned_end, actual_end=actual_end, current_status=AttendanceStatus.PRESENT),
        LeftEarlyStrategy,
    )
    assert isinstance(
        factory.for_checkout(planned_end=planned_end, actual_end=actual_end, current_status=AttendanceStatus.LATE),
        PresentStrategy,
    )


def test_present_strategy_keeps_current_status_on_checkout():
    decision = PresentStrategy().decide_checkout(
        planned_end=TimeOfDay.parse("17:00"),
        actual_end=TimeOfDay.parse("17:30"),
        current=AttendanceStatus.LATE,
    )

    assert decision.status == AttendanceStatus.LATE
    assert decision.minutes_early == 0


def test_left_early_checkin_matches_present():
    factory = AttendanceStrategyFactory(grace_minutes=0)
    planned, actual = TimeOfDay.parse("08:00"), TimeOfDay.parse("07:00")

    assert not isinstance(factory.for_checkin(planned_start=planned, actual_start=actual), LeftEarlyStrategy)
    assert LeftEarlyStrategy().decide_checkin(planned_start=planned, actual_start=actual) == PresentStrategy().decide_checkin(
        planned_start=planned, actual_start=actual
    )
