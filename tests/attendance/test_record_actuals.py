from datetime import datetime

import pytest

from src.staff_roster.staff_roster.core.enums import AttendanceStatus, AuditAction
from src.staff_roster.staff_roster.core.exceptions import (
    NotCheckedIn,
    PermissionDenied,
    RosterNotFound,
    SlotChanged,
    SlotNotFound,
    ValidationError,
)

NOW = datetime(2025, 1, 6, 18, 0)


@pytest.fixture
def slot(store, picker):
    store.add_roster("roster-1")
    return store.add_slot("slot-1", user_id=picker.user_id, start="09:00", end="17:00")


def test_requires_modify_roster(services, picker, slot):
    with pytest.raises(PermissionDenied) as exc:
        services.attendance_service.record_actuals(picker, "roster-1", "slot-1", actual_start_time="09:00", now=NOW)

    assert exc.value.http_status == 403
    assert exc.value.message == 'Role "Picker Packer (Warehouse)" does not have permission "MODIFY_ROSTER"'


def test_late_start_fills_check_in(store, services, manager, slot):
    updated = services.attendance_service.record_actuals(
        manager, "roster-1", "slot-1", actual_start_time="09:30", now=NOW
    )

    assert updated.attendance_status == AttendanceStatus.LATE
    assert updated.checked_in_at == NOW
    assert updated.checked_in_by == manager.user_id
    assert store.slots.slots["slot-1"] == updated


def test_early_departure_is_left_early(services, manager, slot):
    updated = services.attendance_service.record_actuals(
        manager, "roster-1", "slot-1", actual_start_time="09:00", actual_end_time="16:00", now=NOW
    )

    assert updated.attendance_status == AttendanceStatus.LEFT_EARLY
    assert updated.checked_out_at == NOW


def test_late_and_early_stays_late(services, manager, slot):
    updated = services.attendance_service.record_actuals(
        manager, "roster-1", "slot-1", actual_start_time="10:00", actual_end_time="15:00", now=NOW
    )

    assert updated.attendance_status == AttendanceStatus.LATE


def test_substitute_worker(services, manager, slot):
    updated = services.attendance_service.record_actuals(
        manager,
        "roster-1",
        "slot-1",
        actual_user_id="cover",
        actual_start_time="09:00",
        substitution_reason="Sick leave",
        now=NOW,
    )

    assert updated.attendance_status == AttendanceStatus.SUBSTITUTED
    assert updated.actual_user_id == "cover"
    assert updated.substitution_reason == "Sick leave"


def test_absent(services, manager, slot):
    updated = services.attendance_service.record_actuals(manager, "roster-1", "slot-1", absent=True, now=NOW)

    assert updated.attendance_status == AttendanceStatus.ABSENT
    assert updated.checked_in_at is None


def test_absent_with_times_is_rejected(services, manager, slot):
    with pytest.raises(ValidationError):
        services.attendance_service.record_actuals(
            manager, "roster-1", "slot-1", absent=True, actual_start_time="09:00", now=NOW
        )


def test_end_without_start(services, manager, slot):
    with pytest.raises(NotCheckedIn):
        services.attendance_service.record_actuals(manager, "roster-1", "slot-1", actual_end_time="17:00", now=NOW)


def test_existing_check_in_timestamp_is_kept(store, services, manager, picker):
    store.add_roster("roster-1")
    checked_in_at = datetime(2025, 1, 6, 9, 2)
    store.add_slot(
        "slot-1",
        user_id=picker.user_id,
        actual_user_id=picker.user_id,
        actual_start_time="09:02",
        checked_in_at=checked_in_at,
        checked_in_by=picker.user_id,
    )

    updated = services.attendance_service.record_actuals(
        manager, "roster-1", "slot-1", actual_start_time="09:20", now=NOW
    )

    assert updated.checked_in_at == checked_in_at
    assert updated.checked_in_by == picker.user_id
    assert updated.attendance_status == AttendanceStatus.LATE


def test_unknown_slot(services, manager, slot):
    with pytest.raises(SlotNotFound):
        services.attendance_service.record_actuals(manager, "roster-1", "nope", actual_start_time="09:00", now=NOW)


def test_audit_carries_changes(store, services, manager, slot):
    services.attendance_service.record_actuals(manager, "roster-1", "slot-1", actual_start_time="09:30", now=NOW)

    [entry] = store.audit_logs.entries
    assert entry.action == AuditAction.RECORD_ACTUALS.value
    assert entry.changes["actualStartTime"] == {"old": None, "new": "09:30"}
    assert entry.changes["attendanceStatus"] == {"old": "present", "new": "late"}
    assert entry.metadata == {"slotId": "slot-1"}


def test_no_changes_writes_nothing(store, services, manager, slot):
    updated = services.attendance_service.record_actuals(manager, "roster-1", "slot-1", now=NOW)

    assert updated == slot
    assert store.audit_logs.entries == []


def test_slot_of_another_store_is_untouched(store, services, manager):
    store.add_roster("foreign", store_id="store-2")
    store.add_slot("fs1", roster_id="foreign", user_id="someone")

    with pytest.raises(RosterNotFound):
        services.attendance_service.record_actuals(manager, "foreign", "fs1", absent=True, now=NOW)

    assert store.slots.slots["fs1"].attendance_status == AttendanceStatus.PRESENT
    assert store.audit_logs.entries == []


def test_checked_in_slot_cannot_be_marked_absent(store, services, manager, picker):
    store.add_roster("roster-1")
    store.add_slot(
        "slot-1",
        user_id=picker.user_id,
        actual_start_time="09:00",
        checked_in_at=datetime(2025, 1, 6, 9, 0),
        checked_in_by=picker.user_id,
    )

    with pytest.raises(ValidationError) as exc:
        services.attendance_service.record_actuals(manager, "roster-1", "slot-1", absent=True, now=NOW)

    assert exc.value.message == "A checked-in slot cannot be marked absent"
    assert store.slots.slots["slot-1"].attendance_status == AttendanceStatus.PRESENT


def test_absent_mark_can_be_lifted(store, services, manager, picker):
    store.add_roster("roster-1")
    store.add_slot("slot-1", user_id=picker.user_id, attendance_status=AttendanceStatus.ABSENT)

    updated = services.attendance_service.record_actuals(manager, "roster-1", "slot-1", absent=False, now=NOW)

    assert updated.attendance_status == AttendanceStatus.PRESENT
    assert store.slots.slots["slot-1"].attendance_status == AttendanceStatus.PRESENT
    [entry] = store.audit_logs.entries
    assert entry.changes["attendanceStatus"] == {"old": "absent", "new": "present"}


def test_notes_only_edit_keeps_absent_mark(store, services, manager, picker):
    store.add_roster("roster-1")
    store.add_slot("slot-1", user_id=picker.user_id, attendance_status=AttendanceStatus.ABSENT)

    updated = services.attendance_service.record_actuals(manager, "roster-1", "slot-1", notes="Called in sick", now=NOW)

    assert updated.attendance_status == AttendanceStatus.ABSENT
    assert updated.notes == "Called in sick"


def test_concurrent_check_in_is_not_overwritten(store, services, manager, picker, slot, monkeypatch):
    stale_get = store.slots.get

    def get_then_check_in(**kwargs):
        found = stale_get(**kwargs)
        store.slots.mark_checked_in(
            slot_id="slot-1",
            actual_start_time="09:05",
            attendance_status=AttendanceStatus.PRESENT,
            checked_in_at=datetime(2025, 1, 6, 9, 5),
            checked_in_by=picker.user_id,
        )
        return found

    monkeypatch.setattr(store.slots, "get", get_then_check_in)

    with pytest.raises(SlotChanged) as exc:
        services.attendance_service.record_actuals(manager, "roster-1", "slot-1", actual_start_time="09:30", now=NOW)

    assert exc.value.code == "SLOT_CHANGED"
    kept = store.slots.slots["slot-1"]
    assert kept.actual_start_time == "09:05"
    assert kept.checked_in_by == picker.user_id
    assert store.audit_logs.entries == []
