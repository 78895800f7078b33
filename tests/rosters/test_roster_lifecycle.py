from datetime import date, datetime

import pytest

from src.staff_roster.staff_roster.core.enums import AuditAction, RoleName, RosterStatus
from src.staff_roster.staff_roster.core.exceptions import (
    PermissionDenied,
    RosterNotFound,
    RosterPublished,
    ValidationError,
)
from src.staff_roster.staff_roster.rosters.service import SlotPlan, coverage_of

PUBLISHED_AT = datetime(2025, 1, 5, 18, 0)


def _plans():
    return [
        SlotPlan(start_time="09:00", end_time="17:00", user_id="picker"),
        SlotPlan(start_time="9:30", end_time="13:00"),
    ]


def test_create_roster_inserts_draft_and_slots(store, services, manager, picker):
    roster, slots = services.roster_service.create_roster(
        manager, roster_date="2025-01-06", shift_type="Morning", slots=_plans()
    )

    assert store.rosters.rosters[roster.roster_id] == roster
    assert roster.store_id == manager.store_id
    assert roster.date == date(2025, 1, 6)
    assert roster.status == RosterStatus.DRAFT
    assert roster.created_by == manager.user_id
    assert [(s.user_id, s.start_time, s.end_time) for s in slots] == [
        ("picker", "09:00", "17:00"),
        (None, "09:30", "13:00"),
    ]
    assert all(s.slot_id in store.slots.slots for s in slots)

    [entry] = store.audit_logs.entries
    assert entry.action == AuditAction.CREATE_ROSTER.value
    assert entry.entity_id == roster.roster_id
    assert entry.metadata == {"slotCount": 2, "replaced": False}


def test_created_slots_accept_check_in(store, services, manager, picker, fixed_now):
    roster, _ = services.roster_service.create_roster(
        manager, roster_date="2025-01-06", shift_type="Morning", slots=_plans()
    )

    result = services.attendance_service.check_in(picker, roster.roster_id, now=fixed_now)

    assert result.minutes_late == 10
    assert store.slots.slots[result.slot.slot_id].checked_in_by == picker.user_id


def test_posting_again_replaces_draft_slots(store, services, manager, picker):
    first, _ = services.roster_service.create_roster(
        manager, roster_date="2025-01-06", shift_type="Morning", slots=_plans()
    )

    second, slots = services.roster_service.create_roster(
        manager,
        roster_date="2025-01-06",
        shift_type="Morning",
        slots=[SlotPlan(start_time="10:00", end_time="18:00", user_id="picker")],
    )

    assert second.roster_id == first.roster_id
    assert second.updated_by == manager.user_id
    assert len(store.rosters.rosters) == 1
    assert [s.start_time for s in store.slots.slots.values()] == ["10:00"]
    assert len(slots) == 1
    assert store.audit_logs.entries[-1].metadata == {"slotCount": 1, "replaced": True}


def test_published_roster_is_not_replaced(store, services, manager):
    store.add_roster("roster-1", status=RosterStatus.PUBLISHED)
    store.add_slot("s1")

    with pytest.raises(RosterPublished):
        services.roster_service.create_roster(manager, roster_date=date(2025, 1, 6), shift_type="Morning", slots=_plans())

    assert set(store.slots.slots) == {"s1"}


def test_invalid_slot_time_creates_nothing(store, services, manager):
    with pytest.raises(ValidationError) as exc:
        services.roster_service.create_roster(
            manager,
            roster_date="2025-01-06",
            shift_type="Morning",
            slots=[SlotPlan(start_time="09:00", end_time="5pm")],
        )

    assert exc.value.code == "INVALID_TIME"
    assert exc.value.message == "slots[0].endTime must be a time in HH:MM format"
    assert store.rosters.rosters == {}
    assert store.slots.slots == {}


def test_invalid_date_is_rejected(services, manager):
    with pytest.raises(ValidationError) as exc:
        services.roster_service.create_roster(manager, roster_date="06/01/2025", shift_type="Morning")

    assert exc.value.code == "INVALID_DATE"


def test_picker_cannot_create(store, services, picker):
    with pytest.raises(PermissionDenied):
        services.roster_service.create_roster(picker, roster_date="2025-01-06", shift_type="Morning")

    assert store.rosters.rosters == {}


def test_list_rosters_is_store_scoped_and_filtered(store, services, manager):
    store.add_roster("r-mon", on_date=date(2025, 1, 6))
    store.add_roster("r-tue", on_date=date(2025, 1, 7), shift_type="Evening")
    store.add_roster("foreign", store_id="store-2")
    store.add_slot("s1", roster_id="r-mon", user_id="picker")
    store.add_slot("s2", roster_id="r-mon")

    everything = services.roster_service.list_rosters(manager)
    mondays = services.roster_service.list_rosters(manager, roster_date="2025-01-06")
    evenings = services.roster_service.list_rosters(manager, shift_type="Evening")

    assert [r.roster_id for r, _ in everything] == ["r-tue", "r-mon"]
    assert [(r.roster_id, len(slots)) for r, slots in mondays] == [("r-mon", 2)]
    assert [r.roster_id for r, _ in evenings] == ["r-tue"]


def test_coverage_counts_filled_and_vacant(store):
    store.add_roster("roster-1")
    slots = [
        store.add_slot("s1", user_id="picker"),
        store.add_slot("s2", user_id="alex"),
        store.add_slot("s3"),
    ]

    assert coverage_of(slots) == {"totalSlots": 3, "filledSlots": 2, "vacantSlots": 1, "coveragePercentage": 67}
    assert coverage_of([])["coveragePercentage"] == 0


def test_publish_roster(store, services, manager):
    store.add_roster("roster-1")
    store.add_slot("s1")

    roster, slots = services.roster_service.publish_roster(manager, "roster-1", now=PUBLISHED_AT)

    assert roster.status == RosterStatus.PUBLISHED
    assert roster.published_at == PUBLISHED_AT
    assert roster.published_by == manager.user_id
    assert store.rosters.rosters["roster-1"].is_published
    assert [s.slot_id for s in slots] == ["s1"]
    [entry] = store.audit_logs.entries
    assert entry.action == AuditAction.PUBLISH_ROSTER.value
    assert entry.changes == {"status": {"old": "draft", "new": "published"}}


def test_publishing_twice_is_a_no_op(store, services, manager):
    store.add_roster("roster-1")
    services.roster_service.publish_roster(manager, "roster-1", now=PUBLISHED_AT)

    roster, _ = services.roster_service.publish_roster(manager, "roster-1", now=datetime(2025, 1, 6, 7, 0))

    assert roster.published_at == PUBLISHED_AT
    assert store.audit_logs.actions() == [AuditAction.PUBLISH_ROSTER.value]


def test_shift_in_charge_cannot_publish(store, services):
    sic = store.add_user("sic", role=RoleName.SHIFT_IN_CHARGE)
    store.add_roster("roster-1")

    with pytest.raises(PermissionDenied):
        services.roster_service.publish_roster(sic, "roster-1")

    assert not store.rosters.rosters["roster-1"].is_published


def test_roster_of_another_store_cannot_be_published(store, services, manager):
    store.add_roster("foreign", store_id="store-2")

    with pytest.raises(RosterNotFound):
        services.roster_service.publish_roster(manager, "foreign")

    assert not store.rosters.rosters["foreign"].is_published
