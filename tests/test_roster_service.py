import pytest

from src.staff_roster.staff_roster.core.enums import AuditAction, RoleName
from src.staff_roster.staff_roster.core.exceptions import PermissionDenied, RosterNotFound


def test_delete_roster_removes_slots_then_roster(store, services, manager):
    store.add_roster("roster-1")
    store.add_roster("roster-2")
    store.add_slot("s1", roster_id="roster-1")
    store.add_slot("s2", roster_id="roster-1")
    store.add_slot("s3", roster_id="roster-2")

    assert services.roster_service.delete_roster(manager, "roster-1") == 2

    assert set(store.rosters.rosters) == {"roster-2"}
    assert set(store.slots.slots) == {"s3"}
    [entry] = store.audit_logs.entries
    assert entry.action == AuditAction.DELETE_ROSTER.value
    assert entry.entity_name == "Jan 06, 2025 - Morning"
    assert entry.metadata == {"slotsDeleted": 2}


def test_shift_in_charge_cannot_delete(store, services):
    sic = store.add_user("sic", role=RoleName.SHIFT_IN_CHARGE)
    store.add_roster("roster-1")

    with pytest.raises(PermissionDenied):
        services.roster_service.delete_roster(sic, "roster-1")

    assert "roster-1" in store.rosters.rosters


def test_delete_unknown_roster(services, manager):
    with pytest.raises(RosterNotFound):
        services.roster_service.delete_roster(manager, "missing")


def test_roster_of_another_store_cannot_be_deleted(store, services, manager):
    store.add_roster("foreign", store_id="store-2")
    store.add_slot("fs1", roster_id="foreign")

    with pytest.raises(RosterNotFound):
        services.roster_service.delete_roster(manager, "foreign")

    assert "foreign" in store.rosters.rosters
    assert "fs1" in store.slots.slots
    assert store.audit_logs.entries == []
