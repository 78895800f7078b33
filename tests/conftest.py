from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

import pytest

from src.staff_roster.staff_roster.audit.model import AuditLogEntry
from src.staff_roster.staff_roster.container import build_services
from src.staff_roster.staff_roster.core.enums import RoleName, RosterStatus
from src.staff_roster.staff_roster.roles.model import RoleRecord
from src.staff_roster.staff_roster.rosters.model import Roster, RosterSlot
from src.staff_roster.staff_roster.users.model import AuthIdentity, User

STORE_ID = "store-1"


class InMemoryUsers:
    def __init__(self):
        self.users: dict[str, User] = {}
        self.fail_delete = False
        self.fail_create_for: set[str] = set()

    def add(self, user: User) -> User:
        self.users[user.user_id] = user
        return user

    def get_by_id(self, user_id: str) -> Optional[User]:
        user = self.users.get(user_id)
        return user if user and user.deleted_at is None else None

    def list_by_employee_prefix(self, *, store_id: str, prefix: str) -> Sequence[User]:
        return sorted(
            (
                u
                for u in self.users.values()
                if u.store_id == store_id and u.employee_id.startswith(prefix) and u.deleted_at is None
            ),
            key=lambda u: u.employee_id,
        )

    def exists_with_employee_prefix(self, *, store_id: str, prefix: str) -> bool:
        return bool(self.list_by_employee_prefix(store_id=store_id, prefix=prefix))

    def create_user(self, user: User, *, created_by: str) -> str:
        if user.employee_id in self.fail_create_for:
            raise RuntimeError(f"insert failed for {user.employee_id}")
        self.users[user.user_id] = user
        return user.user_id

    def delete_many(self, user_ids: Iterable[str]) -> int:
        if self.fail_delete:
            raise RuntimeError("users table locked")
        deleted = 0
        for user_id in list(user_ids):
            if self.users.pop(user_id, None) is not None:
                deleted += 1
        return deleted


class InMemoryIdentities:
    def __init__(self):
        self.identities: dict[str, AuthIdentity] = {}
        self.fail_delete_for: set[str] = set()

    def get_by_email(self, email: str) -> Optional[AuthIdentity]:
        return next((i for i in self.identities.values() if i.email == email), None)

    def create(self, *, identity_id: str, email: str, password_hash: str) -> str:
        self.identities[identity_id] = AuthIdentity(identity_id=identity_id, email=email, password_hash=password_hash)
        return identity_id

    def delete(self, identity_id: str) -> bool:
        if identity_id in self.fail_delete_for:
            raise RuntimeError(f"cannot delete identity {identity_id}")
        return self.identities.pop(identity_id, None) is not None


class InMemoryRoles:
    def __init__(self, names: Iterable[str]):
        self.roles = [RoleRecord(role_id=f"role-{i}", name=name) for i, name in enumerate(names, start=1)]

    def list_all(self) -> Sequence[RoleRecord]:
        return list(self.roles)


class InMemoryRosters:
    def __init__(self):
        self.rosters: dict[str, Roster] = {}

    def get_by_id(self, roster_id: str) -> Optional[Roster]:
        return self.rosters.get(roster_id)

    def find_for_shift(self, *, store_id: str, roster_date: date, shift_type: Optional[str]) -> Optional[Roster]:
        return next(
            (
                r
                for r in self.rosters.values()
                if r.store_id == store_id and r.date == roster_date and r.shift_type == shift_type
            ),
            None,
        )

    def list_for_store(self, *, store_id: str, roster_date: Optional[date] = None, shift_type: Optional[str] = None) -> Sequence[Roster]:
        return sorted(
            (
                r
                for r in self.rosters.values()
                if r.store_id == store_id
                and (roster_date is None or r.date == roster_date)
                and (shift_type is None or r.shift_type == shift_type)
            ),
            key=lambda r: (r.date, r.roster_id),
            reverse=True,
        )

    def create(self, roster: Roster) -> str:
        self.rosters[roster.roster_id] = roster
        return roster.roster_id

    def touch(self, roster_id: str, *, updated_by: str) -> None:
        self.rosters[roster_id] = replace(self.rosters[roster_id], updated_by=updated_by)

    def mark_published(self, roster_id: str, *, published_at: datetime, published_by: str) -> bool:
        roster = self.rosters[roster_id]
        if roster.is_published:
            return False
        self.rosters[roster_id] = replace(
            roster,
            status=RosterStatus.PUBLISHED,
            published_at=published_at,
            published_by=published_by,
            updated_by=published_by,
        )
        return True

    def list_ids_touched_by(self, *, store_id: str, user_ids: Sequence[str]) -> Sequence[str]:
        ids = set(user_ids)
        return [
            r.roster_id
            for r in self.rosters.values()
            if r.store_id == store_id and (r.created_by in ids or r.updated_by in ids)
        ]

    def delete_many(self, roster_ids: Iterable[str]) -> int:
        deleted = 0
        for roster_id in list(roster_ids):
            if self.rosters.pop(roster_id, None) is not None:
                deleted += 1
        return deleted


class InMemorySlots:
    def __init__(self):
        self.slots: dict[str, RosterSlot] = {}
        self.fail_delete_for_actual_users = False

    def list_for_roster(self, roster_id: str) -> Sequence[RosterSlot]:
        return sorted(
            (s for s in self.slots.values() if s.roster_id == roster_id),
            key=lambda s: (s.start_time, s.slot_id),
        )

    def find_for_user(self, *, roster_id: str, user_id: str, slot_id: Optional[str] = None) -> Sequence[RosterSlot]:
        return [
            s
            for s in self.list_for_roster(roster_id)
            if s.user_id == user_id and (slot_id is None or s.slot_id == slot_id)
        ]

    def get(self, *, roster_id: str, slot_id: str) -> Optional[RosterSlot]:
        slot = self.slots.get(slot_id)
        return slot if slot and slot.roster_id == roster_id else None

    def insert_many(self, slots: Sequence[RosterSlot]) -> int:
        for slot in slots:
            self.slots[slot.slot_id] = slot
        return len(slots)

    def mark_checked_in(self, *, slot_id, actual_start_time, attendance_status, checked_in_at, checked_in_by, notes=None) -> bool:
        slot = self.slots[slot_id]
        if slot.checked_in_at is not None:
            return False
        self.slots[slot_id] = replace(
            slot,
            actual_start_time=actual_start_time,
            attendance_status=attendance_status,
            checked_in_at=checked_in_at,
            checked_in_by=checked_in_by,
            actual_user_id=checked_in_by,
            notes=notes if notes is not None else slot.notes,
        )
        return True

    def mark_checked_out(self, *, slot_id, actual_end_time, checked_out_at, checked_out_by, notes=None) -> bool:
        slot = self.slots[slot_id]
        if slot.checked_in_at is None or slot.checked_out_at is not None:
            return False
        self.slots[slot_id] = replace(
            slot,
            actual_end_time=actual_end_time,
            checked_out_at=checked_out_at,
            checked_out_by=checked_out_by,
            notes=notes if notes is not None else slot.notes,
        )
        return True

    def save_actuals(self, slot: RosterSlot, *, expected: RosterSlot) -> bool:
        stored = self.slots[slot.slot_id]
        if (stored.checked_in_at, stored.checked_out_at) != (expected.checked_in_at, expected.checked_out_at):
            return False
        self.slots[slot.slot_id] = slot
        return True

    def _delete_where(self, predicate) -> int:
        doomed = [k for k, s in self.slots.items() if predicate(s)]
        for k in doomed:
            del self.slots[k]
        return len(doomed)

    def delete_for_rosters(self, roster_ids: Iterable[str]) -> int:
        ids = set(roster_ids)
        return self._delete_where(lambda s: s.roster_id in ids)

    def delete_for_users(self, user_ids: Iterable[str]) -> int:
        ids = set(user_ids)
        return self._delete_where(lambda s: s.user_id in ids)

    def delete_for_actual_users(self, user_ids: Iterable[str]) -> int:
        if self.fail_delete_for_actual_users:
            raise RuntimeError("deadlock detected")
        ids = set(user_ids)
        return self._delete_where(lambda s: s.actual_user_id in ids)


class InMemoryAuditLogs:
    def __init__(self):
        self.entries: list[AuditLogEntry] = []
        self.fail_insert = False

    def insert(self, entry: AuditLogEntry) -> None:
        if self.fail_insert:
            raise RuntimeError("audit table unavailable")
        self.entries.append(entry)

    def entity_ids_with_name_suffix(self, *, store_id: str, entity_type: str, suffix: str) -> Sequence[str]:
        return list(
            dict.fromkeys(
                e.entity_id
                for e in self.entries
                if e.store_id == store_id and e.entity_type == entity_type and (e.entity_name or "").endswith(suffix)
            )
        )

    def delete_since(self, *, store_id: str, since: datetime, keep_actions: Iterable[str]) -> int:
        keep = set(keep_actions)
        before = len(self.entries)
        self.entries = [
            e for e in self.entries if not (e.store_id == store_id and e.timestamp >= since and e.action not in keep)
        ]
        return before - len(self.entries)

    def list_for_store(
        self,
        *,
        store_id: str,
        offset: int,
        limit: int,
        action: Optional[str] = None,
        entity_type: Optional[str] = None,
        user_id: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> tuple[Sequence[AuditLogEntry], int]:
        matches = sorted(
            (
                e
                for e in self.entries
                if e.store_id == store_id
                and (action is None or action.lower() in e.action.lower())
                and (entity_type is None or e.entity_type == entity_type)
                and (user_id is None or e.user_id == user_id)
                and (since is None or e.timestamp >= since)
                and (until is None or e.timestamp <= until)
            ),
            key=lambda e: e.timestamp,
            reverse=True,
        )
        return matches[offset : offset + limit], len(matches)

    def actions(self) -> list[str]:
        return [e.action for e in self.entries]


class FakeStore:
    """All in-memory repositories of one store plus builders for test data."""

    def __init__(self):
        self.users = InMemoryUsers()
        self.identities = InMemoryIdentities()
        self.roles = InMemoryRoles(r.value for r in RoleName)
        self.rosters = InMemoryRosters()
        self.slots = InMemorySlots()
        self.audit_logs = InMemoryAuditLogs()

    def add_user(
        self,
        user_id: str,
        *,
        role: Optional[RoleName] = RoleName.PICKER_PACKER_WAREHOUSE,
        employee_id: Optional[str] = None,
        store_id: str = STORE_ID,
        created_at: Optional[datetime] = None,
    ) -> User:
        return self.users.add(
            User(
                user_id=user_id,
                employee_id=employee_id or f"EMP-{user_id}",
                first_name=user_id.capitalize(),
                last_name="Doe",
                store_id=store_id,
                role_id=None,
                role_name=role.value if role else None,
                created_at=created_at,
            )
        )

    def add_roster(
        self,
        roster_id: str = "roster-1",
        *,
        created_by: Optional[str] = None,
        store_id: str = STORE_ID,
        on_date: date = date(2025, 1, 6),
        shift_type: str = "Morning",
        status: RosterStatus = RosterStatus.DRAFT,
    ) -> Roster:
        roster = Roster(
            roster_id=roster_id,
            store_id=store_id,
            date=on_date,
            shift_id="shift-1",
            shift_type=shift_type,
            created_by=created_by,
            status=status,
        )
        self.rosters.rosters[roster_id] = roster
        return roster

    def add_slot(
        self,
        slot_id: str,
        *,
        roster_id: str = "roster-1",
        user_id: Optional[str] = None,
        start: str = "09:00",
        end: str = "17:00",
        **fields,
    ) -> RosterSlot:
        slot = RosterSlot(slot_id=slot_id, roster_id=roster_id, user_id=user_id, start_time=start, end_time=end, **fields)
        self.slots.slots[slot_id] = slot
        return slot

    def add_audit(
        self,
        action: str,
        *,
        timestamp: datetime,
        entity_id: str = "x",
        entity_type: str = "roster",
        entity_name=None,
        store_id: str = STORE_ID,
        user_id: str = "someone",
    ) -> None:
        self.audit_logs.entries.append(
            AuditLogEntry(
                log_id=str(uuid.uuid4()),
                store_id=store_id,
                user_id=user_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                entity_name=entity_name,
                timestamp=timestamp,
            )
        )

    def services(self, **overrides):
        return build_services(
            users=self.users,
            identities=self.identities,
            roles=self.roles,
            rosters=self.rosters,
            slots=self.slots,
            audit_logs=self.audit_logs,
            **overrides,
        )


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def services(store: FakeStore):
    return store.services()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 1, 6, 9, 10)


@pytest.fixture
def manager(store: FakeStore) -> User:
    return store.add_user("manager", role=RoleName.STORE_MANAGER, employee_id="SM-001")


@pytest.fixture
def picker(store: FakeStore) -> User:
    return store.add_user("picker", role=RoleName.PICKER_PACKER_WAREHOUSE, employee_id="PP-001")

