"""Test environment ("sandbox") sessions.

A session is a set of synthetic users whose ``employee_id`` starts with ``TEST-``.
Ending a session deletes them and everything that references them, step by step,
in foreign-key order. Each step is independent: a failing step is logged and the
cascade moves on.
"""

from __future__ import annotations

import logging
import random
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from werkzeug.security import generate_password_hash

from ..audit.repository import AuditLogRepository
from ..audit.service import AuditLogger
from ..common.datetime_utils import now_local
from ..core.constants import (
    TEST_EMPLOYEE_PREFIX,
    TEST_ENVIRONMENT_ENTITY_ID,
    TEST_ROSTER_NAME_SUFFIX,
    TEST_USER_EMAIL_DOMAIN,
)
from ..core.enums import (
    LIFECYCLE_ACTIONS,
    AuditAction,
    EntityType,
    ExperienceLevel,
    Permission,
    PPType,
    RoleName,
)
from ..core.exceptions import MissingRoles, NoTestSession, SessionAlreadyActive
from ..roles.permissions import PermissionService
from ..roles.repository import RoleRepository
from ..rosters.repository import RosterRepository, RosterSlotRepository
from ..users.model import User
from ..users.repository import AuthIdentityRepository, UserRepository

logger = logging.getLogger(__name__)

TEST_USER_PLAN: tuple[tuple[RoleName, int], ...] = (
    (RoleName.STORE_MANAGER, 1),
    (RoleName.SHIFT_IN_CHARGE, 2),
    (RoleName.INVENTORY_EXECUTIVE, 4),
    (RoleName.DISPATCHER, 2),
    (RoleName.PICKER_PACKER_WAREHOUSE, 10),
    (RoleName.PICKER_PACKER_AD_HOC, 6),
)

FIRST_NAMES = (
    "Alex", "Jordan", "Taylor", "Morgan", "Casey", "Riley", "Avery", "Quinn",
    "Blake", "Cameron", "Dakota", "Drew", "Emery", "Finley", "Hayden", "Jamie",
    "Kendall", "Logan", "Micah", "Parker", "Reese", "Sage", "Skylar", "Tatum",
)

LAST_NAMES = (
    "Anderson", "Brown", "Davis", "Garcia", "Harris", "Jackson", "Johnson", "Jones",
    "Lee", "Martin", "Martinez", "Miller", "Moore", "Robinson", "Smith", "Taylor",
    "Thomas", "Thompson", "Walker", "White", "Williams", "Wilson", "Young", "Clark",
)


@dataclass(frozen=True)
class StepOutcome:
    name: str
    ok: bool
    affected: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class CleanupReport:
    deleted_count: int
    roster_ids: tuple[str, ...]
    steps: tuple[StepOutcome, ...]

    @property
    def failed_steps(self) -> list[str]:
        return [s.name for s in self.steps if not s.ok]

    def to_dict(self) -> dict:
        return {
            "deletedCount": self.deleted_count,
            "rostersDeleted": len(self.roster_ids),
            "failedSteps": self.failed_steps,
        }


@dataclass(frozen=True)
class SessionStart:
    user_ids: tuple[str, ...]

    def to_dict(self) -> dict:
        return {"userIds": list(self.user_ids), "userCount": len(self.user_ids)}


class SandboxService:
    def __init__(
        self,
        users: UserRepository,
        identities: AuthIdentityRepository,
        roles: RoleRepository,
        rosters: RosterRepository,
        slots: RosterSlotRepository,
        audit_logs: AuditLogRepository,
        audit: AuditLogger,
        permissions: Optional[PermissionService] = None,
        *,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._users = users
        self._identities = identities
        self._roles = roles
        self._rosters = rosters
        self._slots = slots
        self._audit_logs = audit_logs
        self._audit = audit
        self._permissions = permissions or PermissionService()
        self._rng = rng or random.Random()
        self._clock = clock

    # ------------------------------------------------------------------ start

    def _new_test_user(self, *, actor: User, role_id: str, role: RoleName, employee_id: str) -> Optional[str]:
        identity_id = str(uuid.uuid4())
        email = f"test-{employee_id.lower()}@{TEST_USER_EMAIL_DOMAIN}"
        try:
            self._identities.create(
                identity_id=identity_id,
                email=email,
                password_hash=generate_password_hash(secrets.token_urlsafe(12)),
            )
        except Exception:
            logger.error("Failed to create auth identity for %s", employee_id, exc_info=True)
            return None

        pp_type = None
        week_offs = self._rng.randint(1, 3)
        if role == RoleName.PICKER_PACKER_WAREHOUSE:
            pp_type = PPType.WAREHOUSE
        elif role == RoleName.PICKER_PACKER_AD_HOC:
            pp_type = PPType.AD_HOC
            week_offs = 0

        user = User(
            user_id=identity_id,
            employee_id=employee_id,
            first_name=self._rng.choice(FIRST_NAMES),
            last_name=self._rng.choice(LAST_NAMES),
            store_id=actor.store_id,
            role_id=role_id,
            role_name=role.value,
            experience_level=self._rng.choice(list(ExperienceLevel)),
            pp_type=pp_type,
            week_offs_count=week_offs,
            created_at=self._clock(),
        )
        try:
            return self._users.create_user(user, created_by=actor.user_id)
        except Exception:
            logger.error("Failed to create user record for %s", employee_id, exc_info=True)
            try:
                self._identities.delete(identity_id)
            except Exception:
                logger.error("Failed to roll back auth identity %s", identity_id, exc_info=True)
            return None

    def start_session(self, actor: User) -> SessionStart:
        self._permissions.require(actor, Permission.MANAGE_SETTINGS)
        if self._users.exists_with_employee_prefix(store_id=actor.store_id, prefix=TEST_EMPLOYEE_PREFIX):
            raise SessionAlreadyActive("Test session already active. Please end the existing session first.")

        role_ids = {r.name: r.role_id for r in self._roles.list_all()}
        missing = [role.value for role, _ in TEST_USER_PLAN if role.value not in role_ids]
        if missing:
            raise MissingRoles(f"Required roles not found: {', '.join(missing)}", details={"missingRoles": missing})

        created: list[str] = []
        counter = 1
        for role, count in TEST_USER_PLAN:
            for _ in range(count):
                employee_id = f"{TEST_EMPLOYEE_PREFIX}{counter:03d}"
                counter += 1
                user_id = self._new_test_user(
                    actor=actor, role_id=role_ids[role.value], role=role, employee_id=employee_id
                )
                if user_id:
                    created.append(user_id)

        logger.info("Test session started in store=%s by %s (%s users)", actor.store_id, actor.user_id, len(created))
        self._audit.record(
            actor_id=actor.user_id,
            store_id=actor.store_id,
            action=AuditAction.TESTING_ENVIRONMENT_TRIGGER,
            entity_type=EntityType.SETTINGS,
            entity_id=TEST_ENVIRONMENT_ENTITY_ID,
            entity_name="Test Environment",
            metadata={"userIdsCreated": created, "userCount": len(created)},
        )
        return SessionStart(user_ids=tuple(created))

    # -------------------------------------------------------------------- end

    def _collect_roster_ids(self, *, store_id: str, user_ids: Sequence[str]) -> list[str]:
        found: list[str] = []
        try:
            found.extend(self._rosters.list_ids_touched_by(store_id=store_id, user_ids=user_ids))
        except Exception:
            logger.error("Failed to list rosters touched by test users", exc_info=True)

        # Rosters that changed ownership are only recognisable by their audit name.
        try:
            found.extend(
                self._audit_logs.entity_ids_with_name_suffix(
                    store_id=store_id,
                    entity_type=EntityType.ROSTER.value,
                    suffix=TEST_ROSTER_NAME_SUFFIX,
                )
            )
        except Exception:
            logger.error("Failed to list test rosters from audit logs", exc_info=True)

        return list(dict.fromkeys(rid for rid in found if rid))

    @staticmethod
    def _run_step(name: str, action: Callable[[], int]) -> StepOutcome:
        try:
            return StepOutcome(name=name, ok=True, affected=int(action() or 0))
        except Exception as exc:
            logger.error("Test cleanup step %s failed", name, exc_info=True)
            return StepOutcome(name=name, ok=False, error=str(exc))

    def _delete_identities(self, user_ids: Sequence[str]) -> StepOutcome:
        deleted = 0
        failed: list[str] = []
        for user_id in user_ids:
            try:
                if self._identities.delete(user_id):
                    deleted += 1
            except Exception:
                logger.error("Failed to delete auth identity %s", user_id, exc_info=True)
                failed.append(user_id)

        if failed:
            return StepOutcome(
                name="delete_auth_identities",
                ok=False,
                affected=deleted,
                error=f"{len(failed)} of {len(user_ids)} identities could not be deleted",
            )
        return StepOutcome(name="delete_auth_identities", ok=True, affected=deleted)

    def end_session(self, actor: User) -> CleanupReport:
        self._permissions.require(actor, Permission.MANAGE_SETTINGS)
        store_id = actor.store_id

        test_users = list(self._users.list_by_employee_prefix(store_id=store_id, prefix=TEST_EMPLOYEE_PREFIX))
        if not test_users:
            raise NoTestSession("No active test session found")

        user_ids = [u.user_id for u in test_users]
        # Lower bound for the audit purge; must be read before anything is deleted.
        since = min((u.created_at for u in test_users if u.created_at), default=None)
        roster_ids = self._collect_roster_ids(store_id=store_id, user_ids=user_ids)

        steps: list[StepOutcome] = []
        if roster_ids:
            steps.append(self._run_step("delete_test_roster_slots", lambda: self._slots.delete_for_rosters(roster_ids)))
            steps.append(self._run_step("delete_test_rosters", lambda: self._rosters.delete_many(roster_ids)))
        steps.append(self._run_step("delete_planned_user_slots", lambda: self._slots.delete_for_users(user_ids)))
        steps.append(self._run_step("delete_actual_user_slots", lambda: self._slots.delete_for_actual_users(user_ids)))
        if since is not None:
            steps.append(
                self._run_step(
                    "purge_audit_logs",
                    lambda: self._audit_logs.delete_since(
                        store_id=store_id,
                        since=since,
                        keep_actions=sorted(a.value for a in LIFECYCLE_ACTIONS),
                    ),
                )
            )
        steps.append(self._delete_identities(user_ids))
        steps.append(self._run_step("delete_users", lambda: self._users.delete_many(user_ids)))

        report = CleanupReport(deleted_count=len(user_ids), roster_ids=tuple(roster_ids), steps=tuple(steps))
        if report.failed_steps:
            logger.warning("Test session cleanup in store=%s finished with failures: %s", store_id, report.failed_steps)
        else:
            logger.info("Test session ended in store=%s: %s users, %s rosters", store_id, len(user_ids), len(roster_ids))

        self._audit.record(
            actor_id=actor.user_id,
            store_id=store_id,
            action=AuditAction.TESTING_ENVIRONMENT_ENDED,
            entity_type=EntityType.SETTINGS,
            entity_id=TEST_ENVIRONMENT_ENTITY_ID,
            entity_name="Test Environment",
            metadata={"usersDeleted": report.deleted_count},
        )
        return report
