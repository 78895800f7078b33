from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, time
from typing import Any, Callable, Mapping, Optional

from ..common.datetime_utils import now_local
from ..common.validators import optional_date, optional_text
from ..core.constants import TEST_EMPLOYEE_PREFIX
from ..core.enums import LIFECYCLE_ACTIONS, AuditAction, EntityType, Permission
from ..core.exceptions import ValidationError
from ..roles.permissions import PermissionService
from ..users.model import User
from ..users.repository import UserRepository
from .model import AuditLogEntry
from .repository import AuditLogRepository

logger = logging.getLogger(__name__)


def diff_changes(before: Mapping[str, Any], after: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """Before/after pairs for every key of ``after`` whose value changed."""

    return {
        key: {"old": before.get(key), "new": value}
        for key, value in after.items()
        if before.get(key) != value
    }


class AuditLogger:
    """Fire-and-forget audit sink.

    ``record`` never raises: a failed write is logged and swallowed so it cannot
    fail the operation that triggered it. While the store has live test users,
    every non-lifecycle event is dropped.
    """

    def __init__(
        self,
        logs: AuditLogRepository,
        users: UserRepository,
        *,
        clock: Callable = now_local,
    ):
        self._logs = logs
        self._users = users
        self._clock = clock

    def _suppressed(self, store_id: str, action: AuditAction) -> bool:
        if action in LIFECYCLE_ACTIONS:
            return False
        return self._users.exists_with_employee_prefix(store_id=store_id, prefix=TEST_EMPLOYEE_PREFIX)

    def record(
        self,
        *,
        actor_id: str,
        store_id: str,
        action: AuditAction,
        entity_type: EntityType,
        entity_id: str,
        entity_name: Optional[str] = None,
        changes: Optional[dict[str, Any]] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Returns True when an entry was written."""

        try:
            if self._suppressed(store_id, action):
                logger.debug("Audit %s on %s suppressed: test session active in store=%s", action.value, entity_id, store_id)
                return False

            self._logs.insert(
                AuditLogEntry(
                    log_id=str(uuid.uuid4()),
                    store_id=store_id,
                    user_id=actor_id,
                    action=action.value,
                    entity_type=entity_type.value,
                    entity_id=entity_id,
                    entity_name=entity_name,
                    changes=changes or None,
                    metadata=metadata or None,
                    timestamp=self._clock(),
                )
            )
            return True
        except Exception:
            logger.error("Failed to write audit log %s for %s %s", action.value, entity_type.value, entity_id, exc_info=True)
            return False


ACTIVITY_PAGE_SIZE = 50


@dataclass(frozen=True)
class ActivityLogPage:
    logs: list[dict[str, Any]]
    page: int
    total_pages: int

    def to_dict(self) -> dict:
        return {"logs": self.logs, "page": self.page, "totalPages": self.total_pages}


def _page_number(value: Any) -> int:
    if value is None or value == "":
        return 1
    try:
        page = int(value)
    except (TypeError, ValueError):
        raise ValidationError("page must be a positive integer")
    if page < 1:
        raise ValidationError("page must be a positive integer")
    return page


class ActivityLogService:
    """Read side of the audit log: the store's activity feed, newest first."""

    def __init__(
        self,
        logs: AuditLogRepository,
        users: UserRepository,
        permissions: Optional[PermissionService] = None,
        *,
        page_size: int = ACTIVITY_PAGE_SIZE,
    ):
        self._logs = logs
        self._users = users
        self._permissions = permissions or PermissionService()
        self._page_size = page_size

    def _author(self, user_id: str, cache: dict[str, Optional[dict]]) -> Optional[dict]:
        if user_id not in cache:
            user = self._users.get_by_id(user_id)
            cache[user_id] = (
                {"firstName": user.first_name, "lastName": user.last_name, "employeeId": user.employee_id}
                if user
                else None
            )
        return cache[user_id]

    def list_logs(
        self,
        actor: User,
        *,
        page: Any = 1,
        action: Optional[str] = None,
        entity_type: Optional[str] = None,
        user_id: Optional[str] = None,
        date_from: Any = None,
        date_to: Any = None,
    ) -> ActivityLogPage:
        self._permissions.require(actor, Permission.VIEW_AUDIT_LOG)
        page = _page_number(page)
        day_from = optional_date(date_from, "dateFrom")
        day_to = optional_date(date_to, "dateTo")

        entries, total = self._logs.list_for_store(
            store_id=actor.store_id,
            offset=(page - 1) * self._page_size,
            limit=self._page_size,
            action=optional_text(action),
            entity_type=optional_text(entity_type),
            user_id=optional_text(user_id),
            since=datetime.combine(day_from, time.min) if day_from else None,
            until=datetime.combine(day_to, time.max) if day_to else None,
        )

        authors: dict[str, Optional[dict]] = {}
        logs = [
            {
                "id": e.log_id,
                "storeId": e.store_id,
                "userId": e.user_id,
                "action": e.action,
                "entityType": e.entity_type,
                "entityId": e.entity_id,
                "entityName": e.entity_name,
                "changes": e.changes,
                "metadata": e.metadata,
                "timestamp": e.timestamp.isoformat(),
                "user": self._author(e.user_id, authors),
            }
            for e in entries
        ]
        return ActivityLogPage(logs=logs, page=page, total_pages=math.ceil(total / self._page_size))
