from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from .model import AuditLogEntry


class AuditLogRepository(Protocol):
    def insert(self, entry: AuditLogEntry) -> None:
        raise NotImplementedError

    def entity_ids_with_name_suffix(self, *, store_id: str, entity_type: str, suffix: str) -> Sequence[str]:
        raise NotImplementedError

    def delete_since(self, *, store_id: str, since: datetime, keep_actions: Iterable[str]) -> int:
        """Delete the store's entries timestamped at or after ``since``, except ``keep_actions``."""

        raise NotImplementedError

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
        """One page of the store's entries, newest first, plus the total match count.

        ``action`` matches as a case-insensitive substring.
        """

        raise NotImplementedError
