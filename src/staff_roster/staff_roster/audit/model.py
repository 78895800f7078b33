from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class AuditLogEntry:
    """Append-only record of one meaningful mutation.

    ``changes`` maps a field name to ``{"old": ..., "new": ...}``.
    """

    log_id: str
    store_id: str
    user_id: str
    action: str
    entity_type: str
    entity_id: str
    timestamp: datetime
    entity_name: Optional[str] = None
    changes: Optional[dict[str, Any]] = None
    metadata: Optional[dict[str, Any]] = None
