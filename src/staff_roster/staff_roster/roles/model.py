from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RoleRecord:
    role_id: str
    name: str
    description: Optional[str] = None
