from __future__ import annotations

from typing import Protocol, Sequence

from .model import RoleRecord


class RoleRepository(Protocol):
    def list_all(self) -> Sequence[RoleRecord]:
        raise NotImplementedError
