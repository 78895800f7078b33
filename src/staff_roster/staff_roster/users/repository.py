from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import AuthIdentity, User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete database.
    Soft-deleted users (``deleted_at`` set) are never returned.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def list_by_employee_prefix(self, *, store_id: str, prefix: str) -> Sequence[User]:
        raise NotImplementedError

    def exists_with_employee_prefix(self, *, store_id: str, prefix: str) -> bool:
        raise NotImplementedError

    def create_user(self, user: User, *, created_by: str) -> str:
        raise NotImplementedError

    def delete_many(self, user_ids: Iterable[str]) -> int:
        raise NotImplementedError


class AuthIdentityRepository(Protocol):
    def get_by_email(self, email: str) -> Optional[AuthIdentity]:
        raise NotImplementedError

    def create(self, *, identity_id: str, email: str, password_hash: str) -> str:
        raise NotImplementedError

    def delete(self, identity_id: str) -> bool:
        """Delete the identity; the user row with the same id cascades."""

        raise NotImplementedError
