from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash

from ..common.validators import require_non_empty
from ..core.exceptions import AuthenticationError, UserNotFound
from .model import User
from .repository import AuthIdentityRepository, UserRepository


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: str
    full_name: str
    store_id: str
    role_name: Optional[str]


class AuthService:
    """Use case: authenticate a user and resolve the session back to an actor."""

    def __init__(self, users: UserRepository, identities: AuthIdentityRepository):
        self._users = users
        self._identities = identities

    def authenticate(self, email: str, password: str) -> SessionUser:
        email = require_non_empty(email, "Email").lower()
        identity = self._identities.get_by_email(email)
        if not identity:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(identity.password_hash, password or "")
        except Exception:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False
        if not ok:
            raise AuthenticationError("Invalid email or password")

        user = self._users.get_by_id(identity.identity_id)
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        return SessionUser(
            user_id=user.user_id,
            full_name=user.full_name,
            store_id=user.store_id,
            role_name=user.role_name,
        )

    def resolve_actor(self, user_id: Optional[str]) -> User:
        if not user_id:
            raise AuthenticationError("Authentication required")
        user = self._users.get_by_id(user_id)
        if not user:
            raise UserNotFound("User not found in database")
        return user
