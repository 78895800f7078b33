from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    Carries the error ``code`` and HTTP status rendered into the JSON envelope.
    """

    code = "DOMAIN_ERROR"
    http_status = 400

    def __init__(self, message: str, *, code: Optional[str] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"


class AuthenticationError(DomainError):
    """Raised when credentials or the session are missing or invalid."""

    code = "UNAUTHORIZED"
    http_status = 401


class PermissionDenied(DomainError):
    """Raised when an authenticated user lacks permission for an action."""

    code = "PERMISSION_DENIED"
    http_status = 403


class NotFoundError(DomainError):
    code = "NOT_FOUND"
    http_status = 404


class RosterNotFound(NotFoundError):
    code = "ROSTER_NOT_FOUND"


class SlotNotFound(NotFoundError):
    code = "SLOT_NOT_FOUND"


class UserNotFound(NotFoundError):
    code = "USER_NOT_FOUND"


class ConflictError(DomainError):
    """Business-rule rejection of an otherwise valid request."""

    code = "CONFLICT"


class AlreadyCheckedIn(ConflictError):
    code = "ALREADY_CHECKED_IN"


class NotCheckedIn(ConflictError):
    code = "NOT_CHECKED_IN"


class AlreadyCheckedOut(ConflictError):
    code = "ALREADY_CHECKED_OUT"


class SlotChanged(ConflictError):
    code = "SLOT_CHANGED"


class RosterPublished(ConflictError):
    code = "ROSTER_PUBLISHED"


class NoTestSession(ConflictError):
    code = "NO_TEST_SESSION"


class SessionAlreadyActive(ConflictError):
    code = "TEST_SESSION_EXISTS"


class MissingRoles(ConflictError):
    code = "MISSING_ROLES"


class UpstreamFailure(DomainError):
    """Raised when the data store fails. The message is passed through."""

    code = "INTERNAL_ERROR"
    http_status = 500
