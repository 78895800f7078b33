"""JSON envelope shared by every API controller.

Success: ``{"success": true, "data": ...}``.
Failure: ``{"success": false, "error": {"code", "message", "details"?}}``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.exceptions import DomainError, ValidationError

logger = logging.getLogger(__name__)


def ok(data: Any = None, status: int = 200):
    return jsonify({"success": True, "data": data}), status


def fail(code: str, message: str, status: int, details: Any = None):
    error: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return jsonify({"success": False, "error": error}), status


def json_body() -> dict:
    """Request JSON object; an empty body is treated as ``{}``."""

    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def session_user_id() -> Optional[str]:
    return session.get("user_id")


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        if exc.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, exc.message, exc_info=exc)
        else:
            logger.info("%s %s rejected: %s (%s)", request.method, request.path, exc.code, exc.message)
        return fail(exc.code, exc.message, exc.http_status, exc.details)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return fail(exc.name.upper().replace(" ", "_"), exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return fail("INTERNAL_ERROR", str(exc) or "Internal server error", 500)
