from __future__ import annotations

import logging

from flask import Flask, session

from ..common.http import json_body, ok, session_user_id
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="api_login")
    def api_login():
        data = json_body()
        user = container.auth_service.authenticate(data.get("email") or "", data.get("password") or "")

        session.clear()
        session["user_id"] = user.user_id
        session["name"] = user.full_name
        session["role"] = user.role_name
        logger.info("User %s logged in (store=%s)", user.user_id, user.store_id)

        return ok(
            {
                "userId": user.user_id,
                "fullName": user.full_name,
                "storeId": user.store_id,
                "roleName": user.role_name,
            }
        )

    @app.route("/api/auth/logout", methods=["POST"], endpoint="api_logout")
    def api_logout():
        user_id = session_user_id()
        session.clear()
        if user_id:
            logger.info("User %s logged out", user_id)
        return ok({"loggedOut": True})
