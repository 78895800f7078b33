from __future__ import annotations

from flask import Flask, request

from ..common.http import ok, session_user_id
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/activity-logs", methods=["GET"], endpoint="api_activity_logs")
    def api_activity_logs():
        actor = container.auth_service.resolve_actor(session_user_id())
        page = container.activity_log_service.list_logs(
            actor,
            page=request.args.get("page"),
            action=request.args.get("action"),
            entity_type=request.args.get("entityType"),
            user_id=request.args.get("userId"),
            date_from=request.args.get("dateFrom"),
            date_to=request.args.get("dateTo"),
        )
        return ok(page.to_dict())
