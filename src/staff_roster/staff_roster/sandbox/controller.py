from __future__ import annotations

from flask import Flask

from ..common.http import ok, session_user_id
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def current_actor():
        return container.auth_service.resolve_actor(session_user_id())

    @app.route("/api/test-environment/start", methods=["POST"], endpoint="api_test_environment_start")
    def api_test_environment_start():
        started = container.sandbox_service.start_session(current_actor())
        return ok(started.to_dict(), status=201)

    @app.route("/api/test-environment/end", methods=["POST"], endpoint="api_test_environment_end")
    def api_test_environment_end():
        report = container.sandbox_service.end_session(current_actor())
        return ok(report.to_dict())
