from __future__ import annotations

from flask import Flask

from ..common.http import json_body, ok, session_user_id
from ..container import Container
from ..core.exceptions import ValidationError
from .service import ActualsUpdate, slot_to_dict


def register(app: Flask, container: Container) -> None:
    def current_actor():
        return container.auth_service.resolve_actor(session_user_id())

    @app.route("/api/rosters/<roster_id>/check-in", methods=["POST"], endpoint="api_check_in")
    def api_check_in(roster_id: str):
        actor = current_actor()
        data = json_body()
        result = container.attendance_service.check_in(
            actor,
            roster_id,
            slot_id=data.get("slotId"),
            actual_start_time=data.get("actualStartTime"),
            notes=data.get("notes"),
        )
        return ok(result.to_dict())

    @app.route("/api/rosters/<roster_id>/check-out", methods=["POST"], endpoint="api_check_out")
    def api_check_out(roster_id: str):
        actor = current_actor()
        data = json_body()
        result = container.attendance_service.check_out(
            actor,
            roster_id,
            slot_id=data.get("slotId"),
            actual_end_time=data.get("actualEndTime"),
            notes=data.get("notes"),
        )
        return ok(result.to_dict())

    @app.route(
        "/api/rosters/<roster_id>/actuals/<slot_id>",
        methods=["PATCH"],
        endpoint="api_record_actuals",
    )
    def api_record_actuals(roster_id: str, slot_id: str):
        actor = current_actor()
        update = ActualsUpdate.from_dict(json_body(), slot_id=slot_id)
        slot = container.attendance_service.record_actuals(
            actor,
            roster_id,
            update.slot_id,
            actual_user_id=update.actual_user_id,
            actual_start_time=update.actual_start_time,
            actual_end_time=update.actual_end_time,
            substitution_reason=update.substitution_reason,
            notes=update.notes,
            absent=update.absent,
        )
        return ok(slot_to_dict(slot))

    @app.route("/api/rosters/<roster_id>/actuals", methods=["PATCH"], endpoint="api_record_actuals_bulk")
    def api_record_actuals_bulk(roster_id: str):
        actor = current_actor()
        entries = json_body().get("actuals")
        if not isinstance(entries, list):
            raise ValidationError("actuals must be a list")
        result = container.attendance_service.record_actuals_bulk(
            actor,
            roster_id,
            [ActualsUpdate.from_dict(entry) for entry in entries],
        )
        return ok(result.to_dict())
