from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, ok, session_user_id
from ..container import Container
from ..core.exceptions import ValidationError
from .service import SlotPlan, roster_to_dict


def register(app: Flask, container: Container) -> None:
    def current_actor():
        return container.auth_service.resolve_actor(session_user_id())

    @app.route("/api/rosters", methods=["GET"], endpoint="api_list_rosters")
    def api_list_rosters():
        rosters = container.roster_service.list_rosters(
            current_actor(),
            roster_date=request.args.get("date"),
            shift_type=request.args.get("shiftType"),
        )
        return ok([roster_to_dict(roster, slots) for roster, slots in rosters])

    @app.route("/api/rosters", methods=["POST"], endpoint="api_create_roster")
    def api_create_roster():
        actor = current_actor()
        data = json_body()
        slots = data.get("slots") or []
        if not isinstance(slots, list):
            raise ValidationError("slots must be a list")
        roster, created = container.roster_service.create_roster(
            actor,
            roster_date=data.get("date"),
            shift_type=data.get("shiftType"),
            shift_id=data.get("shiftId"),
            slots=[SlotPlan.from_dict(s) for s in slots],
        )
        return ok(roster_to_dict(roster, created), 201)

    @app.route("/api/rosters/<roster_id>/publish", methods=["POST"], endpoint="api_publish_roster")
    def api_publish_roster(roster_id: str):
        roster, slots = container.roster_service.publish_roster(current_actor(), roster_id)
        return ok(roster_to_dict(roster, slots))

    @app.route("/api/rosters/<roster_id>", methods=["DELETE"], endpoint="api_delete_roster")
    def api_delete_roster(roster_id: str):
        slots_deleted = container.roster_service.delete_roster(current_actor(), roster_id)
        return ok({"rosterId": roster_id, "slotsDeleted": slots_deleted})

    @app.route("/api/rosters/<roster_id>/actuals", methods=["GET"], endpoint="api_actuals_report")
    def api_actuals_report(roster_id: str):
        report = container.report_service.build_actuals_report(current_actor(), roster_id)
        return ok({"rows": report.rows, "summary": report.summary})

    @app.route("/api/rosters/<roster_id>/actuals/export", methods=["GET"], endpoint="api_actuals_export")
    def api_actuals_export(roster_id: str):
        filename, payload = container.report_service.export_csv(current_actor(), roster_id)
        return app.response_class(
            payload,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
