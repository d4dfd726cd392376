from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_user_id, error, json_body, json_errors, login_required, manager_required
from ..core.constants import DEFAULT_OVERVIEW_EVENTS
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/events/<int:event_id>/vote", methods=["POST"], endpoint="attendance_vote")
    @login_required
    @json_errors
    def attendance_vote(event_id: int):
        data = json_body()
        record = container.attendance_service.submit_vote(
            user_id=current_user_id(),
            event_id=event_id,
            vote=data.get("vote", ""),
            reason=data.get("reason"),
        )
        return jsonify({"success": True, "data": record.to_dict() if record else None})

    @app.route("/events/<int:event_id>/my-attendance", methods=["GET"], endpoint="attendance_mine")
    @login_required
    @json_errors
    def attendance_mine(event_id: int):
        record = container.attendance_service.get_user_event_attendance(current_user_id(), event_id)
        return jsonify(
            {
                "data": record.to_dict() if record else None,
                "vote": container.attendance_service.effective_vote(current_user_id(), event_id).value,
            }
        )

    @app.route("/events/<int:event_id>/attendance", methods=["GET"], endpoint="attendance_for_event")
    @login_required
    @json_errors
    def attendance_for_event(event_id: int):
        records = container.attendance_service.list_event_attendance(event_id)
        return jsonify({"data": [r.to_dict() for r in records]})

    @app.route("/attendance/<int:attendance_id>/actual", methods=["POST"], endpoint="attendance_set_actual")
    @manager_required
    @json_errors
    def attendance_set_actual(attendance_id: int):
        record = container.attendance_service.set_actual_status(
            manager_id=current_user_id(),
            attendance_id=attendance_id,
            status=json_body().get("status", ""),
        )
        return jsonify({"success": True, "data": record.to_dict() if record else None})

    @app.route("/attendance/overview", methods=["GET"], endpoint="attendance_overview")
    @login_required
    @json_errors
    def attendance_overview():
        try:
            limit = int(request.args.get("limit", DEFAULT_OVERVIEW_EVENTS))
        except ValueError:
            return error("limit은 숫자여야 합니다.", 400)
        staff_only = request.args.get("staffOnly", "").lower() in {"1", "true", "yes"}
        container.event_service.refresh_all()
        data = container.attendance_service.event_vote_overview(limit=limit, coaching_staff_only=staff_only)
        return jsonify({"data": data})

    @app.route("/stats/me", methods=["GET"], endpoint="stats_me")
    @login_required
    @json_errors
    def stats_me():
        return jsonify({"data": container.attendance_stats_service.user_stats(current_user_id()).to_dict()})

    @app.route("/stats/ranking", methods=["GET"], endpoint="stats_ranking")
    @login_required
    @json_errors
    def stats_ranking():
        rows = container.attendance_stats_service.ranking()
        return jsonify(
            {
                "data": [
                    {"user": user.to_dict(), "stats": stats.to_dict(), "rank": idx}
                    for idx, (user, stats) in enumerate(rows, start=1)
                ]
            }
        )
