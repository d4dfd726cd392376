from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_user_id, error, json_body, json_errors, login_required, manager_required
from ..container import Container
from .rules import rules_as_dict


def register(app: Flask, container: Container) -> None:
    @app.route("/points/add", methods=["POST"], endpoint="points_add")
    @json_errors
    def points_add():
        data = json_body()
        user_id = data.get("userId")
        admin_id = data.get("adminId")
        category = data.get("category")
        reason = data.get("reason")
        points = data.get("points")

        if not user_id or not admin_id or not category or not reason or isinstance(points, bool) or not isinstance(points, int):
            return error("필수 값이 누락되었습니다.", 400)

        new_total = container.point_service.add_point_log(
            user_id=int(user_id),
            admin_id=int(admin_id),
            category=category,
            reason=str(reason),
            points=points,
        )
        return jsonify({"success": True, "newTotal": new_total})

    @app.route("/points/logs", methods=["GET"], endpoint="points_logs")
    @json_errors
    def points_logs():
        user_id = request.args.get("userId")
        if not user_id:
            return error("userId가 필요합니다.", 400)
        if not user_id.isdigit():
            return error("userId 형식이 올바르지 않습니다.", 400)
        limit = request.args.get("limit")
        if limit is not None and not limit.isdigit():
            return error("limit은 숫자여야 합니다.", 400)
        logs = container.point_service.list_logs(int(user_id), limit=int(limit) if limit else None)
        return jsonify({"data": [log.to_dict() for log in logs]})

    @app.route("/points/grant", methods=["POST"], endpoint="points_grant")
    @manager_required
    @json_errors
    def points_grant():
        data = json_body()
        if not data.get("userId") or not data.get("category") or not data.get("label"):
            return error("필수 값이 누락되었습니다.", 400)
        new_total = container.point_service.grant_rule(
            user_id=int(data["userId"]),
            admin_id=current_user_id(),
            category=data["category"],
            label=str(data["label"]),
        )
        return jsonify({"success": True, "newTotal": new_total})

    @app.route("/points/ranking", methods=["GET"], endpoint="points_ranking")
    @login_required
    @json_errors
    def points_ranking():
        users = container.point_service.ranking()
        return jsonify({"data": [dict(u.to_dict(), rank=idx) for idx, u in enumerate(users, start=1)]})

    @app.route("/points/rules", methods=["GET"], endpoint="points_rules")
    def points_rules():
        return jsonify({"data": rules_as_dict()})
