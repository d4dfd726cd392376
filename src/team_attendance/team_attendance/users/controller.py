from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_enum
from ..common.web import current_user_id, error, json_body, json_errors, login_required, manager_required
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/auth/login", methods=["POST"], endpoint="login")
    @json_errors
    def login():
        data = json_body()
        s_user = container.auth_service.authenticate(str(data.get("name", "")), str(data.get("number", "")))

        session.permanent = bool(data.get("remember"))
        app.permanent_session_lifetime = timedelta(days=30)
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["number"] = s_user.number
        session["role"] = s_user.role.value
        session["tag"] = s_user.tag

        return jsonify({"success": True, "user": container.user_service.get(s_user.user_id).to_dict()})

    @app.route("/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/auth/signup", methods=["POST"], endpoint="signup")
    @json_errors
    def signup():
        data = json_body()
        join_date = data.get("joinDate")
        user_id = container.user_service.sign_up(
            name=str(data.get("name", "")),
            number=str(data.get("number", "")),
            role=require_enum(Role, data.get("role") or Role.PLAYER, "역할"),
            position=data.get("position"),
            join_date=parse_iso_date(join_date) if join_date else None,
        )
        return jsonify({"success": True, "userId": user_id}), 201

    @app.route("/auth/check-number", methods=["GET"], endpoint="check_number")
    @json_errors
    def check_number():
        number = request.args.get("number", "")
        if not number.strip():
            return error("number가 필요합니다.", 400)
        return jsonify({"available": container.user_service.is_number_available(number)})

    @app.route("/auth/me", methods=["GET"], endpoint="me")
    @login_required
    @json_errors
    def me():
        return jsonify({"user": container.user_service.get(current_user_id()).to_dict()})

    @app.route("/users", methods=["GET"], endpoint="users_list")
    @login_required
    @json_errors
    def users_list():
        return jsonify({"data": [u.to_dict() for u in container.user_service.list_active()]})

    @app.route("/admin/users/<int:user_id>/deactivate", methods=["POST"], endpoint="admin_deactivate_user")
    @manager_required
    @json_errors
    def admin_deactivate_user(user_id: int):
        container.user_service.deactivate(manager_id=current_user_id(), user_id=user_id)
        return jsonify({"success": True})

    @app.route("/admin/users/<int:user_id>/tag", methods=["POST"], endpoint="admin_set_tag")
    @manager_required
    @json_errors
    def admin_set_tag(user_id: int):
        container.user_service.assign_tag(manager_id=current_user_id(), user_id=user_id, tag=json_body().get("tag"))
        return jsonify({"success": True})
