from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_hhmm, parse_iso_date
from ..common.web import current_user_id, error, json_body, json_errors, login_required, manager_required
from ..core.constants import DEFAULT_REQUIRED_STAFF_COUNT
from ..container import Container


def _event_fields(data: dict) -> dict:
    fields = {k: data[k] for k in ("title", "description", "location", "type") if k in data}
    if data.get("date"):
        fields["date"] = parse_iso_date(str(data["date"]))
    if data.get("time"):
        fields["time"] = parse_hhmm(str(data["time"]))
    if "isMandatory" in data:
        fields["is_mandatory"] = bool(data["isMandatory"])
    if "requiredStaffCount" in data:
        fields["required_staff_count"] = data["requiredStaffCount"]
    return fields


def register(app: Flask, container: Container) -> None:
    @app.route("/events", methods=["GET"], endpoint="events_list")
    @login_required
    @json_errors
    def events_list():
        start = request.args.get("start")
        end = request.args.get("end")
        if start and end:
            events = container.event_service.list_in_range(start=parse_iso_date(start), end=parse_iso_date(end))
        else:
            container.event_service.refresh_all()
            events = container.event_service.list_all()
        return jsonify({"data": [e.to_dict() for e in events]})

    @app.route("/events/upcoming", methods=["GET"], endpoint="events_upcoming")
    @login_required
    @json_errors
    def events_upcoming():
        events = container.event_service.list_upcoming()
        return jsonify({"data": [e.to_dict() for e in events]})

    @app.route("/events/next", methods=["GET"], endpoint="events_next")
    @login_required
    @json_errors
    def events_next():
        event = container.event_service.next_upcoming()
        return jsonify({"data": event.to_dict() if event else None})

    @app.route("/events/<int:event_id>", methods=["GET"], endpoint="events_detail")
    @login_required
    @json_errors
    def events_detail(event_id: int):
        event = container.event_service.refresh_status(container.event_service.get(event_id))
        return jsonify({"data": event.to_dict()})

    @app.route("/events", methods=["POST"], endpoint="events_create")
    @manager_required
    @json_errors
    def events_create():
        data = json_body()
        if not data.get("date") or not data.get("time"):
            return error("날짜와 시간을 입력해주세요.", 400)
        try:
            required_staff_count = int(data.get("requiredStaffCount", DEFAULT_REQUIRED_STAFF_COUNT))
        except (TypeError, ValueError):
            return error("필요 인원은 숫자여야 합니다.", 400)
        event_id = container.event_service.create_event(
            manager_id=current_user_id(),
            title=data.get("title", ""),
            event_date=parse_iso_date(str(data["date"])),
            event_time=parse_hhmm(str(data["time"])),
            location=data.get("location", ""),
            event_type=data.get("type") or "regular",
            description=data.get("description"),
            is_mandatory=bool(data.get("isMandatory", True)),
            required_staff_count=required_staff_count,
        )
        return jsonify({"success": True, "eventId": event_id}), 201

    @app.route("/events/<int:event_id>", methods=["PATCH"], endpoint="events_update")
    @manager_required
    @json_errors
    def events_update(event_id: int):
        event = container.event_service.update_event(
            manager_id=current_user_id(), event_id=event_id, fields=_event_fields(json_body())
        )
        return jsonify({"success": True, "data": event.to_dict()})

    @app.route("/events/<int:event_id>/cancel", methods=["POST"], endpoint="events_cancel")
    @manager_required
    @json_errors
    def events_cancel(event_id: int):
        container.event_service.cancel_event(manager_id=current_user_id(), event_id=event_id)
        return jsonify({"success": True})

    @app.route("/events/<int:event_id>", methods=["DELETE"], endpoint="events_delete")
    @manager_required
    @json_errors
    def events_delete(event_id: int):
        container.event_service.delete_event(manager_id=current_user_id(), event_id=event_id)
        return jsonify({"success": True})
