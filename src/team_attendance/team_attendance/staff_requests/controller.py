from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_datetime
from ..common.web import current_user_id, error, json_body, json_errors, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.staff_request_service

    @app.route("/staff-requests", methods=["GET"], endpoint="staff_requests_mine")
    @login_required
    @json_errors
    def staff_requests_mine():
        event_id = request.args.get("eventId")
        if event_id:
            if not event_id.isdigit():
                return error("eventId 형식이 올바르지 않습니다.", 400)
            rows = service.list_for_event(int(event_id))
        else:
            rows = service.list_my_requests(current_user_id())
        return jsonify({"data": [r.to_dict() for r in rows]})

    @app.route("/staff-requests", methods=["POST"], endpoint="staff_requests_create")
    @login_required
    @json_errors
    def staff_requests_create():
        data = json_body()
        if not data.get("eventId"):
            return error("eventId가 필요합니다.", 400)
        request_id = service.create_request(
            requester_id=current_user_id(),
            event_id=int(data["eventId"]),
            request_type=data.get("requestType", ""),
            reason_category=data.get("reasonCategory"),
            reason_detail=data.get("reasonDetail", ""),
            priority=data.get("priority"),
            late_arrival_time=data.get("lateArrivalTime"),
            early_departure_time=data.get("earlyDepartureTime"),
            partial_start_time=data.get("partialStartTime"),
            partial_end_time=data.get("partialEndTime"),
            has_substitute=bool(data.get("hasSubstitute")),
            substitute_user_id=data.get("substituteUserId"),
            substitute_notes=data.get("substituteNotes"),
            expires_at=parse_iso_datetime(data.get("expiresAt")),
        )
        return jsonify({"success": True, "requestId": request_id}), 201

    @app.route("/staff-requests/pending", methods=["GET"], endpoint="staff_requests_pending")
    @login_required
    @json_errors
    def staff_requests_pending():
        rows = service.list_pending_for_approver(current_user_id())
        return jsonify({"data": [r.to_dict() for r in rows]})

    @app.route("/staff-requests/coaching-staff", methods=["GET"], endpoint="staff_requests_coaching_staff")
    @login_required
    @json_errors
    def staff_requests_coaching_staff():
        return jsonify({"data": [u.to_dict() for u in service.coaching_staff()]})

    @app.route("/staff-requests/<int:request_id>/withdraw", methods=["POST"], endpoint="staff_requests_withdraw")
    @login_required
    @json_errors
    def staff_requests_withdraw(request_id: int):
        service.withdraw(requester_id=current_user_id(), request_id=request_id)
        return jsonify({"success": True})

    @app.route("/staff-requests/<int:request_id>/review", methods=["POST"], endpoint="staff_requests_review")
    @login_required
    @json_errors
    def staff_requests_review(request_id: int):
        service.mark_under_review(approver_id=current_user_id(), request_id=request_id)
        return jsonify({"success": True})

    @app.route("/staff-requests/<int:request_id>/approve", methods=["POST"], endpoint="staff_requests_approve")
    @login_required
    @json_errors
    def staff_requests_approve(request_id: int):
        data = json_body()
        service.approve(
            approver_id=current_user_id(),
            request_id=request_id,
            note=data.get("note"),
            conditional=bool(data.get("conditional")),
        )
        return jsonify({"success": True})

    @app.route("/staff-requests/<int:request_id>/reject", methods=["POST"], endpoint="staff_requests_reject")
    @login_required
    @json_errors
    def staff_requests_reject(request_id: int):
        service.reject(approver_id=current_user_id(), request_id=request_id, note=json_body().get("note"))
        return jsonify({"success": True})
