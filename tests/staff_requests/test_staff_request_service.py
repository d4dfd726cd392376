from __future__ import annotations

from datetime import timedelta

import pytest

from src.team_attendance.team_attendance.core.enums import ActualStatus, RequestStatus, VotedStatus
from src.team_attendance.team_attendance.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
    ValidationError,
)


@pytest.fixture
def event(repos, fixed_now):
    return repos.events.add(start=fixed_now + timedelta(days=2))


@pytest.fixture
def file_request(container, event, fixed_now):
    def _file(requester, **overrides):
        kwargs = dict(
            requester_id=requester.user_id,
            event_id=event.event_id,
            request_type="absence",
            reason_category="work",
            reason_detail="회사 야근",
            now=fixed_now,
        )
        kwargs.update(overrides)
        return container.staff_request_service.create_request(**kwargs)

    return _file


def test_only_coaching_staff_can_file(file_request, roster):
    with pytest.raises(AuthorizationError):
        file_request(roster["player_a"])
    with pytest.raises(AuthorizationError):
        file_request(roster["chairman"])


def test_cannot_file_for_started_event(container, repos, roster, fixed_now):
    started = repos.events.add(start=fixed_now - timedelta(minutes=5))

    with pytest.raises(ValidationError):
        container.staff_request_service.create_request(
            requester_id=roster["chief_coach"].user_id,
            event_id=started.event_id,
            request_type="absence",
            reason_detail="x",
            now=fixed_now,
        )


def test_duplicate_open_request_conflicts(file_request, roster):
    file_request(roster["chief_coach"])

    with pytest.raises(ConflictError, match="이미 처리 중인 같은 유형의 요청이 있습니다."):
        file_request(roster["chief_coach"], reason_detail="다른 사유")


def test_other_request_type_is_independent(file_request, roster):
    first = file_request(roster["chief_coach"])
    second = file_request(roster["chief_coach"], request_type="late_arrival", late_arrival_time="19:30")

    assert first != second


def test_rejected_request_row_is_reused(container, repos, file_request, roster, fixed_now):
    rid = file_request(roster["chief_coach"])
    container.staff_request_service.reject(
        approver_id=roster["head_coach"].user_id, request_id=rid, note="인원 부족", now=fixed_now
    )

    again = file_request(roster["chief_coach"], reason_detail="가족 행사")

    req = repos.staff_requests.get_by_id(again)
    assert again == rid
    assert len(repos.staff_requests.rows) == 1
    assert req.status == RequestStatus.SUBMITTED
    assert req.reason_detail == "가족 행사"
    assert req.decided_by is None and req.decision_note is None


def test_approved_request_is_not_reused(container, repos, file_request, roster, fixed_now):
    rid = file_request(roster["chief_coach"])
    container.staff_request_service.approve(approver_id=roster["head_coach"].user_id, request_id=rid, now=fixed_now)

    again = file_request(roster["chief_coach"])

    assert again != rid
    assert repos.staff_requests.get_by_id(rid).status == RequestStatus.APPROVED


def test_withdraw_then_refile(container, repos, file_request, roster):
    rid = file_request(roster["pitching_coach"])

    container.staff_request_service.withdraw(requester_id=roster["pitching_coach"].user_id, request_id=rid)

    assert repos.staff_requests.get_by_id(rid).status == RequestStatus.WITHDRAWN
    assert container.staff_request_service.list_my_requests(roster["pitching_coach"].user_id) == []
    assert file_request(roster["pitching_coach"]) == rid


def test_only_requester_can_withdraw(container, file_request, roster):
    rid = file_request(roster["pitching_coach"])

    with pytest.raises(AuthorizationError):
        container.staff_request_service.withdraw(requester_id=roster["chief_coach"].user_id, request_id=rid)


def test_approved_request_cannot_be_withdrawn(container, file_request, roster, fixed_now):
    rid = file_request(roster["pitching_coach"])
    container.staff_request_service.approve(approver_id=roster["head_coach"].user_id, request_id=rid, now=fixed_now)

    with pytest.raises(InvalidTransitionError):
        container.staff_request_service.withdraw(requester_id=roster["pitching_coach"].user_id, request_id=rid)


def test_approval_marks_requester_absent(container, repos, event, file_request, roster, fixed_now):
    coach = roster["pitching_coach"]
    rid = file_request(coach)

    container.staff_request_service.approve(
        approver_id=roster["head_coach"].user_id, request_id=rid, note="확인", now=fixed_now
    )

    req = repos.staff_requests.get_by_id(rid)
    record = repos.attendance.get_for_user_and_event(coach.user_id, event.event_id)
    assert req.status == RequestStatus.APPROVED
    assert req.decided_by == roster["head_coach"].user_id
    assert req.decision_note == "확인"
    assert record.voted_status == VotedStatus.ABSENT
    assert record.actual_status == ActualStatus.ABSENT
    assert record.absence_reason == f"스태프 요청 승인 #{rid}: 회사 야근"


def test_conditional_approval_leaves_attendance_alone(container, repos, event, file_request, roster, fixed_now):
    coach = roster["chief_coach"]
    rid = file_request(coach)

    container.staff_request_service.approve(
        approver_id=roster["head_coach"].user_id, request_id=rid, conditional=True, now=fixed_now
    )

    assert repos.staff_requests.get_by_id(rid).status == RequestStatus.CONDITIONALLY_APPROVED
    assert repos.attendance.get_for_user_and_event(coach.user_id, event.event_id) is None

    container.staff_request_service.approve(approver_id=roster["head_coach"].user_id, request_id=rid, now=fixed_now)

    assert repos.staff_requests.get_by_id(rid).status == RequestStatus.APPROVED
    assert repos.attendance.get_for_user_and_event(coach.user_id, event.event_id).actual_status == ActualStatus.ABSENT


def test_chairman_cannot_decide_on_assistant_coach(container, repos, event, file_request, roster, fixed_now):
    coach = roster["pitching_coach"]
    repos.attendance.add(coach.user_id, event.event_id, voted=VotedStatus.ATTENDING)
    rid = file_request(coach)

    with pytest.raises(AuthorizationError, match="단장은 감독의 요청만 승인할 수 있습니다."):
        container.staff_request_service.approve(
            approver_id=roster["chairman"].user_id, request_id=rid, now=fixed_now
        )

    assert repos.staff_requests.get_by_id(rid).status == RequestStatus.SUBMITTED
    assert repos.attendance.get_for_user_and_event(coach.user_id, event.event_id).voted_status == VotedStatus.ATTENDING


def test_chairman_decides_on_head_coach(container, repos, file_request, roster, fixed_now):
    rid = file_request(roster["head_coach"])

    with pytest.raises(AuthorizationError):
        container.staff_request_service.reject(approver_id=roster["head_coach"].user_id, request_id=rid)
    container.staff_request_service.reject(approver_id=roster["chairman"].user_id, request_id=rid, now=fixed_now)

    assert repos.staff_requests.get_by_id(rid).status == RequestStatus.REJECTED


def test_review_then_reject(container, repos, file_request, roster, fixed_now):
    rid = file_request(roster["chief_coach"])
    svc = container.staff_request_service

    svc.mark_under_review(approver_id=roster["head_coach"].user_id, request_id=rid)
    svc.reject(approver_id=roster["head_coach"].user_id, request_id=rid, note="대체 인원 없음", now=fixed_now)

    assert repos.staff_requests.get_by_id(rid).status == RequestStatus.REJECTED
    with pytest.raises(InvalidTransitionError):
        svc.approve(approver_id=roster["head_coach"].user_id, request_id=rid, now=fixed_now)


def test_pending_sorted_by_priority_then_age(container, file_request, roster):
    low = file_request(roster["chief_coach"], priority="low")
    urgent = file_request(roster["pitching_coach"], priority="urgent")
    medium = file_request(roster["chief_coach"], request_type="early_departure", early_departure_time="20:00")
    emergency = file_request(roster["head_coach"], priority="emergency")

    pending = container.staff_request_service.list_pending()
    mine = container.staff_request_service.list_pending_for_approver(roster["head_coach"].user_id)
    chairman = container.staff_request_service.list_pending_for_approver(roster["chairman"].user_id)

    assert [r.request_id for r in pending] == [emergency, urgent, medium, low]
    assert [r.request_id for r in mine] == [urgent, medium, low]
    assert [r.request_id for r in chairman] == [emergency]


def test_overdue_requests_expire(container, repos, file_request, roster, fixed_now):
    rid = file_request(roster["chief_coach"], expires_at=fixed_now + timedelta(hours=1))
    keep = file_request(roster["pitching_coach"])

    expired = container.staff_request_service.expire_overdue(now=fixed_now + timedelta(hours=2))

    assert expired == 1
    assert repos.staff_requests.get_by_id(rid).status == RequestStatus.EXPIRED
    assert repos.staff_requests.get_by_id(keep).status == RequestStatus.SUBMITTED


def test_expiry_must_be_in_the_future(file_request, roster, fixed_now):
    with pytest.raises(ValidationError):
        file_request(roster["chief_coach"], expires_at=fixed_now)


@pytest.mark.parametrize(
    "start, end",
    [("19:00", None), (None, "20:00"), ("20:00", "19:00"), ("20:00", "20:00")],
)
def test_partial_absence_needs_ordered_window(file_request, roster, start, end):
    with pytest.raises(ValidationError):
        file_request(
            roster["chief_coach"],
            request_type="partial_absence",
            partial_start_time=start,
            partial_end_time=end,
        )


def test_late_arrival_keeps_only_its_own_time(container, file_request, roster):
    rid = file_request(
        roster["chief_coach"],
        request_type="late_arrival",
        late_arrival_time="19:30",
        early_departure_time="21:00",
    )

    req = container.staff_request_service.get(rid)
    assert req.to_dict()["late_arrival_time"] == "19:30"
    assert req.early_departure_time is None


def test_substitute_must_be_someone_else(file_request, roster):
    coach = roster["chief_coach"]

    with pytest.raises(ValidationError):
        file_request(coach, has_substitute=True)
    with pytest.raises(ValidationError):
        file_request(coach, has_substitute=True, substitute_user_id=coach.user_id)
    with pytest.raises(ValidationError):
        file_request(coach, has_substitute=True, substitute_user_id=999)


def test_storage_rejects_second_open_request_for_same_key(repos, monkeypatch, file_request, roster):
    first = file_request(roster["chief_coach"])
    # Two submissions racing past the lookup both see no existing row.
    monkeypatch.setattr(repos.staff_requests, "find_by_key", lambda **kwargs: [])

    with pytest.raises(ConflictError, match="이미 처리 중인 같은 유형의 요청이 있습니다."):
        file_request(roster["chief_coach"], reason_detail="다른 사유")

    assert list(repos.staff_requests.rows) == [first]
