from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest

from src.team_attendance.team_attendance.core.enums import ActualStatus, EventStatus, VotedStatus
from src.team_attendance.team_attendance.core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    ValidationError,
)


def _create(container, roster, **overrides):
    kwargs = dict(
        manager_id=roster["head_coach"].user_id,
        title="리그 3차전",
        event_date=date(2026, 3, 14),
        event_time=time(9, 0),
        location="고척",
        event_type="league",
    )
    kwargs.update(overrides)
    return container.event_service.create_event(**kwargs)


def test_create_event_fans_out_pending_rows(container, repos, roster):
    event_id = _create(container, roster)

    event = repos.events.get_by_id(event_id)
    assert event.status == EventStatus.UPCOMING
    assert event.is_mandatory is True
    assert event.required_staff_count == 15

    rows = repos.attendance.list_for_event(event_id)
    assert len(rows) == len(roster)
    assert {r.voted_status for r in rows} == {VotedStatus.PENDING}
    assert {r.actual_status for r in rows} == {ActualStatus.UNKNOWN}


def test_create_event_requires_manager(container, roster):
    with pytest.raises(AuthorizationError):
        _create(container, roster, manager_id=roster["player_a"].user_id)


def test_fan_out_failure_keeps_event(container, repos, roster, monkeypatch, caplog):
    def boom(**kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(repos.attendance, "create_pending_for_users", boom)

    event_id = _create(container, roster)

    assert repos.events.get_by_id(event_id) is not None
    assert "fan-out failed" in caplog.text


def test_update_event_rejects_blank_title(container, repos, roster):
    event_id = _create(container, roster)

    with pytest.raises(ValidationError):
        container.event_service.update_event(
            manager_id=roster["head_coach"].user_id, event_id=event_id, fields={"title": "  "}
        )


def test_cancel_then_cancel_again_is_illegal(container, repos, roster):
    event_id = _create(container, roster)
    container.event_service.cancel_event(manager_id=roster["head_coach"].user_id, event_id=event_id)

    assert repos.events.get_by_id(event_id).status == EventStatus.CANCELLED
    with pytest.raises(InvalidTransitionError):
        container.event_service.cancel_event(manager_id=roster["head_coach"].user_id, event_id=event_id)


def test_delete_event_removes_attendance(container, repos, roster):
    event_id = _create(container, roster)

    container.event_service.delete_event(manager_id=roster["head_coach"].user_id, event_id=event_id)

    assert repos.events.get_by_id(event_id) is None
    assert repos.attendance.list_for_event(event_id) == []


def test_refresh_moves_started_event_to_ongoing_and_converts(container, repos, roster, fixed_now):
    event = repos.events.add(start=fixed_now - timedelta(minutes=30))
    repos.attendance.add(roster["player_a"].user_id, event.event_id, voted=VotedStatus.ATTENDING)
    repos.attendance.add(roster["player_b"].user_id, event.event_id, voted=VotedStatus.ABSENT, reason="출장")

    refreshed = container.event_service.refresh_status(event, now=fixed_now)

    assert refreshed.status == EventStatus.ONGOING
    assert repos.events.get_by_id(event.event_id).status == EventStatus.ONGOING
    a = repos.attendance.get_for_user_and_event(roster["player_a"].user_id, event.event_id)
    b = repos.attendance.get_for_user_and_event(roster["player_b"].user_id, event.event_id)
    assert a.actual_status == ActualStatus.ATTENDED
    assert b.actual_status == ActualStatus.ABSENT


def test_refresh_completes_event_after_three_hours(container, repos, fixed_now):
    event = repos.events.add(start=fixed_now - timedelta(hours=3), status=EventStatus.ONGOING)

    refreshed = container.event_service.refresh_status(event, now=fixed_now)

    assert refreshed.status == EventStatus.COMPLETED


def test_refresh_leaves_future_and_cancelled_events(container, repos, fixed_now):
    future = repos.events.add(start=fixed_now + timedelta(days=1))
    cancelled = repos.events.add(start=fixed_now - timedelta(days=1), status=EventStatus.CANCELLED)

    changed = container.event_service.refresh_all(now=fixed_now)

    assert changed == []
    assert repos.events.get_by_id(future.event_id).status == EventStatus.UPCOMING
    assert repos.events.get_by_id(cancelled.event_id).status == EventStatus.CANCELLED


def test_next_upcoming_skips_started(container, repos, fixed_now):
    repos.events.add("지난 훈련", start=fixed_now - timedelta(minutes=5))
    nxt = repos.events.add("다음 훈련", start=fixed_now + timedelta(days=2))
    repos.events.add("그 다음", start=fixed_now + timedelta(days=5))

    assert container.event_service.next_upcoming(now=fixed_now).event_id == nxt.event_id


def test_list_in_range_validates_order(container):
    with pytest.raises(ValidationError):
        container.event_service.list_in_range(start=date(2026, 3, 10), end=date(2026, 3, 1))
