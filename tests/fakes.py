from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta

from src.team_attendance.team_attendance.attendance.model import (
    CONVERTIBLE_ACTUAL,
    VOTE_TO_ACTUAL,
    AttendanceRecord,
    AttendanceWithEvent,
)
from src.team_attendance.team_attendance.container import wire
from src.team_attendance.team_attendance.core.constants import DUPLICATE_OPEN_REQUEST_MESSAGE
from src.team_attendance.team_attendance.core.enums import (
    ActualStatus,
    EventStatus,
    EventType,
    RequestStatus,
    Role,
    VotedStatus,
)
from src.team_attendance.team_attendance.core.exceptions import ConflictError
from src.team_attendance.team_attendance.core.transitions import OPEN_REQUEST_STATUSES
from src.team_attendance.team_attendance.events.model import Event
from src.team_attendance.team_attendance.points.model import PointLog
from src.team_attendance.team_attendance.staff_requests.model import StaffRequest
from src.team_attendance.team_attendance.users.model import User


class FakeUsersRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, User] = {}

    def add(self, name, number, *, role=Role.PLAYER, tag=None, join_date=date(2026, 1, 1), is_active=True) -> User:
        uid = self._next_id
        self._next_id += 1
        self.rows[uid] = User(
            user_id=uid,
            name=name,
            number=str(number),
            role=role,
            tag=tag,
            position="선수",
            join_date=join_date,
            is_active=is_active,
        )
        return self.rows[uid]

    def bump_total(self, user_id, points) -> int:
        user = self.rows[int(user_id)]
        self.rows[user.user_id] = replace(user, total_points=user.total_points + int(points))
        return self.rows[user.user_id].total_points

    def get_by_id(self, user_id):
        return self.rows.get(int(user_id))

    def get_by_number(self, number):
        return next((u for u in self.rows.values() if u.number == number), None)

    def find_for_login(self, *, name, number):
        return next((u for u in self.rows.values() if u.name == name and u.number == number and u.is_active), None)

    def create_user(self, *, name, number, role, position, join_date, tag=None):
        user = self.add(name, number, role=role, tag=tag, join_date=join_date)
        self.rows[user.user_id] = replace(user, position=position)
        return user.user_id

    def touch_login(self, user_id, *, at):
        self.rows[int(user_id)] = replace(self.rows[int(user_id)], last_login_at=at)

    def set_active(self, user_id, *, is_active):
        if int(user_id) not in self.rows:
            return False
        self.rows[int(user_id)] = replace(self.rows[int(user_id)], is_active=is_active)
        return True

    def set_tag(self, user_id, *, tag):
        if int(user_id) not in self.rows:
            return False
        self.rows[int(user_id)] = replace(self.rows[int(user_id)], tag=tag)
        return True

    def list_active(self):
        return sorted((u for u in self.rows.values() if u.is_active), key=lambda u: u.number)

    def list_by_tags(self, tags):
        return [u for u in self.list_active() if u.role == Role.MANAGER and u.tag in tags]


class FakeEventsRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Event] = {}
        self.on_delete = []

    def add(self, title="정기 훈련", *, start: datetime, status=EventStatus.UPCOMING, **kwargs) -> Event:
        eid = self.create(
            title=title,
            description=None,
            event_date=start.date(),
            event_time=start.time(),
            location=kwargs.pop("location", "잠실"),
            event_type=kwargs.pop("event_type", EventType.REGULAR),
            is_mandatory=kwargs.pop("is_mandatory", True),
            required_staff_count=kwargs.pop("required_staff_count", 15),
            created_by=kwargs.pop("created_by", 1),
        )
        self.rows[eid] = replace(self.rows[eid], status=status)
        return self.rows[eid]

    def get_by_id(self, event_id):
        return self.rows.get(int(event_id))

    def create(
        self,
        *,
        title,
        description,
        event_date,
        event_time,
        location,
        event_type,
        is_mandatory,
        required_staff_count,
        created_by,
    ):
        eid = self._next_id
        self._next_id += 1
        self.rows[eid] = Event(
            event_id=eid,
            title=title,
            description=description,
            date=event_date,
            time=event_time,
            location=location,
            type=event_type,
            status=EventStatus.UPCOMING,
            is_mandatory=is_mandatory,
            required_staff_count=required_staff_count,
            created_by=created_by,
        )
        return eid

    def update_fields(self, event_id, fields):
        event = self.rows.get(int(event_id))
        if not event or not fields:
            return False
        self.rows[event.event_id] = replace(event, **fields)
        return True

    def set_status(self, event_id, *, status, expected):
        event = self.rows.get(int(event_id))
        if not event or event.status not in expected:
            return False
        self.rows[event.event_id] = replace(event, status=status)
        return True

    def delete_with_attendance(self, event_id):
        if int(event_id) not in self.rows:
            return False
        for hook in self.on_delete:
            hook(int(event_id))
        del self.rows[int(event_id)]
        return True

    def list_all(self):
        return sorted(self.rows.values(), key=lambda e: e.starts_at, reverse=True)

    def list_by_status(self, statuses):
        return sorted((e for e in self.rows.values() if e.status in statuses), key=lambda e: e.starts_at)

    def list_started_upcoming(self, *, now):
        return [e for e in self.list_by_status((EventStatus.UPCOMING,)) if e.starts_at <= now]

    def list_in_range(self, *, start, end):
        return sorted((e for e in self.rows.values() if start <= e.date <= end), key=lambda e: e.starts_at)


class FakeAttendanceRepo:
    def __init__(self, events: FakeEventsRepo):
        self._events = events
        self._next_id = 1
        self.rows: dict[tuple[int, int], AttendanceRecord] = {}
        events.on_delete.append(self.delete_for_event)

    def add(self, user_id, event_id, *, voted=VotedStatus.PENDING, actual=ActualStatus.UNKNOWN, reason=None):
        aid = self._next_id
        self._next_id += 1
        self.rows[(int(user_id), int(event_id))] = AttendanceRecord(
            attendance_id=aid,
            user_id=int(user_id),
            event_id=int(event_id),
            voted_status=voted,
            actual_status=actual,
            absence_reason=reason,
        )
        return self.rows[(int(user_id), int(event_id))]

    def delete_for_event(self, event_id):
        for key in [k for k in self.rows if k[1] == event_id]:
            del self.rows[key]

    def _replace(self, record, **changes):
        self.rows[(record.user_id, record.event_id)] = replace(record, **changes)
        return self.rows[(record.user_id, record.event_id)]

    def get_by_id(self, attendance_id):
        return next((r for r in self.rows.values() if r.attendance_id == int(attendance_id)), None)

    def get_for_user_and_event(self, user_id, event_id):
        return self.rows.get((int(user_id), int(event_id)))

    def list_for_event(self, event_id):
        return sorted((r for r in self.rows.values() if r.event_id == int(event_id)), key=lambda r: r.user_id)

    def list_pending_voters(self, event_id):
        return [r for r in self.list_for_event(event_id) if r.voted_status == VotedStatus.PENDING]

    def list_for_user_with_events(self, user_id):
        items = [
            AttendanceWithEvent(record=r, event=self._events.rows[r.event_id])
            for r in self.rows.values()
            if r.user_id == int(user_id) and r.event_id in self._events.rows
        ]
        return sorted(items, key=lambda i: i.event.starts_at)

    def upsert_vote(self, *, user_id, event_id, voted_status, absence_reason, voted_at):
        record = self.rows.get((int(user_id), int(event_id))) or self.add(user_id, event_id)
        record = self._replace(record, voted_status=voted_status, absence_reason=absence_reason, voted_at=voted_at)
        return record.attendance_id

    def create_pending_for_users(self, *, event_id, user_ids):
        created = 0
        for uid in user_ids:
            if (int(uid), int(event_id)) not in self.rows:
                self.add(uid, event_id)
                created += 1
        return created

    def convert_votes(self, *, event_id, confirmed_at):
        changed = 0
        for record in self.list_for_event(event_id):
            if record.actual_status in CONVERTIBLE_ACTUAL:
                self._replace(record, actual_status=VOTE_TO_ACTUAL[record.voted_status], confirmed_at=confirmed_at)
                changed += 1
        return changed

    def set_actual_status(self, *, attendance_id, status, confirmed_at):
        record = self.get_by_id(attendance_id)
        if not record:
            return False
        self._replace(record, actual_status=status, confirmed_at=confirmed_at)
        return True

    def mark_absent(self, *, user_id, event_id, reason, at):
        record = self.rows.get((int(user_id), int(event_id))) or self.add(user_id, event_id)
        self._replace(
            record,
            voted_status=VotedStatus.ABSENT,
            actual_status=ActualStatus.ABSENT,
            absence_reason=reason,
            confirmed_at=at,
            voted_at=record.voted_at or at,
        )


class FakePointsRepo:
    def __init__(self, users: FakeUsersRepo):
        self._users = users
        self.logs: list[PointLog] = []
        self.fail_for: set[int] = set()

    def _insert(self, *, user_id, admin_id, event_id, category, reason, points):
        if int(user_id) in self.fail_for:
            raise RuntimeError("db down")
        if int(user_id) not in self._users.rows:
            raise LookupError("no such user")
        self.logs.append(
            PointLog(
                log_id=len(self.logs) + 1,
                user_id=int(user_id),
                admin_id=admin_id,
                event_id=event_id,
                category=category,
                reason=reason,
                points=int(points),
                created_at=datetime(2026, 3, 1, 9, 0) + timedelta(minutes=len(self.logs)),
            )
        )
        return self._users.bump_total(user_id, points)

    def add_log_with_total(self, *, user_id, admin_id, category, reason, points):
        return self._insert(
            user_id=user_id, admin_id=admin_id, event_id=None, category=category, reason=reason, points=points
        )

    def insert_system_penalty(self, *, user_id, event_id, category, reason, points):
        for log in self.logs:
            if (log.user_id, log.event_id, log.category) == (int(user_id), int(event_id), category):
                return None
        return self._insert(
            user_id=user_id, admin_id=None, event_id=int(event_id), category=category, reason=reason, points=points
        )

    def list_for_user(self, user_id, *, limit=None):
        mine = [log for log in self.logs if log.user_id == int(user_id)]
        return sorted(mine, key=lambda log: log.log_id, reverse=True)[:limit]

    def sum_for_user(self, user_id):
        return sum(log.points for log in self.logs if log.user_id == int(user_id))


class FakeStaffRequestsRepo:
    def __init__(self, attendance: FakeAttendanceRepo, events: FakeEventsRepo):
        self._attendance = attendance
        self._next_id = 1
        self._tick = 0
        self.rows: dict[int, StaffRequest] = {}
        events.on_delete.append(self.delete_for_event)

    def _now(self):
        self._tick += 1
        return datetime(2026, 3, 1, 8, 0) + timedelta(minutes=self._tick)

    def delete_for_event(self, event_id):
        for rid in [rid for rid, r in self.rows.items() if r.event_id == event_id]:
            del self.rows[rid]

    def get_by_id(self, request_id):
        return self.rows.get(int(request_id))

    def find_by_key(self, *, requester_id, event_id, request_type):
        rows = [
            r
            for r in self.rows.values()
            if (r.requester_id, r.event_id, r.request_type) == (int(requester_id), int(event_id), request_type)
        ]
        return sorted(rows, key=lambda r: (r.created_at, r.request_id), reverse=True)

    def _guard_open_slot(self, new, *, except_id=None):
        for r in self.rows.values():
            if r.request_id == except_id or r.status not in OPEN_REQUEST_STATUSES:
                continue
            if (r.requester_id, r.event_id, r.request_type) == (new.requester_id, new.event_id, new.request_type):
                raise ConflictError(DUPLICATE_OPEN_REQUEST_MESSAGE)

    def create(self, new, *, submitted_at):
        self._guard_open_slot(new)
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = StaffRequest(
            request_id=rid,
            status=RequestStatus.SUBMITTED,
            submitted_at=submitted_at,
            created_at=self._now(),
            **vars(new),
        )
        return rid

    def reopen(self, request_id, new, *, submitted_at, expected):
        req = self.rows.get(int(request_id))
        if not req or req.status not in expected:
            return False
        self._guard_open_slot(new, except_id=req.request_id)
        self.rows[req.request_id] = replace(
            req,
            status=RequestStatus.SUBMITTED,
            submitted_at=submitted_at,
            decided_by=None,
            decided_at=None,
            decision_note=None,
            **vars(new),
        )
        return True

    def set_status(self, request_id, *, status, expected, decided_by=None, decided_at=None, decision_note=None):
        req = self.rows.get(int(request_id))
        if not req or req.status not in expected:
            return False
        self.rows[req.request_id] = replace(
            req,
            status=status,
            decided_by=decided_by if decided_by is not None else req.decided_by,
            decided_at=decided_at if decided_at is not None else req.decided_at,
            decision_note=decision_note if decision_note is not None else req.decision_note,
        )
        return True

    def approve_with_absence(self, request_id, *, expected, decided_by, decided_at, decision_note, absence_reason):
        req = self.rows.get(int(request_id))
        if not req or req.status not in expected:
            return False
        self.set_status(
            req.request_id,
            status=RequestStatus.APPROVED,
            expected=expected,
            decided_by=decided_by,
            decided_at=decided_at,
            decision_note=decision_note,
        )
        self._attendance.mark_absent(user_id=req.requester_id, event_id=req.event_id, reason=absence_reason, at=decided_at)
        return True

    def list_by_status(self, statuses):
        rows = [r for r in self.rows.values() if r.status in statuses]
        return sorted(rows, key=lambda r: (-r.priority.rank, r.created_at, r.request_id))

    def list_for_requester(self, requester_id):
        rows = [r for r in self.rows.values() if r.requester_id == int(requester_id) and r.status != RequestStatus.WITHDRAWN]
        return sorted(rows, key=lambda r: (r.created_at, r.request_id), reverse=True)

    def list_for_event(self, event_id):
        rows = [r for r in self.rows.values() if r.event_id == int(event_id)]
        return sorted(rows, key=lambda r: (-r.priority.rank, r.created_at))

    def expire_overdue(self, *, now, statuses):
        expired = 0
        for req in list(self.rows.values()):
            if req.expires_at is not None and req.expires_at <= now and req.status in statuses:
                self.rows[req.request_id] = replace(req, status=RequestStatus.EXPIRED)
                expired += 1
        return expired


class FakeRepos:
    """One consistent in-memory store, wired the same way the app wires MySQL."""

    def __init__(self):
        self.users = FakeUsersRepo()
        self.events = FakeEventsRepo()
        self.attendance = FakeAttendanceRepo(self.events)
        self.points = FakePointsRepo(self.users)
        self.staff_requests = FakeStaffRequestsRepo(self.attendance, self.events)

    def container(self):
        return wire(
            users_repo=self.users,
            events_repo=self.events,
            attendance_repo=self.attendance,
            points_repo=self.points,
            staff_requests_repo=self.staff_requests,
        )
