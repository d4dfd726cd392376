from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.constants import DUPLICATE_OPEN_REQUEST_MESSAGE
from ..core.enums import ActualStatus, ReasonCategory, RequestPriority, RequestStatus, RequestType, VotedStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_mysql_time
from .model import NewStaffRequest, StaffRequest
from .repository import StaffRequestRepository

_SELECT = """
    SELECT r.request_id, r.requester_id, r.event_id, r.request_type,
           r.late_arrival_time, r.early_departure_time, r.partial_start_time, r.partial_end_time,
           r.reason_category, r.reason_detail, r.priority,
           r.has_substitute, r.substitute_user_id, r.substitute_notes,
           r.status, r.submitted_at, r.expires_at,
           r.decided_by, r.decided_at, r.decision_note, r.created_at,
           u.name AS requester_name, u.tag AS requester_tag
    FROM staff_requests r
    JOIN users u ON u.user_id = r.requester_id
"""

_PRIORITY_FIELD = "FIELD(r.priority, {})".format(
    ",".join(f"'{p.value}'" for p in sorted(RequestPriority, key=lambda p: p.rank))
)


@contextmanager
def _open_slot_guard():
    """uq_staff_requests_open allows one open request per (requester, event, request_type)."""

    try:
        yield
    except IntegrityError as e:
        if e.errno == errorcode.ER_DUP_ENTRY:
            raise ConflictError(DUPLICATE_OPEN_REQUEST_MESSAGE) from e
        raise

def row_to_staff_request(r: dict) -> StaffRequest:
    return StaffRequest(
        request_id=int(r["request_id"]),
        requester_id=int(r["requester_id"]),
        event_id=int(r["event_id"]),
        request_type=RequestType(r["request_type"]),
        late_arrival_time=normalize_mysql_time(r.get("late_arrival_time")),
        early_departure_time=normalize_mysql_time(r.get("early_departure_time")),
        partial_start_time=normalize_mysql_time(r.get("partial_start_time")),
        partial_end_time=normalize_mysql_time(r.get("partial_end_time")),
        reason_category=ReasonCategory(r["reason_category"]),
        reason_detail=r["reason_detail"],
        priority=RequestPriority(r["priority"]),
        has_substitute=bool(r.get("has_substitute")),
        substitute_user_id=int(r["substitute_user_id"]) if r.get("substitute_user_id") is not None else None,
        substitute_notes=r.get("substitute_notes"),
        status=RequestStatus(r["status"]),
        submitted_at=r.get("submitted_at"),
        expires_at=r.get("expires_at"),
        decided_by=int(r["decided_by"]) if r.get("decided_by") is not None else None,
        decided_at=r.get("decided_at"),
        decision_note=r.get("decision_note"),
        created_at=r.get("created_at"),
        requester_name=r.get("requester_name"),
        requester_tag=r.get("requester_tag"),
    )


def _body_params(new: NewStaffRequest) -> tuple:
    return (
        new.request_type.value,
        new.late_arrival_time,
        new.early_departure_time,
        new.partial_start_time,
        new.partial_end_time,
        new.reason_category.value,
        new.reason_detail,
        new.priority.value,
        1 if new.has_substitute else 0,
        new.substitute_user_id,
        new.substitute_notes,
        new.expires_at,
    )


class MySQLStaffRequestRepository(StaffRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, request_id: int) -> Optional[StaffRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE r.request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return row_to_staff_request(r) if r else None

    def find_by_key(self, *, requester_id: int, event_id: int, request_type: RequestType) -> Sequence[StaffRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_SELECT}
                WHERE r.requester_id=%s AND r.event_id=%s AND r.request_type=%s
                ORDER BY r.created_at DESC, r.request_id DESC
                """,
                (int(requester_id), int(event_id), request_type.value),
            )
            return [row_to_staff_request(r) for r in fetchall(cur)]

    def create(self, new: NewStaffRequest, *, submitted_at: datetime) -> int:
        with _open_slot_guard(), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO staff_requests(
                    requester_id, event_id, request_type,
                    late_arrival_time, early_departure_time, partial_start_time, partial_end_time,
                    reason_category, reason_detail, priority,
                    has_substitute, substitute_user_id, substitute_notes, expires_at,
                    status, submitted_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(new.requester_id),
                    int(new.event_id),
                    *_body_params(new),
                    RequestStatus.SUBMITTED.value,
                    submitted_at,
                ),
            )
            return int(cur.lastrowid)

    def reopen(
        self,
        request_id: int,
        new: NewStaffRequest,
        *,
        submitted_at: datetime,
        expected: Sequence[RequestStatus],
    ) -> bool:
        with _open_slot_guard(), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE staff_requests
                SET request_type=%s,
                    late_arrival_time=%s, early_departure_time=%s,
                    partial_start_time=%s, partial_end_time=%s,
                    reason_category=%s, reason_detail=%s, priority=%s,
                    has_substitute=%s, substitute_user_id=%s, substitute_notes=%s, expires_at=%s,
                    status=%s, submitted_at=%s,
                    decided_by=NULL, decided_at=NULL, decision_note=NULL
                WHERE request_id=%s AND status IN {in_clause(expected)}
                """,
                (
                    *_body_params(new),
                    RequestStatus.SUBMITTED.value,
                    submitted_at,
                    int(request_id),
                    *[s.value for s in expected],
                ),
            )
            return cur.rowcount > 0

    def set_status(
        self,
        request_id: int,
        *,
        status: RequestStatus,
        expected: Sequence[RequestStatus],
        decided_by: Optional[int] = None,
        decided_at: Optional[datetime] = None,
        decision_note: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE staff_requests
                SET status=%s,
                    decided_by=COALESCE(%s, decided_by),
                    decided_at=COALESCE(%s, decided_at),
                    decision_note=COALESCE(%s, decision_note)
                WHERE request_id=%s AND status IN {in_clause(expected)}
                """,
                (status.value, decided_by, decided_at, decision_note, int(request_id), *[s.value for s in expected]),
            )
            return cur.rowcount > 0

    def approve_with_absence(
        self,
        request_id: int,
        *,
        expected: Sequence[RequestStatus],
        decided_by: int,
        decided_at: datetime,
        decision_note: Optional[str],
        absence_reason: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE staff_requests
                SET status=%s, decided_by=%s, decided_at=%s, decision_note=COALESCE(%s, decision_note)
                WHERE request_id=%s AND status IN {in_clause(expected)}
                """,
                (
                    RequestStatus.APPROVED.value,
                    int(decided_by),
                    decided_at,
                    decision_note,
                    int(request_id),
                    *[s.value for s in expected],
                ),
            )
            if cur.rowcount == 0:
                return False

            cur.execute("SELECT requester_id, event_id FROM staff_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            cur.execute(
                """
                INSERT INTO attendance(user_id, event_id, voted_status, voted_at, actual_status, confirmed_at, absence_reason)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    voted_status=VALUES(voted_status),
                    actual_status=VALUES(actual_status),
                    confirmed_at=VALUES(confirmed_at),
                    absence_reason=VALUES(absence_reason)
                """,
                (
                    int(r["requester_id"]),
                    int(r["event_id"]),
                    VotedStatus.ABSENT.value,
                    decided_at,
                    ActualStatus.ABSENT.value,
                    decided_at,
                    absence_reason,
                ),
            )
            return True

    def list_by_status(self, statuses: Sequence[RequestStatus]) -> Sequence[StaffRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_SELECT}
                WHERE r.status IN {in_clause(statuses)}
                ORDER BY {_PRIORITY_FIELD} DESC, r.created_at ASC, r.request_id ASC
                """,
                tuple(s.value for s in statuses),
            )
            return [row_to_staff_request(r) for r in fetchall(cur)]

    def list_for_requester(self, requester_id: int) -> Sequence[StaffRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_SELECT}
                WHERE r.requester_id=%s AND r.status<>%s
                ORDER BY r.created_at DESC, r.request_id DESC
                """,
                (int(requester_id), RequestStatus.WITHDRAWN.value),
            )
            return [row_to_staff_request(r) for r in fetchall(cur)]

    def list_for_event(self, event_id: int) -> Sequence[StaffRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_SELECT}
                WHERE r.event_id=%s
                ORDER BY {_PRIORITY_FIELD} DESC, r.created_at ASC
                """,
                (int(event_id),),
            )
            return [row_to_staff_request(r) for r in fetchall(cur)]

    def expire_overdue(self, *, now: datetime, statuses: Sequence[RequestStatus]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE staff_requests
                SET status=%s
                WHERE expires_at IS NOT NULL AND expires_at <= %s AND status IN {in_clause(statuses)}
                """,
                (RequestStatus.EXPIRED.value, now, *[s.value for s in statuses]),
            )
            return cur.rowcount
