from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import ActualStatus, VotedStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from ..events.mysql_event_repository import row_to_event
from .model import CONVERTIBLE_ACTUAL, VOTE_TO_ACTUAL, AttendanceRecord, AttendanceWithEvent
from .repository import AttendanceRepository

_COLUMNS = """
    a.attendance_id, a.user_id, a.event_id, a.voted_status, a.voted_at,
    a.actual_status, a.confirmed_at, a.absence_reason, a.notes
"""


def row_to_attendance(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        event_id=int(r["event_id"]),
        voted_status=VotedStatus(r["voted_status"]),
        actual_status=ActualStatus(r["actual_status"]),
        voted_at=r.get("voted_at"),
        confirmed_at=r.get("confirmed_at"),
        absence_reason=r.get("absence_reason"),
        notes=r.get("notes"),
    )


def _conversion_case() -> tuple[str, tuple]:
    """CASE expression mapping voted_status to actual_status."""

    whens = " ".join("WHEN %s THEN %s" for _ in VOTE_TO_ACTUAL)
    params: list = []
    for vote, actual in VOTE_TO_ACTUAL.items():
        params.extend([vote.value, actual.value])
    return f"CASE voted_status {whens} ELSE actual_status END", tuple(params)


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance a WHERE a.attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return row_to_attendance(r) if r else None

    def get_for_user_and_event(self, user_id: int, event_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance a WHERE a.user_id=%s AND a.event_id=%s",
                (int(user_id), int(event_id)),
            )
            r = fetchone(cur)
            return row_to_attendance(r) if r else None

    def list_for_event(self, event_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance a
                JOIN users u ON u.user_id = a.user_id
                WHERE a.event_id=%s
                ORDER BY u.number ASC
                """,
                (int(event_id),),
            )
            return [row_to_attendance(r) for r in fetchall(cur)]

    def list_pending_voters(self, event_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance a WHERE a.event_id=%s AND a.voted_status=%s",
                (int(event_id), VotedStatus.PENDING.value),
            )
            return [row_to_attendance(r) for r in fetchall(cur)]

    def list_for_user_with_events(self, user_id: int) -> Sequence[AttendanceWithEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS},
                       e.title, e.description, e.date, e.time,
                       e.location, e.type, e.is_mandatory, e.required_staff_count,
                       e.status, e.created_by
                FROM attendance a
                JOIN events e ON e.event_id = a.event_id
                WHERE a.user_id=%s
                ORDER BY e.date ASC, e.time ASC
                """,
                (int(user_id),),
            )
            return [
                AttendanceWithEvent(record=row_to_attendance(r), event=row_to_event(r))
                for r in fetchall(cur)
            ]

    def upsert_vote(
        self,
        *,
        user_id: int,
        event_id: int,
        voted_status: VotedStatus,
        absence_reason: Optional[str],
        voted_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(user_id, event_id, voted_status, voted_at, actual_status, absence_reason)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    attendance_id=LAST_INSERT_ID(attendance_id),
                    voted_status=VALUES(voted_status),
                    voted_at=VALUES(voted_at),
                    absence_reason=VALUES(absence_reason)
                """,
                (
                    int(user_id),
                    int(event_id),
                    voted_status.value,
                    voted_at,
                    ActualStatus.UNKNOWN.value,
                    absence_reason,
                ),
            )
            return int(cur.lastrowid)

    def create_pending_for_users(self, *, event_id: int, user_ids: Sequence[int]) -> int:
        if not user_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT IGNORE INTO attendance(user_id, event_id, voted_status, actual_status)
                VALUES(%s,%s,%s,%s)
                """,
                [
                    (int(uid), int(event_id), VotedStatus.PENDING.value, ActualStatus.UNKNOWN.value)
                    for uid in user_ids
                ],
            )
            return max(cur.rowcount, 0)

    def convert_votes(self, *, event_id: int, confirmed_at: datetime) -> int:
        case_sql, case_params = _conversion_case()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance
                SET actual_status={case_sql}, confirmed_at=%s
                WHERE event_id=%s AND actual_status IN {in_clause(CONVERTIBLE_ACTUAL)}
                """,
                (*case_params, confirmed_at, int(event_id), *[s.value for s in CONVERTIBLE_ACTUAL]),
            )
            return cur.rowcount

    def set_actual_status(self, *, attendance_id: int, status: ActualStatus, confirmed_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance SET actual_status=%s, confirmed_at=%s WHERE attendance_id=%s",
                (status.value, confirmed_at, int(attendance_id)),
            )
            return cur.rowcount > 0
