from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Sequence

from ..core.enums import EventStatus, EventType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_mysql_time
from .model import Event
from .repository import EventRepository

_COLUMNS = """
    event_id, title, description, date, time, location, type,
    is_mandatory, required_staff_count, status, created_by
"""

_UPDATABLE = ("title", "description", "date", "time", "location", "type", "is_mandatory", "required_staff_count")


def row_to_event(r: dict) -> Event:
    return Event(
        event_id=int(r["event_id"]),
        title=r["title"],
        description=r.get("description"),
        date=r["date"],
        time=normalize_mysql_time(r["time"]),
        location=r["location"],
        type=EventType(r["type"]),
        is_mandatory=bool(r.get("is_mandatory", True)),
        required_staff_count=int(r.get("required_staff_count") or 0),
        status=EventStatus(r["status"]),
        created_by=r.get("created_by"),
    )


class MySQLEventRepository(EventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, event_id: int) -> Optional[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM events WHERE event_id=%s", (int(event_id),))
            r = fetchone(cur)
            return row_to_event(r) if r else None

    def create(
        self,
        *,
        title: str,
        description: Optional[str],
        event_date: date,
        event_time: time,
        location: str,
        event_type: EventType,
        is_mandatory: bool,
        required_staff_count: int,
        created_by: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO events(
                    title, description, date, time, location, type,
                    is_mandatory, required_staff_count, status, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    title,
                    description,
                    event_date,
                    event_time,
                    location,
                    event_type.value,
                    1 if is_mandatory else 0,
                    int(required_staff_count),
                    EventStatus.UPCOMING.value,
                    int(created_by),
                ),
            )
            return int(cur.lastrowid)

    def update_fields(self, event_id: int, fields: dict) -> bool:
        cols = [c for c in _UPDATABLE if c in fields]
        if not cols:
            return False
        assignments = ", ".join(f"`{c}`=%s" for c in cols)
        params = []
        for c in cols:
            v = fields[c]
            params.append(v.value if isinstance(v, EventType) else v)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE events SET {assignments} WHERE event_id=%s", (*params, int(event_id)))
            return cur.rowcount > 0

    def set_status(self, event_id: int, *, status: EventStatus, expected: Sequence[EventStatus]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE events SET status=%s WHERE event_id=%s AND status IN {in_clause(expected)}",
                (status.value, int(event_id), *[s.value for s in expected]),
            )
            return cur.rowcount > 0

    def delete_with_attendance(self, event_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance WHERE event_id=%s", (int(event_id),))
            cur.execute("DELETE FROM staff_requests WHERE event_id=%s", (int(event_id),))
            cur.execute("DELETE FROM events WHERE event_id=%s", (int(event_id),))
            return cur.rowcount > 0

    def list_all(self) -> Sequence[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM events ORDER BY date DESC, time DESC")
            return [row_to_event(r) for r in fetchall(cur)]

    def list_by_status(self, statuses: Sequence[EventStatus]) -> Sequence[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM events
                WHERE status IN {in_clause(statuses)}
                ORDER BY date ASC, time ASC
                """,
                tuple(s.value for s in statuses),
            )
            return [row_to_event(r) for r in fetchall(cur)]

    def list_started_upcoming(self, *, now: datetime) -> Sequence[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM events
                WHERE status=%s AND TIMESTAMP(date, time) <= %s
                ORDER BY date ASC, time ASC
                """,
                (EventStatus.UPCOMING.value, now),
            )
            return [row_to_event(r) for r in fetchall(cur)]

    def list_in_range(self, *, start: date, end: date) -> Sequence[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM events
                WHERE date BETWEEN %s AND %s
                ORDER BY date ASC, time ASC
                """,
                (start, end),
            )
            return [row_to_event(r) for r in fetchall(cur)]
