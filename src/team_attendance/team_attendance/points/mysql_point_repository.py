from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import PointCategory
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import PointLog
from .repository import PointRepository


def row_to_point_log(r: dict) -> PointLog:
    return PointLog(
        log_id=int(r["log_id"]),
        user_id=int(r["user_id"]),
        admin_id=int(r["admin_id"]) if r.get("admin_id") is not None else None,
        event_id=int(r["event_id"]) if r.get("event_id") is not None else None,
        category=PointCategory(r["category"]),
        reason=r["reason"],
        points=int(r["points"]),
        created_at=r.get("created_at"),
    )


def _increment_total(cur, user_id: int, points: int) -> int:
    cur.execute(
        "UPDATE users SET total_points = total_points + %s WHERE user_id=%s",
        (int(points), int(user_id)),
    )
    cur.execute("SELECT total_points FROM users WHERE user_id=%s", (int(user_id),))
    r = fetchone(cur)
    if not r:
        # Raising inside db_cursor rolls back the log insert too.
        raise NotFoundError("사용자를 찾을 수 없습니다.")
    return int(r["total_points"])


class MySQLPointRepository(PointRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add_log_with_total(
        self,
        *,
        user_id: int,
        admin_id: Optional[int],
        category: PointCategory,
        reason: str,
        points: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO point_logs(user_id, admin_id, category, reason, points)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(user_id), admin_id, category.value, reason, int(points)),
            )
            return _increment_total(cur, user_id, points)

    def insert_system_penalty(
        self,
        *,
        user_id: int,
        event_id: int,
        category: PointCategory,
        reason: str,
        points: int,
    ) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO point_logs(user_id, admin_id, event_id, category, reason, points)
                VALUES(%s,NULL,%s,%s,%s,%s)
                """,
                (int(user_id), int(event_id), category.value, reason, int(points)),
            )
            if cur.rowcount == 0:
                return None
            return _increment_total(cur, user_id, points)

    def list_for_user(self, user_id: int, *, limit: Optional[int] = None) -> Sequence[PointLog]:
        sql = """
            SELECT log_id, user_id, admin_id, event_id, category, reason, points, created_at
            FROM point_logs
            WHERE user_id=%s
            ORDER BY created_at DESC, log_id DESC
        """
        params: tuple = (int(user_id),)
        if limit is not None:
            sql += " LIMIT %s"
            params += (int(limit),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [row_to_point_log(r) for r in fetchall(cur)]

    def sum_for_user(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COALESCE(SUM(points), 0) AS total FROM point_logs WHERE user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return int(r["total"]) if r else 0
