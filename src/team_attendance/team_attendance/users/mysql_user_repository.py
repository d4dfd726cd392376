from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, name, number, role, tag, position, phone,
    join_date, total_points, is_active, last_login_at
"""


def row_to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        number=str(row["number"]),
        role=Role(row["role"]),
        tag=row.get("tag"),
        position=row.get("position"),
        phone=row.get("phone"),
        join_date=row.get("join_date"),
        total_points=int(row.get("total_points") or 0),
        is_active=bool(row.get("is_active", True)),
        last_login_at=row.get("last_login_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return row_to_user(row) if row else None

    def get_by_number(self, number: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE number=%s", (number,))
            row = fetchone(cur)
            return row_to_user(row) if row else None

    def find_for_login(self, *, name: str, number: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM users
                WHERE name=%s AND number=%s AND is_active=1
                """,
                (name, number),
            )
            row = fetchone(cur)
            return row_to_user(row) if row else None

    def create_user(
        self,
        *,
        name: str,
        number: str,
        role: Role,
        position: Optional[str],
        join_date: date,
        tag: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(name, number, role, tag, position, join_date, is_active, last_login_at)
                VALUES(%s,%s,%s,%s,%s,%s,1,NOW())
                """,
                (name, number, role.value, tag, position, join_date),
            )
            return int(cur.lastrowid)

    def touch_login(self, user_id: int, *, at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET last_login_at=%s WHERE user_id=%s", (at, int(user_id)))

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE user_id=%s", (1 if is_active else 0, int(user_id)))
            return cur.rowcount > 0

    def set_tag(self, user_id: int, *, tag: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET tag=%s WHERE user_id=%s", (tag, int(user_id)))
            return cur.rowcount > 0

    def list_active(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE is_active=1 ORDER BY number ASC")
            return [row_to_user(r) for r in fetchall(cur)]

    def list_by_tags(self, tags: Sequence[str]) -> Sequence[User]:
        if not tags:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM users
                WHERE is_active=1 AND role=%s AND tag IN {in_clause(tags)}
                ORDER BY tag ASC
                """,
                (Role.MANAGER.value, *tags),
            )
            return [row_to_user(r) for r in fetchall(cur)]
