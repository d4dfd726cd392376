from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import PointCategory
from .model import PointLog


class PointRepository(Protocol):
    def add_log_with_total(
        self,
        *,
        user_id: int,
        admin_id: Optional[int],
        category: PointCategory,
        reason: str,
        points: int,
    ) -> int:
        """Insert the log and bump users.total_points in one transaction. Returns the new total."""

        raise NotImplementedError

    def insert_system_penalty(
        self,
        *,
        user_id: int,
        event_id: int,
        category: PointCategory,
        reason: str,
        points: int,
    ) -> Optional[int]:
        """Like ``add_log_with_total`` but keyed on (user, event, category).

        Returns None without touching the total when that key already exists.
        """

        raise NotImplementedError

    def list_for_user(self, user_id: int, *, limit: Optional[int] = None) -> Sequence[PointLog]:
        """Newest first; every row when ``limit`` is None."""

        raise NotImplementedError

    def sum_for_user(self, user_id: int) -> int:
        raise NotImplementedError
