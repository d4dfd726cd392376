from __future__ import annotations

import math
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from ..common.datetime_utils import now_local
from ..core.enums import ActualStatus, EventStatus
from ..core.exceptions import NotFoundError
from ..users.model import User
from ..users.repository import UserRepository
from .model import AttendanceWithEvent, UserAttendanceStats
from .repository import AttendanceRepository


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _counts_toward_stats(item: AttendanceWithEvent, user: User) -> bool:
    event = item.event
    if event.status in (EventStatus.CANCELLED, EventStatus.UPCOMING):
        return False
    if user.join_date and event.date < user.join_date:
        return False
    return True


def _is_settled(item: AttendanceWithEvent) -> bool:
    """Completed events, or ongoing ones whose outcome is already known."""

    if item.event.status == EventStatus.COMPLETED:
        return True
    return item.event.status == EventStatus.ONGOING and item.record.actual_status != ActualStatus.UNKNOWN


class AttendanceStatsService:
    """Per-member attendance rate, streak and ranking.

    Only events held on or after the member's join date count.
    """

    def __init__(self, attendance: AttendanceRepository, users: UserRepository):
        self._attendance = attendance
        self._users = users

    def compute(self, user: User, items: Sequence[AttendanceWithEvent], *, now: datetime) -> UserAttendanceStats:
        counted = [i for i in items if _counts_toward_stats(i, user)]
        total = len(counted)
        attended = sum(1 for i in counted if i.record.actual_status == ActualStatus.ATTENDED)
        rate = _round_half_up(attended * 100 / total) if total else 0

        settled = sorted((i for i in counted if _is_settled(i)), key=lambda i: i.event.starts_at)
        streak = 0
        for item in reversed(settled):
            if item.record.actual_status != ActualStatus.ATTENDED:
                break
            streak += 1

        monthly = any(
            i.record.actual_status == ActualStatus.ATTENDED
            and i.event.date.year == now.year
            and i.event.date.month == now.month
            for i in counted
        )
        return UserAttendanceStats(
            user_id=user.user_id,
            total_events=total,
            attended_events=attended,
            attendance_rate=rate,
            current_streak=streak,
            monthly_attended=monthly,
        )

    def user_stats(self, user_id: int, *, now: Optional[datetime] = None) -> UserAttendanceStats:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("사용자를 찾을 수 없습니다.")
        items = self._attendance.list_for_user_with_events(user.user_id)
        return self.compute(user, items, now=now or now_local())

    def ranking(self, *, now: Optional[datetime] = None) -> List[Tuple[User, UserAttendanceStats]]:
        """Active members by attendance rate, highest first; ties keep jersey order."""

        now = now or now_local()
        rows = [
            (user, self.compute(user, self._attendance.list_for_user_with_events(user.user_id), now=now))
            for user in self._users.list_active()
        ]
        rows.sort(key=lambda row: row[1].attendance_rate, reverse=True)
        return rows
