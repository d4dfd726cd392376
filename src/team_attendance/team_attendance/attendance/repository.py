from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ActualStatus, VotedStatus
from .model import AttendanceRecord, AttendanceWithEvent


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_event(self, user_id: int, event_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_event(self, event_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_pending_voters(self, event_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user_with_events(self, user_id: int) -> Sequence[AttendanceWithEvent]:
        """All rows of a member joined with their event, ordered by event start."""

        raise NotImplementedError

    def upsert_vote(
        self,
        *,
        user_id: int,
        event_id: int,
        voted_status: VotedStatus,
        absence_reason: Optional[str],
        voted_at: datetime,
    ) -> int:
        """Insert or update the single (user, event) row. Returns attendance_id."""

        raise NotImplementedError

    def create_pending_for_users(self, *, event_id: int, user_ids: Sequence[int]) -> int:
        """Fan-out on event creation; existing rows are left alone. Returns rows inserted."""

        raise NotImplementedError

    def convert_votes(self, *, event_id: int, confirmed_at: datetime) -> int:
        """Resolve voted_status into actual_status for still-open rows. Returns rows updated."""

        raise NotImplementedError

    def set_actual_status(self, *, attendance_id: int, status: ActualStatus, confirmed_at: datetime) -> bool:
        raise NotImplementedError
