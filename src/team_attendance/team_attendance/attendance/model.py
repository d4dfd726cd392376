from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ActualStatus, VotedStatus
from ..events.model import Event

# How a vote resolves once the event starts. Non-voters count as absent.
VOTE_TO_ACTUAL = {
    VotedStatus.ATTENDING: ActualStatus.ATTENDED,
    VotedStatus.ABSENT: ActualStatus.ABSENT,
    VotedStatus.PENDING: ActualStatus.ABSENT,
}

# Rows in these states are still open to conversion; anything else was already resolved.
CONVERTIBLE_ACTUAL = (ActualStatus.UNKNOWN, ActualStatus.LATE, ActualStatus.EARLY_LEAVE)


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one member's attendance for one event."""

    attendance_id: int
    user_id: int
    event_id: int
    voted_status: VotedStatus
    actual_status: ActualStatus
    voted_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    absence_reason: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "user_id": self.user_id,
            "event_id": self.event_id,
            "voted_status": self.voted_status.value,
            "actual_status": self.actual_status.value,
            "voted_at": self.voted_at.strftime("%Y-%m-%d %H:%M") if self.voted_at else None,
            "absence_reason": self.absence_reason,
        }


@dataclass(frozen=True)
class AttendanceWithEvent:
    """Read-model for per-member statistics."""

    record: AttendanceRecord
    event: Event


@dataclass(frozen=True)
class UserAttendanceStats:
    user_id: int
    total_events: int
    attended_events: int
    attendance_rate: int
    current_streak: int
    monthly_attended: bool

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "total_events": self.total_events,
            "attended_events": self.attended_events,
            "attendance_rate": self.attendance_rate,
            "current_streak": self.current_streak,
            "monthly_attended": self.monthly_attended,
        }
