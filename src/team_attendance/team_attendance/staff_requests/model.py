from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional

from ..core.enums import ReasonCategory, RequestPriority, RequestStatus, RequestType


def _hhmm(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M") if value else None


@dataclass(frozen=True)
class NewStaffRequest:
    """Validated input for filing a request; only type-relevant times are set."""

    requester_id: int
    event_id: int
    request_type: RequestType
    reason_category: ReasonCategory
    reason_detail: str
    priority: RequestPriority = RequestPriority.MEDIUM
    late_arrival_time: Optional[time] = None
    early_departure_time: Optional[time] = None
    partial_start_time: Optional[time] = None
    partial_end_time: Optional[time] = None
    has_substitute: bool = False
    substitute_user_id: Optional[int] = None
    substitute_notes: Optional[str] = None
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class StaffRequest:
    request_id: int
    requester_id: int
    event_id: int
    request_type: RequestType
    reason_category: ReasonCategory
    reason_detail: str
    priority: RequestPriority
    status: RequestStatus
    late_arrival_time: Optional[time] = None
    early_departure_time: Optional[time] = None
    partial_start_time: Optional[time] = None
    partial_end_time: Optional[time] = None
    has_substitute: bool = False
    substitute_user_id: Optional[int] = None
    substitute_notes: Optional[str] = None
    submitted_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    decision_note: Optional[str] = None
    created_at: Optional[datetime] = None
    requester_name: Optional[str] = None
    requester_tag: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.request_id,
            "requester_id": self.requester_id,
            "requester_name": self.requester_name,
            "requester_tag": self.requester_tag,
            "event_id": self.event_id,
            "request_type": self.request_type.value,
            "late_arrival_time": _hhmm(self.late_arrival_time),
            "early_departure_time": _hhmm(self.early_departure_time),
            "partial_start_time": _hhmm(self.partial_start_time),
            "partial_end_time": _hhmm(self.partial_end_time),
            "reason_category": self.reason_category.value,
            "reason_detail": self.reason_detail,
            "priority": self.priority.value,
            "has_substitute": self.has_substitute,
            "substitute_user_id": self.substitute_user_id,
            "substitute_notes": self.substitute_notes,
            "status": self.status.value,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "decided_by": self.decided_by,
            "decision_note": self.decision_note,
        }
