from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus, RequestType
from .model import NewStaffRequest, StaffRequest


class StaffRequestRepository(Protocol):
    def get_by_id(self, request_id: int) -> Optional[StaffRequest]:
        raise NotImplementedError

    def find_by_key(self, *, requester_id: int, event_id: int, request_type: RequestType) -> Sequence[StaffRequest]:
        """Every row for (requester, event, type), newest first."""

        raise NotImplementedError

    def create(self, new: NewStaffRequest, *, submitted_at: datetime) -> int:
        """Raises ConflictError when an open row with the same key already exists."""

        raise NotImplementedError

    def reopen(
        self,
        request_id: int,
        new: NewStaffRequest,
        *,
        submitted_at: datetime,
        expected: Sequence[RequestStatus],
    ) -> bool:
        """Overwrite a closed row in place and put it back to ``submitted``.

        Raises ConflictError when another open row with the same key already exists.
        """

        raise NotImplementedError

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
        """Compare-and-set on status; False when the row moved on meanwhile."""

        raise NotImplementedError

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
        """Approve and mark the requester absent for the event in one transaction."""

        raise NotImplementedError

    def list_by_status(self, statuses: Sequence[RequestStatus]) -> Sequence[StaffRequest]:
        """Highest priority first, then oldest first."""

        raise NotImplementedError

    def list_for_requester(self, requester_id: int) -> Sequence[StaffRequest]:
        """Newest first, withdrawn rows excluded."""

        raise NotImplementedError

    def list_for_event(self, event_id: int) -> Sequence[StaffRequest]:
        raise NotImplementedError

    def expire_overdue(self, *, now: datetime, statuses: Sequence[RequestStatus]) -> int:
        raise NotImplementedError
