from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Protocol, Sequence

from ..core.enums import EventStatus, EventType
from .model import Event


class EventRepository(Protocol):
    def get_by_id(self, event_id: int) -> Optional[Event]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update_fields(self, event_id: int, fields: dict) -> bool:
        """Update whitelisted columns; unknown keys are ignored."""

        raise NotImplementedError

    def set_status(self, event_id: int, *, status: EventStatus, expected: Sequence[EventStatus]) -> bool:
        """Compare-and-set: only updates when the current status is in ``expected``."""

        raise NotImplementedError

    def delete_with_attendance(self, event_id: int) -> bool:
        """Delete the event together with its attendance rows and staff requests."""

        raise NotImplementedError

    def list_all(self) -> Sequence[Event]:
        raise NotImplementedError

    def list_by_status(self, statuses: Sequence[EventStatus]) -> Sequence[Event]:
        """Ordered by start ascending."""

        raise NotImplementedError

    def list_started_upcoming(self, *, now: datetime) -> Sequence[Event]:
        """Upcoming events whose start time is at or before ``now``."""

        raise NotImplementedError

    def list_in_range(self, *, start: date, end: date) -> Sequence[Event]:
        raise NotImplementedError
