from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..common.datetime_utils import event_start
from ..core.constants import EVENT_DURATION_HOURS
from ..core.enums import EventStatus, EventType


@dataclass(frozen=True)
class Event:
    """Domain entity: scheduled team event."""

    event_id: int
    title: str
    date: date
    time: time
    location: str
    type: EventType
    status: EventStatus
    is_mandatory: bool = True
    required_staff_count: int = 15
    description: Optional[str] = None
    created_by: Optional[int] = None

    @property
    def starts_at(self) -> datetime:
        return event_start(self.date, self.time)

    @property
    def ends_at(self) -> datetime:
        return self.starts_at + timedelta(hours=EVENT_DURATION_HOURS)

    def has_started(self, now: datetime) -> bool:
        return now >= self.starts_at

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "title": self.title,
            "description": self.description,
            "date": self.date.strftime("%Y-%m-%d"),
            "time": self.time.strftime("%H:%M"),
            "location": self.location,
            "type": self.type.value,
            "status": self.status.value,
            "is_mandatory": self.is_mandatory,
            "required_staff_count": self.required_staff_count,
        }
