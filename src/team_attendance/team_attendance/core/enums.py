from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Coarse account role used for authorization."""

    PLAYER = "player"
    MANAGER = "manager"


class EventType(str, Enum):
    REGULAR = "regular"
    GUERRILLA = "guerrilla"
    LEAGUE = "league"
    MERCENARY = "mercenary"
    TOURNAMENT = "tournament"


class EventStatus(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class VotedStatus(str, Enum):
    """What the member said before the event."""

    PENDING = "pending"
    ATTENDING = "attending"
    ABSENT = "absent"


class ActualStatus(str, Enum):
    """Resolved outcome after the event starts."""

    UNKNOWN = "unknown"
    ATTENDED = "attended"
    ABSENT = "absent"
    LATE = "late"
    EARLY_LEAVE = "early_leave"


class RequestType(str, Enum):
    ABSENCE = "absence"
    LATE_ARRIVAL = "late_arrival"
    EARLY_DEPARTURE = "early_departure"
    PARTIAL_ABSENCE = "partial_absence"
    ROLE_CHANGE = "role_change"
    SUBSTITUTE_NEEDED = "substitute_needed"


class ReasonCategory(str, Enum):
    WORK = "work"
    FAMILY = "family"
    HEALTH = "health"
    PERSONAL = "personal"
    TRAVEL = "travel"
    EMERGENCY = "emergency"
    TRANSPORTATION = "transportation"
    WEATHER = "weather"
    CONFLICT = "conflict"
    OTHER = "other"


class RequestPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"
    EMERGENCY = "emergency"

    @property
    def rank(self) -> int:
        return _PRIORITY_ORDER.index(self)


_PRIORITY_ORDER = [
    RequestPriority.LOW,
    RequestPriority.MEDIUM,
    RequestPriority.HIGH,
    RequestPriority.URGENT,
    RequestPriority.EMERGENCY,
]


class RequestStatus(str, Enum):
    """Staff request approval flow."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    CONDITIONALLY_APPROVED = "conditionally_approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    EXPIRED = "expired"


class PointCategory(str, Enum):
    PARTICIPATION = "participation"
    GAME = "game"
    TEAM = "team"
    PENALTY = "penalty"
