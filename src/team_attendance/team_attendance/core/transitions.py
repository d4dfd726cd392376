from __future__ import annotations

from typing import Mapping, TypeVar

from .enums import EventStatus, RequestStatus
from .exceptions import InvalidTransitionError

S = TypeVar("S", EventStatus, RequestStatus)


EVENT_TRANSITIONS: Mapping[EventStatus, frozenset[EventStatus]] = {
    EventStatus.UPCOMING: frozenset({EventStatus.ONGOING, EventStatus.CANCELLED}),
    EventStatus.ONGOING: frozenset({EventStatus.COMPLETED, EventStatus.CANCELLED}),
    EventStatus.COMPLETED: frozenset(),
    EventStatus.CANCELLED: frozenset(),
}

REQUEST_TRANSITIONS: Mapping[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.DRAFT: frozenset(
        {RequestStatus.SUBMITTED, RequestStatus.WITHDRAWN, RequestStatus.EXPIRED}
    ),
    RequestStatus.SUBMITTED: frozenset(
        {
            RequestStatus.UNDER_REVIEW,
            RequestStatus.APPROVED,
            RequestStatus.CONDITIONALLY_APPROVED,
            RequestStatus.REJECTED,
            RequestStatus.WITHDRAWN,
            RequestStatus.EXPIRED,
        }
    ),
    RequestStatus.UNDER_REVIEW: frozenset(
        {
            RequestStatus.APPROVED,
            RequestStatus.CONDITIONALLY_APPROVED,
            RequestStatus.REJECTED,
            RequestStatus.WITHDRAWN,
            RequestStatus.EXPIRED,
        }
    ),
    RequestStatus.CONDITIONALLY_APPROVED: frozenset(
        {
            RequestStatus.APPROVED,
            RequestStatus.REJECTED,
            RequestStatus.WITHDRAWN,
            RequestStatus.EXPIRED,
        }
    ),
    RequestStatus.APPROVED: frozenset(),
    RequestStatus.REJECTED: frozenset(),
    RequestStatus.WITHDRAWN: frozenset(),
    RequestStatus.EXPIRED: frozenset(),
}

# Requests that still block a new request of the same kind.
OPEN_REQUEST_STATUSES = frozenset(
    {RequestStatus.SUBMITTED, RequestStatus.UNDER_REVIEW, RequestStatus.CONDITIONALLY_APPROVED}
)
# Rows that may be reused when the requester files again.
REUSABLE_REQUEST_STATUSES = frozenset(
    {RequestStatus.DRAFT, RequestStatus.REJECTED, RequestStatus.WITHDRAWN, RequestStatus.EXPIRED}
)
PENDING_REVIEW_STATUSES = (RequestStatus.SUBMITTED, RequestStatus.UNDER_REVIEW)


def _table_for(current: S) -> Mapping:
    return EVENT_TRANSITIONS if isinstance(current, EventStatus) else REQUEST_TRANSITIONS


def can_transition(current: S, target: S) -> bool:
    return target in _table_for(current).get(current, frozenset())


def ensure_transition(current: S, target: S) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"'{current.value}' 상태에서 '{target.value}' 상태로 변경할 수 없습니다."
        )


def sources_for(target: S, table: Mapping) -> tuple:
    """All statuses from which ``target`` is reachable in one step."""

    return tuple(src for src, targets in table.items() if target in targets)
