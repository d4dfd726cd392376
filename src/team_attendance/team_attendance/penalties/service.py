from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.enums import ActualStatus, EventStatus
from ..events.model import Event
from ..events.repository import EventRepository
from ..events.service import EventService
from ..points.service import PointService
from ..staff_requests.service import StaffRequestService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    event_id: int
    penalized: int

    def to_dict(self) -> dict:
        return {"eventId": self.event_id, "penalized": self.penalized}


class UnvotedPenalty:
    """-7 for every member still ``pending`` when an event starts.

    The ledger key (user, event, category) makes a second run a no-op for points;
    the attendance row is marked absent either way.
    """

    def __init__(self, attendance: AttendanceRepository, points: PointService):
        self._attendance = attendance
        self._points = points

    def penalize(self, event: Event, *, now: datetime) -> int:
        penalized = 0
        for record in self._attendance.list_pending_voters(event.event_id):
            try:
                new_total = self._points.penalize_unvoted(user_id=record.user_id, event_id=event.event_id)
                if new_total is not None:
                    penalized += 1
                    logger.info(
                        "unvoted penalty user=%s event=%s -> total=%d", record.user_id, event.event_id, new_total
                    )
                self._attendance.set_actual_status(
                    attendance_id=record.attendance_id, status=ActualStatus.ABSENT, confirmed_at=now
                )
            except Exception:
                logger.exception("unvoted penalty failed for user %s event %s", record.user_id, event.event_id)
        return penalized


class AutoPenaltyService:
    """Scheduled job: start events whose time has come, close finished ones, expire stale requests."""

    def __init__(
        self,
        events: EventRepository,
        event_service: EventService,
        staff_requests: Optional[StaffRequestService] = None,
    ):
        self._events = events
        self._event_service = event_service
        self._staff_requests = staff_requests

    def sweep(self, *, now: Optional[datetime] = None) -> List[SweepResult]:
        now = now or now_local()
        results: List[SweepResult] = []

        for event in self._events.list_started_upcoming(now=now):
            try:
                penalized = self._event_service.start_event(event, now=now)
            except Exception:
                logger.exception("sweep failed for event %s", event.event_id)
                continue
            results.append(SweepResult(event_id=event.event_id, penalized=penalized))

        for event in self._events.list_by_status((EventStatus.ONGOING,)):
            if now >= event.ends_at:
                try:
                    self._event_service.complete_event(event, now=now)
                except Exception:
                    logger.exception("completion failed for event %s", event.event_id)

        if self._staff_requests is not None:
            self._staff_requests.expire_overdue(now=now)

        logger.info(
            "auto-penalize sweep: %d events started, %d members penalized",
            len(results),
            sum(r.penalized for r in results),
        )
        return results
