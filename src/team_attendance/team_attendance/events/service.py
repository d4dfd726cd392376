from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, time
from typing import List, Optional, Protocol, Sequence

from ..attendance.service import AttendanceService
from ..common.datetime_utils import now_local
from ..common.validators import optional_text, require_enum, require_non_empty
from ..core.constants import DEFAULT_REQUIRED_STAFF_COUNT
from ..core.enums import EventStatus, EventType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.transitions import ensure_transition
from ..users.repository import UserRepository
from .model import Event
from .repository import EventRepository

logger = logging.getLogger(__name__)


class StartHook(Protocol):
    """Runs right before an event's votes are converted (e.g. unvoted penalty)."""

    def penalize(self, event: Event, *, now: datetime) -> int:
        raise NotImplementedError


class EventService:
    """Use case: event CRUD and the upcoming → ongoing → completed lifecycle."""

    def __init__(
        self,
        events: EventRepository,
        users: UserRepository,
        attendance: AttendanceService,
        *,
        start_hook: Optional[StartHook] = None,
    ):
        self._events = events
        self._users = users
        self._attendance = attendance
        self._start_hook = start_hook

    def _require_manager(self, user_id: int) -> None:
        user = self._users.get_by_id(int(user_id))
        if not user or not user.is_active or not user.is_manager:
            raise AuthorizationError("매니저만 이벤트를 관리할 수 있습니다.")

    def get(self, event_id: int) -> Event:
        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFoundError("이벤트를 찾을 수 없습니다.")
        return event

    def create_event(
        self,
        *,
        manager_id: int,
        title: str,
        event_date: date,
        event_time: time,
        location: str,
        event_type: EventType | str = EventType.REGULAR,
        description: Optional[str] = None,
        is_mandatory: bool = True,
        required_staff_count: int = DEFAULT_REQUIRED_STAFF_COUNT,
    ) -> int:
        self._require_manager(manager_id)
        title = require_non_empty(title, "제목")
        location = require_non_empty(location, "장소")
        event_type = require_enum(EventType, event_type, "이벤트 유형")
        if event_date is None or event_time is None:
            raise ValidationError("날짜와 시간을 입력해주세요.")
        if int(required_staff_count) < 0:
            raise ValidationError("필요 인원은 0 이상이어야 합니다.")

        event_id = self._events.create(
            title=title,
            description=optional_text(description),
            event_date=event_date,
            event_time=event_time,
            location=location,
            event_type=event_type,
            is_mandatory=bool(is_mandatory),
            required_staff_count=int(required_staff_count),
            created_by=int(manager_id),
        )
        logger.info("event %s created by %s (%s %s)", event_id, manager_id, event_date, event_time)

        # The event stays even when fan-out fails; votes upsert their own rows.
        try:
            created = self._attendance.create_records_for_event(event_id)
            logger.info("event %s: %d attendance rows created", event_id, created)
        except Exception:
            logger.exception("attendance fan-out failed for event %s", event_id)
        return event_id

    def update_event(self, *, manager_id: int, event_id: int, fields: dict) -> Event:
        self._require_manager(manager_id)
        event = self.get(event_id)
        if event.status in (EventStatus.COMPLETED, EventStatus.CANCELLED):
            raise ValidationError("종료되었거나 취소된 이벤트는 수정할 수 없습니다.")

        clean: dict = {}
        if "title" in fields:
            clean["title"] = require_non_empty(fields["title"], "제목")
        if "location" in fields:
            clean["location"] = require_non_empty(fields["location"], "장소")
        if "description" in fields:
            clean["description"] = optional_text(fields["description"])
        if "type" in fields:
            clean["type"] = require_enum(EventType, fields["type"], "이벤트 유형")
        if fields.get("date") is not None:
            clean["date"] = fields["date"]
        if fields.get("time") is not None:
            clean["time"] = fields["time"]
        if "is_mandatory" in fields:
            clean["is_mandatory"] = bool(fields["is_mandatory"])
        if "required_staff_count" in fields:
            try:
                count = int(fields["required_staff_count"])
            except (TypeError, ValueError):
                raise ValidationError("필요 인원은 숫자여야 합니다.")
            if count < 0:
                raise ValidationError("필요 인원은 0 이상이어야 합니다.")
            clean["required_staff_count"] = count

        if clean:
            self._events.update_fields(event.event_id, clean)
            logger.info("event %s updated by %s: %s", event.event_id, manager_id, sorted(clean))
        return self.get(event.event_id)

    def cancel_event(self, *, manager_id: int, event_id: int) -> None:
        self._require_manager(manager_id)
        event = self.get(event_id)
        ensure_transition(event.status, EventStatus.CANCELLED)
        if not self._events.set_status(event.event_id, status=EventStatus.CANCELLED, expected=(event.status,)):
            raise ValidationError("이벤트 상태가 변경되어 취소하지 못했습니다. 다시 시도해주세요.")
        logger.info("event %s cancelled by %s", event.event_id, manager_id)

    def delete_event(self, *, manager_id: int, event_id: int) -> None:
        self._require_manager(manager_id)
        event = self.get(event_id)
        if not self._events.delete_with_attendance(event.event_id):
            raise NotFoundError("이벤트를 찾을 수 없습니다.")
        logger.info("event %s deleted by %s", event.event_id, manager_id)

    # --- queries ---

    def list_all(self) -> Sequence[Event]:
        return self._events.list_all()

    def list_upcoming(self, *, now: Optional[datetime] = None) -> Sequence[Event]:
        self.refresh_all(now=now)
        return self._events.list_by_status((EventStatus.UPCOMING,))

    def next_upcoming(self, *, now: Optional[datetime] = None) -> Optional[Event]:
        now = now or now_local()
        for event in self.list_upcoming(now=now):
            if event.starts_at > now:
                return event
        return None

    def list_in_range(self, *, start: date, end: date) -> Sequence[Event]:
        if end < start:
            raise ValidationError("종료일은 시작일 이후여야 합니다.")
        return self._events.list_in_range(start=start, end=end)

    # --- lifecycle ---

    def start_event(self, event: Event, *, now: datetime) -> int:
        """upcoming → ongoing: penalize unvoted members, convert votes, advance.

        Returns the number of members penalized.
        """

        ensure_transition(event.status, EventStatus.ONGOING)
        penalized = 0
        if self._start_hook is not None:
            penalized = self._start_hook.penalize(event, now=now)
        converted = self._attendance.convert_votes_to_actual(event.event_id, now=now)
        advanced = self._events.set_status(
            event.event_id, status=EventStatus.ONGOING, expected=(EventStatus.UPCOMING,)
        )
        logger.info(
            "event %s started: converted=%d penalized=%d advanced=%s", event.event_id, converted, penalized, advanced
        )
        return penalized

    def complete_event(self, event: Event, *, now: datetime) -> bool:
        """ongoing → completed. Attendance is left as resolved at start or set by a manager."""

        ensure_transition(event.status, EventStatus.COMPLETED)
        done = self._events.set_status(
            event.event_id, status=EventStatus.COMPLETED, expected=(EventStatus.ONGOING,)
        )
        if done:
            logger.info("event %s completed at %s", event.event_id, now)
        return done

    def refresh_status(self, event: Event, *, now: Optional[datetime] = None) -> Event:
        """Bring one event's status in line with the clock."""

        now = now or now_local()
        status = event.status
        if status == EventStatus.UPCOMING and event.has_started(now):
            self.start_event(event, now=now)
            status = EventStatus.ONGOING
        if status == EventStatus.ONGOING and now >= event.ends_at:
            self.complete_event(replace(event, status=status), now=now)
            status = EventStatus.COMPLETED
        return replace(event, status=status)

    def refresh_all(self, *, now: Optional[datetime] = None) -> List[Event]:
        """Refresh every upcoming/ongoing event; returns the ones whose status changed."""

        now = now or now_local()
        changed: List[Event] = []
        for event in self._events.list_by_status((EventStatus.UPCOMING, EventStatus.ONGOING)):
            try:
                refreshed = self.refresh_status(event, now=now)
            except Exception:
                logger.exception("status refresh failed for event %s", event.event_id)
                continue
            if refreshed.status != event.status:
                changed.append(refreshed)
        return changed
