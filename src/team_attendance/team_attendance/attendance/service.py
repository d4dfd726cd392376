from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import optional_text, require_enum
from ..core.constants import DEFAULT_OVERVIEW_EVENTS
from ..core.enums import ActualStatus, EventStatus, VotedStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..events.repository import EventRepository
from ..users.repository import UserRepository
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Use case: pre-event voting and post-event attendance resolution."""

    def __init__(self, attendance: AttendanceRepository, events: EventRepository, users: UserRepository):
        self._attendance = attendance
        self._events = events
        self._users = users

    def submit_vote(
        self,
        *,
        user_id: int,
        event_id: int,
        vote: VotedStatus | str,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        vote = require_enum(VotedStatus, vote, "투표")
        if vote == VotedStatus.PENDING:
            raise ValidationError("참석 또는 불참 중 하나를 선택해주세요.")

        user = self._users.get_by_id(int(user_id))
        if not user or not user.is_active:
            raise NotFoundError("사용자를 찾을 수 없습니다.")

        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFoundError("이벤트를 찾을 수 없습니다.")
        if event.status != EventStatus.UPCOMING or event.has_started(now):
            raise ValidationError("이벤트가 이미 시작되어 투표할 수 없습니다.")

        absence_reason = None
        if vote == VotedStatus.ABSENT:
            if user.is_coaching_staff:
                raise AuthorizationError("코치진은 불참 투표 대신 스태프 요청을 제출해주세요.")
            absence_reason = optional_text(reason)
            if not absence_reason:
                raise ValidationError("불참 사유를 입력해주세요.")

        self._attendance.upsert_vote(
            user_id=user.user_id,
            event_id=event.event_id,
            voted_status=vote,
            absence_reason=absence_reason,
            voted_at=now,
        )
        logger.info("vote user=%s event=%s -> %s", user.user_id, event.event_id, vote.value)
        return self._attendance.get_for_user_and_event(user.user_id, event.event_id)

    def get_user_event_attendance(self, user_id: int, event_id: int) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_user_and_event(int(user_id), int(event_id))

    def effective_vote(self, user_id: int, event_id: int) -> VotedStatus:
        """A member without a row has not voted yet."""

        record = self.get_user_event_attendance(user_id, event_id)
        return record.voted_status if record else VotedStatus.PENDING

    def create_records_for_event(self, event_id: int) -> int:
        """One pending row per active member; rows that already exist are left alone."""

        user_ids = [u.user_id for u in self._users.list_active()]
        return self._attendance.create_pending_for_users(event_id=int(event_id), user_ids=user_ids)

    def convert_votes_to_actual(self, event_id: int, *, now: Optional[datetime] = None) -> int:
        return self._attendance.convert_votes(event_id=int(event_id), confirmed_at=now or now_local())

    def set_actual_status(
        self,
        *,
        manager_id: int,
        attendance_id: int,
        status: ActualStatus | str,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        manager = self._users.get_by_id(int(manager_id))
        if not manager or not manager.is_active or not manager.is_manager:
            raise AuthorizationError("매니저만 출석 상태를 변경할 수 있습니다.")
        status = require_enum(ActualStatus, status, "출석 상태")

        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("출석 기록을 찾을 수 없습니다.")

        self._attendance.set_actual_status(
            attendance_id=record.attendance_id, status=status, confirmed_at=now or now_local()
        )
        logger.info(
            "admin=%s set attendance %s (user=%s event=%s) to %s",
            manager_id,
            record.attendance_id,
            record.user_id,
            record.event_id,
            status.value,
        )
        return self._attendance.get_by_id(record.attendance_id)

    def list_event_attendance(self, event_id: int) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_event(int(event_id))

    def event_vote_overview(
        self,
        *,
        limit: int = DEFAULT_OVERVIEW_EVENTS,
        coaching_staff_only: bool = False,
    ) -> List[dict]:
        """Who is attending / absent / still pending for the next ``limit`` upcoming events."""

        events = list(self._events.list_by_status((EventStatus.UPCOMING,)))[: max(int(limit), 0)]
        members = [u for u in self._users.list_active() if u.is_coaching_staff or not coaching_staff_only]

        overview = []
        for event in events:
            votes = {r.user_id: r for r in self._attendance.list_for_event(event.event_id)}
            buckets = {VotedStatus.ATTENDING: [], VotedStatus.ABSENT: [], VotedStatus.PENDING: []}
            for member in members:
                record = votes.get(member.user_id)
                vote = record.voted_status if record else VotedStatus.PENDING
                entry = {"user_id": member.user_id, "name": member.name, "number": member.number, "tag": member.tag}
                if vote == VotedStatus.ABSENT and record:
                    entry["absence_reason"] = record.absence_reason
                buckets[vote].append(entry)

            overview.append(
                {
                    "event": event.to_dict(),
                    "attending": buckets[VotedStatus.ATTENDING],
                    "absent": buckets[VotedStatus.ABSENT],
                    "pending": buckets[VotedStatus.PENDING],
                    "counts": {vote.value: len(items) for vote, items in buckets.items()},
                }
            )
        return overview
