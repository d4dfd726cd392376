from __future__ import annotations

import logging
from datetime import datetime, time
from typing import List, Optional, Sequence

from ..common.datetime_utils import now_local, parse_hhmm
from ..common.validators import optional_text, require_enum, require_non_empty
from ..core.constants import APPROVED_ABSENCE_REASON, COACHING_STAFF_TAGS, DUPLICATE_OPEN_REQUEST_MESSAGE
from ..core.enums import EventStatus, ReasonCategory, RequestPriority, RequestStatus, RequestType
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.transitions import (
    OPEN_REQUEST_STATUSES,
    PENDING_REVIEW_STATUSES,
    REQUEST_TRANSITIONS,
    REUSABLE_REQUEST_STATUSES,
    ensure_transition,
    sources_for,
)
from ..events.repository import EventRepository
from ..users.model import User
from ..users.repository import UserRepository
from .factory import ApprovalPolicyFactory
from .model import NewStaffRequest, StaffRequest
from .repository import StaffRequestRepository

logger = logging.getLogger(__name__)

_STALE = "요청 상태가 변경되었습니다. 새로고침 후 다시 시도해주세요."


def _as_time(value) -> Optional[time]:
    if value is None or isinstance(value, time):
        return value
    return parse_hhmm(value)


class StaffRequestService:
    """Use case: coaching-staff absence/late/early requests and their approval chain.

    단장 decides on 감독, 감독 decides on the assistant coaches. An approved
    request marks the requester absent for the event in the same transaction.
    """

    def __init__(
        self,
        requests: StaffRequestRepository,
        events: EventRepository,
        users: UserRepository,
        *,
        policy_factory: ApprovalPolicyFactory | None = None,
    ):
        self._requests = requests
        self._events = events
        self._users = users
        self._policies = policy_factory or ApprovalPolicyFactory()

    # --- helpers ---

    def _get(self, request_id: int) -> StaffRequest:
        req = self._requests.get_by_id(int(request_id))
        if not req:
            raise NotFoundError("요청을 찾을 수 없습니다.")
        return req

    def _requester_tag(self, req: StaffRequest) -> Optional[str]:
        if req.requester_tag is not None:
            return req.requester_tag
        requester = self._users.get_by_id(req.requester_id)
        return requester.tag if requester else None

    def _authorize(self, approver_id: int, req: StaffRequest) -> User:
        approver = self._users.get_by_id(int(approver_id))
        decision = self._policies.for_approver(approver).decide(self._requester_tag(req))
        if not decision.allowed:
            raise AuthorizationError(decision.reason or "승인 권한이 없습니다.")
        return approver

    def _build(
        self,
        *,
        requester_id: int,
        event_id: int,
        request_type,
        reason_category,
        reason_detail: str,
        priority,
        late_arrival_time,
        early_departure_time,
        partial_start_time,
        partial_end_time,
        has_substitute: bool,
        substitute_user_id: Optional[int],
        substitute_notes: Optional[str],
        expires_at: Optional[datetime],
        now: datetime,
    ) -> NewStaffRequest:
        request_type = require_enum(RequestType, request_type, "요청 유형")
        reason_category = require_enum(ReasonCategory, reason_category or ReasonCategory.PERSONAL, "사유 분류")
        priority = require_enum(RequestPriority, priority or RequestPriority.MEDIUM, "우선순위")
        reason_detail = require_non_empty(reason_detail, "상세 사유")

        late = early = start = end = None
        if request_type == RequestType.LATE_ARRIVAL:
            late = _as_time(late_arrival_time)
            if late is None:
                raise ValidationError("도착 예정 시간을 입력해주세요.")
        elif request_type == RequestType.EARLY_DEPARTURE:
            early = _as_time(early_departure_time)
            if early is None:
                raise ValidationError("조기 퇴장 시간을 입력해주세요.")
        elif request_type == RequestType.PARTIAL_ABSENCE:
            start = _as_time(partial_start_time)
            end = _as_time(partial_end_time)
            if start is None or end is None:
                raise ValidationError("부분 불참 시작/종료 시간을 입력해주세요.")
            if end <= start:
                raise ValidationError("부분 불참 종료 시간은 시작 시간 이후여야 합니다.")

        substitute_id = None
        if has_substitute:
            if substitute_user_id in (None, ""):
                raise ValidationError("대체 인원을 선택해주세요.")
            substitute_id = int(substitute_user_id)
            if substitute_id == int(requester_id):
                raise ValidationError("본인을 대체 인원으로 지정할 수 없습니다.")
            substitute = self._users.get_by_id(substitute_id)
            if not substitute or not substitute.is_active:
                raise ValidationError("대체 인원을 찾을 수 없습니다.")

        if expires_at is not None and expires_at <= now:
            raise ValidationError("만료 시각은 현재 이후여야 합니다.")

        return NewStaffRequest(
            requester_id=int(requester_id),
            event_id=int(event_id),
            request_type=request_type,
            reason_category=reason_category,
            reason_detail=reason_detail,
            priority=priority,
            late_arrival_time=late,
            early_departure_time=early,
            partial_start_time=start,
            partial_end_time=end,
            has_substitute=bool(has_substitute),
            substitute_user_id=substitute_id,
            substitute_notes=optional_text(substitute_notes) if has_substitute else None,
            expires_at=expires_at,
        )

    # --- commands ---

    def create_request(
        self,
        *,
        requester_id: int,
        event_id: int,
        request_type: RequestType | str,
        reason_detail: str,
        reason_category: ReasonCategory | str | None = None,
        priority: RequestPriority | str | None = None,
        late_arrival_time: time | str | None = None,
        early_departure_time: time | str | None = None,
        partial_start_time: time | str | None = None,
        partial_end_time: time | str | None = None,
        has_substitute: bool = False,
        substitute_user_id: Optional[int] = None,
        substitute_notes: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> int:
        now = now or now_local()
        requester = self._users.get_by_id(int(requester_id))
        if not requester or not requester.is_active or not requester.is_coaching_staff:
            raise AuthorizationError("코치진만 스태프 요청을 제출할 수 있습니다.")

        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFoundError("이벤트를 찾을 수 없습니다.")
        if event.status != EventStatus.UPCOMING or event.has_started(now):
            raise ValidationError("이미 시작되었거나 종료된 이벤트에는 요청할 수 없습니다.")

        new = self._build(
            requester_id=requester.user_id,
            event_id=event.event_id,
            request_type=request_type,
            reason_category=reason_category,
            reason_detail=reason_detail,
            priority=priority,
            late_arrival_time=late_arrival_time,
            early_departure_time=early_departure_time,
            partial_start_time=partial_start_time,
            partial_end_time=partial_end_time,
            has_substitute=has_substitute,
            substitute_user_id=substitute_user_id,
            substitute_notes=substitute_notes,
            expires_at=expires_at,
            now=now,
        )

        existing = self._requests.find_by_key(
            requester_id=new.requester_id, event_id=new.event_id, request_type=new.request_type
        )
        if any(r.status in OPEN_REQUEST_STATUSES for r in existing):
            raise ConflictError(DUPLICATE_OPEN_REQUEST_MESSAGE)

        reusable = next((r for r in existing if r.status in REUSABLE_REQUEST_STATUSES), None)
        if reusable:
            if not self._requests.reopen(reusable.request_id, new, submitted_at=now, expected=(reusable.status,)):
                raise ConflictError(_STALE)
            logger.info(
                "staff request %s resubmitted by %s (was %s)", reusable.request_id, requester.user_id, reusable.status.value
            )
            return reusable.request_id

        request_id = self._requests.create(new, submitted_at=now)
        logger.info(
            "staff request %s filed by %s: %s for event %s",
            request_id,
            requester.user_id,
            new.request_type.value,
            new.event_id,
        )
        return request_id

    def withdraw(self, *, requester_id: int, request_id: int) -> None:
        req = self._get(request_id)
        if req.requester_id != int(requester_id):
            raise AuthorizationError("본인의 요청만 철회할 수 있습니다.")
        ensure_transition(req.status, RequestStatus.WITHDRAWN)
        if not self._requests.set_status(req.request_id, status=RequestStatus.WITHDRAWN, expected=(req.status,)):
            raise ConflictError(_STALE)
        logger.info("staff request %s withdrawn by %s", req.request_id, requester_id)

    def mark_under_review(self, *, approver_id: int, request_id: int) -> None:
        req = self._get(request_id)
        self._authorize(approver_id, req)
        ensure_transition(req.status, RequestStatus.UNDER_REVIEW)
        if not self._requests.set_status(req.request_id, status=RequestStatus.UNDER_REVIEW, expected=(req.status,)):
            raise ConflictError(_STALE)
        logger.info("staff request %s under review by %s", req.request_id, approver_id)

    def approve(
        self,
        *,
        approver_id: int,
        request_id: int,
        note: Optional[str] = None,
        conditional: bool = False,
        now: Optional[datetime] = None,
    ) -> None:
        now = now or now_local()
        req = self._get(request_id)
        approver = self._authorize(approver_id, req)
        note = optional_text(note)

        if conditional:
            ensure_transition(req.status, RequestStatus.CONDITIONALLY_APPROVED)
            ok = self._requests.set_status(
                req.request_id,
                status=RequestStatus.CONDITIONALLY_APPROVED,
                expected=(req.status,),
                decided_by=approver.user_id,
                decided_at=now,
                decision_note=note,
            )
        else:
            ensure_transition(req.status, RequestStatus.APPROVED)
            ok = self._requests.approve_with_absence(
                req.request_id,
                expected=(req.status,),
                decided_by=approver.user_id,
                decided_at=now,
                decision_note=note,
                absence_reason=APPROVED_ABSENCE_REASON.format(
                    request_id=req.request_id, reason_detail=req.reason_detail
                ),
            )
        if not ok:
            raise ConflictError(_STALE)
        logger.info(
            "staff request %s %s by %s (requester=%s event=%s)",
            req.request_id,
            "conditionally approved" if conditional else "approved",
            approver.user_id,
            req.requester_id,
            req.event_id,
        )

    def reject(
        self,
        *,
        approver_id: int,
        request_id: int,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        req = self._get(request_id)
        approver = self._authorize(approver_id, req)
        ensure_transition(req.status, RequestStatus.REJECTED)
        ok = self._requests.set_status(
            req.request_id,
            status=RequestStatus.REJECTED,
            expected=(req.status,),
            decided_by=approver.user_id,
            decided_at=now or now_local(),
            decision_note=optional_text(note),
        )
        if not ok:
            raise ConflictError(_STALE)
        logger.info("staff request %s rejected by %s", req.request_id, approver.user_id)

    def expire_overdue(self, *, now: Optional[datetime] = None) -> int:
        expired = self._requests.expire_overdue(
            now=now or now_local(), statuses=sources_for(RequestStatus.EXPIRED, REQUEST_TRANSITIONS)
        )
        if expired:
            logger.info("%d staff requests expired", expired)
        return expired

    # --- queries ---

    def get(self, request_id: int) -> StaffRequest:
        return self._get(request_id)

    def list_pending(self) -> Sequence[StaffRequest]:
        return self._requests.list_by_status(PENDING_REVIEW_STATUSES)

    def list_pending_for_approver(self, approver_id: int) -> List[StaffRequest]:
        policy = self._policies.for_approver(self._users.get_by_id(int(approver_id)))
        return [r for r in self.list_pending() if policy.decide(self._requester_tag(r)).allowed]

    def list_my_requests(self, requester_id: int) -> Sequence[StaffRequest]:
        return self._requests.list_for_requester(int(requester_id))

    def list_for_event(self, event_id: int) -> Sequence[StaffRequest]:
        return self._requests.list_for_event(int(event_id))

    def coaching_staff(self) -> Sequence[User]:
        return self._users.list_by_tags(COACHING_STAFF_TAGS)
