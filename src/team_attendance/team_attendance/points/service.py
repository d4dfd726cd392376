from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..common.validators import require_enum, require_int, require_non_empty
from ..core.constants import UNVOTED_PENALTY_POINTS, UNVOTED_PENALTY_REASON
from ..core.enums import PointCategory
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .model import PointLog
from .repository import PointRepository
from .rules import find_rule

logger = logging.getLogger(__name__)


class PointService:
    """Use case: points ledger.

    Every change to ``users.total_points`` goes through a ledger row, so
    ``sum(point_logs.points) == total_points`` holds per member.
    """

    def __init__(self, points: PointRepository, users: UserRepository):
        self._points = points
        self._users = users

    def _require_member(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("사용자를 찾을 수 없습니다.")
        return user

    def add_point_log(
        self,
        *,
        user_id: int,
        admin_id: Optional[int],
        category: PointCategory | str | None,
        reason: str,
        points: int,
    ) -> int:
        """Record a grant/deduction and return the member's new total."""

        category = require_enum(PointCategory, category or PointCategory.PARTICIPATION, "카테고리")
        reason = require_non_empty(reason, "사유")
        points = require_int(points, "점수")

        if admin_id is not None:
            admin = self._users.get_by_id(int(admin_id))
            if not admin or not admin.is_active or not admin.is_manager:
                raise AuthorizationError("매니저만 포인트를 부여할 수 있습니다.")
        target = self._require_member(user_id)

        new_total = self._points.add_log_with_total(
            user_id=target.user_id,
            admin_id=int(admin_id) if admin_id is not None else None,
            category=category,
            reason=reason,
            points=points,
        )
        logger.info(
            "points user=%s %+d (%s/%s) by admin=%s -> total=%d",
            target.user_id,
            points,
            category.value,
            reason,
            admin_id,
            new_total,
        )
        return new_total

    def grant_rule(self, *, user_id: int, admin_id: int, category: PointCategory | str, label: str) -> int:
        category = require_enum(PointCategory, category, "카테고리")
        rule = find_rule(category, label)
        if not rule:
            raise ValidationError(f"알 수 없는 포인트 항목입니다: {label}")
        return self.add_point_log(
            user_id=user_id, admin_id=admin_id, category=category, reason=rule.label, points=rule.points
        )

    def penalize_unvoted(self, *, user_id: int, event_id: int) -> Optional[int]:
        """System -7 for not voting; None when this event was already penalized."""

        return self._points.insert_system_penalty(
            user_id=int(user_id),
            event_id=int(event_id),
            category=PointCategory.PARTICIPATION,
            reason=UNVOTED_PENALTY_REASON.format(event_id=event_id),
            points=UNVOTED_PENALTY_POINTS,
        )

    def list_logs(self, user_id: int, *, limit: Optional[int] = None) -> Sequence[PointLog]:
        """Full history, newest first; ``limit`` trims it only when given."""

        if limit is not None and int(limit) < 1:
            raise ValidationError("limit은 1 이상이어야 합니다.")
        return self._points.list_for_user(int(user_id), limit=int(limit) if limit is not None else None)

    def ranking(self) -> List[User]:
        """Active members by total points, highest first; ties keep jersey order."""

        return sorted(self._users.list_active(), key=lambda u: u.total_points, reverse=True)

    def verify_total(self, user_id: int) -> bool:
        user = self._require_member(user_id)
        ledger = self._points.sum_for_user(user.user_id)
        if ledger != user.total_points:
            logger.warning("points drift user=%s ledger=%d total=%d", user.user_id, ledger, user.total_points)
            return False
        return True
