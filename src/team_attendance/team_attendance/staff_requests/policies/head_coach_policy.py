from __future__ import annotations

from typing import Tuple

from ...core.constants import ASSISTANT_COACH_TAGS
from .base import ApprovalPolicy


class HeadCoachPolicy(ApprovalPolicy):
    """감독 decides on the assistant coaches."""

    def approvable_tags(self) -> Tuple[str, ...]:
        return ASSISTANT_COACH_TAGS

    def refusal_reason(self) -> str:
        return "감독은 코치진의 요청만 승인할 수 있습니다."
