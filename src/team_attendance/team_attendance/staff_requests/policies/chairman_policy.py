from __future__ import annotations

from typing import Tuple

from ...core.constants import TAG_HEAD_COACH
from .base import ApprovalPolicy


class ChairmanPolicy(ApprovalPolicy):
    """단장 decides on the head coach only."""

    def approvable_tags(self) -> Tuple[str, ...]:
        return (TAG_HEAD_COACH,)

    def refusal_reason(self) -> str:
        return "단장은 감독의 요청만 승인할 수 있습니다."
