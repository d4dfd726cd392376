from __future__ import annotations

from typing import Tuple

from .base import ApprovalPolicy


class NoAuthorityPolicy(ApprovalPolicy):
    def approvable_tags(self) -> Tuple[str, ...]:
        return ()

    def refusal_reason(self) -> str:
        return "승인 권한이 없습니다."
