from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ApprovalDecision:
    allowed: bool
    reason: Optional[str] = None


class ApprovalPolicy(ABC):
    """Strategy Pattern: which requester tags an approver may decide on."""

    @abstractmethod
    def approvable_tags(self) -> Tuple[str, ...]:
        raise NotImplementedError

    @abstractmethod
    def refusal_reason(self) -> str:
        raise NotImplementedError

    def decide(self, requester_tag: Optional[str]) -> ApprovalDecision:
        if requester_tag in self.approvable_tags():
            return ApprovalDecision(allowed=True)
        return ApprovalDecision(allowed=False, reason=self.refusal_reason())
