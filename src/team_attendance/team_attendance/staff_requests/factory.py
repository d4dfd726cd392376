from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import TAG_CHAIRMAN, TAG_HEAD_COACH
from ..users.model import User
from .policies.base import ApprovalPolicy
from .policies.chairman_policy import ChairmanPolicy
from .policies.head_coach_policy import HeadCoachPolicy
from .policies.no_authority_policy import NoAuthorityPolicy


@dataclass
class ApprovalPolicyFactory:
    """Factory Pattern: pick the approval policy from the approver's tag."""

    def for_approver(self, approver: Optional[User]) -> ApprovalPolicy:
        if not approver or not approver.is_active:
            return NoAuthorityPolicy()
        if approver.tag == TAG_CHAIRMAN:
            return ChairmanPolicy()
        if approver.tag == TAG_HEAD_COACH:
            return HeadCoachPolicy()
        return NoAuthorityPolicy()
