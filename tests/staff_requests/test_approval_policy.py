from __future__ import annotations

import pytest

from src.team_attendance.team_attendance.core.enums import Role
from src.team_attendance.team_attendance.staff_requests.factory import ApprovalPolicyFactory
from src.team_attendance.team_attendance.staff_requests.policies.chairman_policy import ChairmanPolicy
from src.team_attendance.team_attendance.staff_requests.policies.head_coach_policy import HeadCoachPolicy
from src.team_attendance.team_attendance.staff_requests.policies.no_authority_policy import NoAuthorityPolicy
from src.team_attendance.team_attendance.users.model import User


def _user(tag, *, active=True):
    return User(user_id=1, name="테스트", number="99", role=Role.MANAGER, tag=tag, is_active=active)


@pytest.mark.parametrize(
    "approver_tag, policy_cls",
    [
        ("단장", ChairmanPolicy),
        ("감독", HeadCoachPolicy),
        ("수석코치", NoAuthorityPolicy),
        (None, NoAuthorityPolicy),
    ],
)
def test_factory_picks_policy_by_tag(approver_tag, policy_cls):
    assert isinstance(ApprovalPolicyFactory().for_approver(_user(approver_tag)), policy_cls)


def test_inactive_or_missing_approver_has_no_authority():
    factory = ApprovalPolicyFactory()

    assert isinstance(factory.for_approver(_user("단장", active=False)), NoAuthorityPolicy)
    assert isinstance(factory.for_approver(None), NoAuthorityPolicy)


@pytest.mark.parametrize(
    "approver_tag, requester_tag, allowed",
    [
        ("단장", "감독", True),
        ("단장", "수석코치", False),
        ("단장", "투수코치", False),
        ("감독", "수석코치", True),
        ("감독", "투수코치", True),
        ("감독", "배터리코치", True),
        ("감독", "수비코치", True),
        ("감독", "감독", False),
        ("수석코치", "투수코치", False),
        (None, "감독", False),
    ],
)
def test_authorization_matrix(approver_tag, requester_tag, allowed):
    decision = ApprovalPolicyFactory().for_approver(_user(approver_tag)).decide(requester_tag)

    assert decision.allowed is allowed
    assert (decision.reason is None) is allowed


def test_refusal_messages():
    assert ChairmanPolicy().decide("투수코치").reason == "단장은 감독의 요청만 승인할 수 있습니다."
    assert HeadCoachPolicy().decide("감독").reason == "감독은 코치진의 요청만 승인할 수 있습니다."
    assert NoAuthorityPolicy().decide("감독").reason == "승인 권한이 없습니다."
