from __future__ import annotations

from datetime import datetime

import pytest

from fakes import FakeRepos
from src.team_attendance.team_attendance.core.constants import TAG_CHAIRMAN, TAG_HEAD_COACH
from src.team_attendance.team_attendance.core.enums import Role


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 10, 12, 0, 0)


@pytest.fixture
def repos() -> FakeRepos:
    return FakeRepos()


@pytest.fixture
def container(repos):
    return repos.container()


@pytest.fixture
def roster(repos):
    """단장 / 감독 / two assistant coaches / two players."""

    users = repos.users
    return {
        "chairman": users.add("김단장", "0", role=Role.MANAGER, tag=TAG_CHAIRMAN),
        "head_coach": users.add("이감독", "1", role=Role.MANAGER, tag=TAG_HEAD_COACH),
        "chief_coach": users.add("박수석", "2", role=Role.MANAGER, tag="수석코치"),
        "pitching_coach": users.add("최투수", "3", role=Role.MANAGER, tag="투수코치"),
        "player_a": users.add("정선수", "10"),
        "player_b": users.add("한선수", "11"),
    }
