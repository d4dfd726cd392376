"""Fixed point rules managers pick from when granting or deducting points."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..core.enums import PointCategory


@dataclass(frozen=True)
class PointRule:
    label: str
    points: int


POINT_RULES: Dict[PointCategory, Tuple[PointRule, ...]] = {
    PointCategory.PARTICIPATION: (
        PointRule("경기 출석", 10),
        PointRule("팀 훈련 참여", 15),
        PointRule("지각 (60분 이상)", -5),
        PointRule("무단 결석", -20),
        PointRule("미투표", -7),
    ),
    PointCategory.GAME: (
        PointRule("경기 MVP", 10),
        PointRule("멀티 출루 (안타/볼넷/사구)", 3),
        PointRule("타점 3점 이상", 3),
        PointRule("도루 성공", 1),
        PointRule("팀 승리 (전원)", 5),
        PointRule("투수 세 타자 연속 범퇴", 15),
        PointRule("수비 실책/본헤드", -3),
        PointRule("밀어내기 볼넷", -3),
        PointRule("지시 무시", -10),
    ),
    PointCategory.TEAM: (
        PointRule("팀 행사 참여", 15),
        PointRule("콘텐츠 제작/제공", 5),
        PointRule("실무 지원 (장비/리서치)", 10),
        PointRule("장비 정리/운반", 3),
        PointRule("영상/사진 촬영 제공", 5),
    ),
    PointCategory.PENALTY: (
        PointRule("불성실 태도", -10),
        PointRule("무단결석 3회 누적", -5),
        PointRule("불필요한 언행", -7),
        PointRule("팀 분위기 저해", -20),
    ),
}


def find_rule(category: PointCategory, label: str) -> Optional[PointRule]:
    for rule in POINT_RULES.get(category, ()):
        if rule.label == label:
            return rule
    return None


def rules_as_dict() -> dict:
    return {
        category.value: [{"label": r.label, "point": r.points} for r in rules]
        for category, rules in POINT_RULES.items()
    }
