from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.constants import COACHING_STAFF_TAGS
from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: team member.

    Note: plain data object, no DB access. Members are deactivated, never deleted,
    so point logs and attendance history keep their owner.
    """

    user_id: int
    name: str
    number: str
    role: Role
    tag: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    join_date: Optional[date] = None
    total_points: int = 0
    is_active: bool = True
    last_login_at: Optional[datetime] = None

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER

    @property
    def is_coaching_staff(self) -> bool:
        return self.tag in COACHING_STAFF_TAGS

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "number": self.number,
            "role": self.role.value,
            "tag": self.tag,
            "position": self.position,
            "join_date": self.join_date.strftime("%Y-%m-%d") if self.join_date else None,
            "total_points": self.total_points,
            "is_active": self.is_active,
        }
