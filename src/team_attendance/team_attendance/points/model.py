from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PointCategory


@dataclass(frozen=True)
class PointLog:
    """Immutable ledger row. ``admin_id`` is None for system entries."""

    log_id: int
    user_id: int
    category: PointCategory
    reason: str
    points: int
    admin_id: Optional[int] = None
    event_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_system(self) -> bool:
        return self.admin_id is None

    def to_dict(self) -> dict:
        return {
            "id": self.log_id,
            "user_id": self.user_id,
            "admin_id": self.admin_id,
            "event_id": self.event_id,
            "category": self.category.value,
            "reason": self.reason,
            "points": self.points,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
