from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_number(self, number: str) -> Optional[User]:
        raise NotImplementedError

    def find_for_login(self, *, name: str, number: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        name: str,
        number: str,
        role: Role,
        position: Optional[str],
        join_date: date,
        tag: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def touch_login(self, user_id: int, *, at: datetime) -> None:
        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def set_tag(self, user_id: int, *, tag: Optional[str]) -> bool:
        raise NotImplementedError

    def list_active(self) -> Sequence[User]:
        """Active members ordered by jersey number."""

        raise NotImplementedError

    def list_by_tags(self, tags: Sequence[str]) -> Sequence[User]:
        """Active managers carrying one of ``tags``."""

        raise NotImplementedError
