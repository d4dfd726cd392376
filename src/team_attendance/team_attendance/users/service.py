from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.validators import optional_text, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    name: str
    number: str
    role: Role
    tag: Optional[str]


class AuthService:
    """Use case: authenticate a member by name + jersey number."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, name: str, number: str) -> SessionUser:
        name = (name or "").strip()
        number = (number or "").strip()
        user = self._users.find_for_login(name=name, number=number) if name and number else None
        if not user or not user.is_active:
            raise AuthenticationError("등록되지 않은 사용자이거나 이름/등번호가 일치하지 않습니다.")

        self._users.touch_login(user.user_id, at=now_local())
        return SessionUser(
            user_id=user.user_id,
            name=user.name,
            number=user.number,
            role=user.role,
            tag=user.tag,
        )


class UserService:
    """Use case: membership management."""

    def __init__(self, users: UserRepository):
        self._users = users

    def get(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("사용자를 찾을 수 없습니다.")
        return user

    def require_manager(self, user_id: int) -> User:
        user = self.get(user_id)
        if not user.is_manager or not user.is_active:
            raise AuthorizationError("매니저만 수행할 수 있습니다.")
        return user

    def is_number_available(self, number: str) -> bool:
        return self._users.get_by_number((number or "").strip()) is None

    def sign_up(
        self,
        *,
        name: str,
        number: str,
        role: Role,
        position: Optional[str] = None,
        join_date: Optional[date] = None,
    ) -> int:
        name = require_non_empty(name, "이름")
        number = require_non_empty(number, "등번호")
        if not self.is_number_available(number):
            raise ValidationError("이미 사용 중인 등번호입니다.")

        user_id = self._users.create_user(
            name=name,
            number=number,
            role=role,
            position=optional_text(position) or "선수",
            join_date=join_date or now_local().date(),
        )
        logger.info("signup user=%s number=%s role=%s", user_id, number, role.value)
        return user_id

    def list_active(self):
        return self._users.list_active()

    def assign_tag(self, *, manager_id: int, user_id: int, tag: Optional[str]) -> None:
        self.require_manager(manager_id)
        self.get(user_id)
        if not self._users.set_tag(int(user_id), tag=optional_text(tag)):
            raise ValidationError("태그 변경에 실패했습니다.")
        logger.info("admin=%s set tag of user=%s to %r", manager_id, user_id, tag)

    def deactivate(self, *, manager_id: int, user_id: int) -> None:
        self.require_manager(manager_id)
        if int(manager_id) == int(user_id):
            raise ValidationError("자기 자신은 비활성화할 수 없습니다.")
        self.get(user_id)
        if not self._users.set_active(int(user_id), is_active=False):
            raise ValidationError("비활성화에 실패했습니다.")
        logger.info("admin=%s deactivated user=%s", manager_id, user_id)
