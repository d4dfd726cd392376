from __future__ import annotations

from enum import Enum
from typing import Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name}을(를) 입력해주세요.")
    return str(value).strip()


def optional_text(value: Optional[str]) -> Optional[str]:
    v = (value or "").strip()
    return v or None


def require_enum(enum_cls: Type[E], value, field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"{field_name} 값이 올바르지 않습니다: {value!r}")


def require_int(value, field_name: str) -> int:
    # bool is an int subclass; a JSON true must not pass as 1 point
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name}은(는) 정수여야 합니다.")
    return value
