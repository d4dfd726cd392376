from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("날짜 형식이 올바르지 않습니다 (YYYY-MM-DD)")


def parse_hhmm(value: Optional[str]) -> Optional[time]:
    v = (value or "").strip()
    if not v:
        return None
    try:
        return datetime.strptime(v[:5], "%H:%M").time()
    except ValueError:
        raise ValidationError("시간 형식이 올바르지 않습니다 (HH:MM)")


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    v = (value or "").strip()
    if not v:
        return None
    try:
        return datetime.fromisoformat(v)
    except ValueError:
        raise ValidationError("일시 형식이 올바르지 않습니다 (YYYY-MM-DDTHH:MM)")


def event_start(event_date: date, event_time: time) -> datetime:
    return datetime.combine(event_date, event_time)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
