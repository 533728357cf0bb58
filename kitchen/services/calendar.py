from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from kitchen.core.config import TIMEZONE
from kitchen.core.errors import ValidationFailed

FRIDAY_OFFSET = 5


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def today(tz: str = TIMEZONE) -> date:
    return datetime.now(ZoneInfo(tz)).date()


def week_start(day: date) -> date:
    """Sunday of the week containing ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def week_window(day: date) -> tuple[date, date]:
    start = week_start(day)
    return start, start + timedelta(days=6)


def friday_of(day: date) -> date:
    return week_start(day) + timedelta(days=FRIDAY_OFFSET)


def parse_day(value: str | None, default: date | None = None) -> date:
    if not value:
        return default or today()
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        try:
            return date.fromisoformat(value)
        except ValueError as exc:
            raise ValidationFailed("Invalid date", {"date": value}) from exc
