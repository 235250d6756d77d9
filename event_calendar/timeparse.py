from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Union

import pytz
from dateutil import parser as dtparser

# Last representable instant of a day at millisecond precision.
END_OF_DAY = time(23, 59, 59, 999000)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO 8601 string into an aware UTC datetime.

    Naive values are read as UTC. Raises ``ValueError`` when the value
    cannot be parsed.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        if not value.strip():
            raise ValueError("empty timestamp")
        try:
            parsed = dtparser.isoparse(value.strip())
        except (TypeError, OverflowError) as exc:
            raise ValueError(str(exc)) from exc
    else:
        raise ValueError(f"unsupported timestamp type {type(value).__name__}")
    try:
        return ensure_utc(parsed)
    except OverflowError as exc:
        # Offsets near datetime.min or datetime.max have no UTC equivalent.
        raise ValueError(str(exc)) from exc


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: datetime) -> str:
    """Render as ``2024-01-15T10:00:00.000Z``."""
    value = ensure_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def get_timezone(name: str):
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        return pytz.UTC


def localize(day: date, at: time, tz) -> datetime:
    """Attach ``tz`` to the wall-clock time ``at`` on ``day``."""
    naive = datetime.combine(day, at)
    if hasattr(tz, "localize"):
        return tz.localize(naive)
    return naive.replace(tzinfo=tz)


def start_of_day(day: date, tz=pytz.UTC) -> datetime:
    return localize(day, time.min, tz)


def end_of_day(day: date, tz=pytz.UTC) -> datetime:
    return localize(day, END_OF_DAY, tz)


def hour_start(day: date, hour: int, tz=pytz.UTC) -> datetime:
    """Start of ``hour`` on ``day``; hour 24 rolls over to the next midnight."""
    if hour >= 24:
        return localize(day + timedelta(days=hour // 24), time(hour % 24), tz)
    return localize(day, time(hour), tz)


def local_date(value: datetime, tz=pytz.UTC) -> date:
    return ensure_utc(value).astimezone(tz).date()
