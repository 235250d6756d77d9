from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import Select, and_, or_, select
from sqlalchemy.sql.elements import ColumnElement

from event_calendar import errors, models
from event_calendar.timeparse import parse_timestamp


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime


def parse_range(
    start_date: Optional[Union[str, datetime]],
    end_date: Optional[Union[str, datetime]],
) -> Optional[DateRange]:
    """Validate the ``startDate``/``endDate`` pair of a list request.

    Returns ``None`` (unbounded) unless both bounds are supplied.
    """
    if start_date is None or end_date is None:
        return None
    try:
        start = parse_timestamp(start_date)
        end = parse_timestamp(end_date)
    except ValueError as exc:
        raise errors.InvalidArgument("Invalid date format. Use ISO 8601 format.") from exc
    if end < start:
        raise errors.InvalidArgument("endDate must be after startDate")
    return DateRange(start=start, end=end)


def overlap_clause(date_range: DateRange) -> ColumnElement[bool]:
    """SQL form of the inclusive overlap predicate against ``date_range``."""
    start, end = date_range.start, date_range.end
    return or_(
        models.Event.start_time.between(start, end),
        models.Event.end_time.between(start, end),
        and_(models.Event.start_time <= start, models.Event.end_time >= end),
    )


def build_list_query(date_range: Optional[DateRange]) -> Select:
    stmt = select(models.Event)
    if date_range is not None:
        stmt = stmt.where(overlap_clause(date_range))
    return stmt.order_by(models.Event.start_time, models.Event.created_at)
