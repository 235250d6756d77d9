"""Grid geometry for the month, week and day views.

The hour grid is 24 rows of 60 pixel units, one unit per minute. Timed
events are clamped to the day they are drawn on, so a multi-day event
shows only its portion within each day. All-day events are not
positioned; they go to a separate lane above the grid.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, List, Optional, Sequence

import pytz
from dateutil.relativedelta import relativedelta

from event_calendar.overlap import day_bounds, event_interval, events_for_day, split_all_day

HOUR_HEIGHT = 60
MIN_EVENT_HEIGHT = 20
MONTH_CELL_LIMIT = 3

SATURDAY = 5


@dataclass(frozen=True)
class SlotPosition:
    top: int
    height: int


@dataclass(frozen=True)
class PositionedEvent:
    event: Any
    position: SlotPosition


@dataclass
class DayLayout:
    day: date
    all_day: List[Any] = field(default_factory=list)
    timed: List[PositionedEvent] = field(default_factory=list)


@dataclass
class MonthCell:
    day: date
    events: List[Any]
    overflow: int
    in_month: bool

    @property
    def is_weekend(self) -> bool:
        return self.day.weekday() >= SATURDAY

    @property
    def overflow_label(self) -> Optional[str]:
        return f"+{self.overflow} more" if self.overflow else None


def _offset(value: datetime, tz) -> int:
    local = value.astimezone(tz)
    return local.hour * HOUR_HEIGHT + local.minute


def position_event(event, day: date, tz=pytz.UTC) -> Optional[SlotPosition]:
    """Top offset and height of ``event`` on the hour grid of ``day``.

    Returns ``None`` for all-day events.
    """
    if event.all_day:
        return None
    day_start, day_end = day_bounds(day, tz)
    start, end = event_interval(event)
    top = _offset(max(start, day_start), tz)
    bottom = _offset(min(end, day_end), tz)
    return SlotPosition(top=top, height=max(bottom - top, MIN_EVENT_HEIGHT))


def layout_day(events: Sequence[Any], day: date, tz=pytz.UTC) -> DayLayout:
    all_day, timed = split_all_day(events_for_day(events, day, tz))
    return DayLayout(
        day=day,
        all_day=all_day,
        timed=[PositionedEvent(event, position_event(event, day, tz)) for event in timed],
    )


def week_start(day: date) -> date:
    """Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def days_in_week_view(day: date) -> List[date]:
    start = week_start(day)
    return [start + timedelta(days=offset) for offset in range(7)]


def days_in_month_view(day: date) -> List[date]:
    first = day.replace(day=1)
    last = first + relativedelta(months=1, days=-1)
    start = week_start(first)
    end = last + timedelta(days=(SATURDAY - last.weekday()) % 7)
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def layout_week(events: Sequence[Any], day: date, tz=pytz.UTC) -> List[DayLayout]:
    return [layout_day(events, current, tz) for current in days_in_week_view(day)]


def month_grid(
    events: Sequence[Any],
    day: date,
    tz=pytz.UTC,
    limit: int = MONTH_CELL_LIMIT,
) -> List[MonthCell]:
    cells = []
    for current in days_in_month_view(day):
        day_events = events_for_day(events, current, tz)
        cells.append(
            MonthCell(
                day=current,
                events=day_events[:limit],
                overflow=max(len(day_events) - limit, 0),
                in_month=(current.year, current.month) == (day.year, day.month),
            )
        )
    return cells
