"""Overlap predicates deciding which events belong to a range, day or slot.

Two predicates are used. Range queries and day cells use an inclusive
test: an event belongs to ``[start, end]`` when it starts inside it, ends
inside it, or covers it entirely. Hour slots use the same three clauses
with an exclusive upper bound on the start and an exclusive lower bound
on the end, so an event beginning exactly on the next slot boundary is
not counted twice.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, List, Sequence, Tuple, TypeVar

import pytz

from event_calendar.timeparse import end_of_day, ensure_utc, hour_start, start_of_day

T = TypeVar("T")


def overlaps_inclusive(
    event_start: datetime,
    event_end: datetime,
    query_start: datetime,
    query_end: datetime,
) -> bool:
    return (
        (query_start <= event_start <= query_end)
        or (query_start <= event_end <= query_end)
        or (event_start <= query_start and event_end >= query_end)
    )


def overlaps_half_open(
    event_start: datetime,
    event_end: datetime,
    slot_start: datetime,
    slot_end: datetime,
) -> bool:
    return (
        (slot_start <= event_start < slot_end)
        or (slot_start < event_end <= slot_end)
        or (event_start <= slot_start and event_end >= slot_end)
    )


def event_interval(event) -> Tuple[datetime, datetime]:
    """Aware UTC ``(start, end)`` of a stored event or an API record."""
    return ensure_utc(event.start_time), ensure_utc(event.end_time)


def events_in_range(events: Iterable[T], start: datetime, end: datetime) -> List[T]:
    start, end = ensure_utc(start), ensure_utc(end)
    return [e for e in events if overlaps_inclusive(*event_interval(e), start, end)]


def day_bounds(day: date, tz=pytz.UTC) -> Tuple[datetime, datetime]:
    return start_of_day(day, tz), end_of_day(day, tz)


def events_for_day(events: Iterable[T], day: date, tz=pytz.UTC) -> List[T]:
    day_start, day_end = day_bounds(day, tz)
    return events_in_range(events, day_start, day_end)


def events_for_time_slot(events: Iterable[T], day: date, hour: int, tz=pytz.UTC) -> List[T]:
    slot_start = ensure_utc(hour_start(day, hour, tz))
    slot_end = ensure_utc(hour_start(day, hour + 1, tz))
    return [e for e in events if overlaps_half_open(*event_interval(e), slot_start, slot_end)]


def split_all_day(events: Sequence[T]) -> Tuple[List[T], List[T]]:
    """Partition into ``(all_day, timed)`` preserving order."""
    all_day = [e for e in events if e.all_day]
    timed = [e for e in events if not e.all_day]
    return all_day, timed


def all_day_bounds(start: datetime, end: datetime, tz=pytz.UTC) -> Tuple[datetime, datetime]:
    """Widen an all-day interval to whole days in ``tz``."""
    start_day = ensure_utc(start).astimezone(tz).date()
    end_day = ensure_utc(end).astimezone(tz).date()
    return ensure_utc(start_of_day(start_day, tz)), ensure_utc(end_of_day(end_day, tz))
