"""Calendar UI state and its transitions.

``CalendarState`` is immutable. Each transition takes a state and returns
a new one, so the controller owns the only reference and every change
goes through a function here.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Optional, Sequence, Tuple
from uuid import UUID

import pytz
from dateutil.relativedelta import relativedelta

from event_calendar.layout import days_in_week_view
from event_calendar.models import DEFAULT_COLOR
from event_calendar.schemas import Recurrence
from event_calendar.timeparse import end_of_day, ensure_utc, start_of_day

DRAFT_DURATION = timedelta(hours=1)


class ViewMode(str, Enum):
    MONTH = "month"
    WEEK = "week"
    DAY = "day"


class Direction(str, Enum):
    PREV = "prev"
    NEXT = "next"


_STEPS = {
    ViewMode.MONTH: relativedelta(months=1),
    ViewMode.WEEK: relativedelta(weeks=1),
    ViewMode.DAY: relativedelta(days=1),
}


@dataclass(frozen=True)
class Notification:
    message: str
    kind: str = "info"


@dataclass(frozen=True)
class EventDraft:
    """Form contents of the create/edit dialog."""

    start_time: datetime
    end_time: datetime
    title: str = ""
    description: str = ""
    all_day: bool = False
    color: str = DEFAULT_COLOR
    location: str = ""
    recurring: Recurrence = Recurrence.NONE
    id: Optional[UUID] = None

    @classmethod
    def from_event(cls, event) -> "EventDraft":
        return cls(
            id=event.id,
            title=event.title,
            description=event.description,
            start_time=ensure_utc(event.start_time),
            end_time=ensure_utc(event.end_time),
            all_day=event.all_day,
            color=event.color,
            location=event.location,
            recurring=Recurrence(event.recurring),
        )

    @property
    def is_existing(self) -> bool:
        return self.id is not None


@dataclass(frozen=True)
class CalendarState:
    current_date: date
    view: ViewMode = ViewMode.MONTH
    events: Tuple[Any, ...] = ()
    selected_event: Optional[EventDraft] = None
    modal_open: bool = False
    loading: bool = False
    sidebar_open: bool = True
    notification: Optional[Notification] = None
    fetch_generation: int = 0


def visible_range(view: ViewMode, current: date, tz=pytz.UTC) -> Tuple[datetime, datetime]:
    """Instants bounding what ``view`` shows around ``current``."""
    if view == ViewMode.WEEK:
        days = days_in_week_view(current)
        first, last = days[0], days[-1]
    elif view == ViewMode.DAY:
        first = last = current
    else:
        first = current.replace(day=1)
        last = first + relativedelta(months=1, days=-1)
    return ensure_utc(start_of_day(first, tz)), ensure_utc(end_of_day(last, tz))


def change_view(state: CalendarState, view: ViewMode) -> CalendarState:
    return replace(state, view=ViewMode(view))


def navigate(state: CalendarState, direction: Direction) -> CalendarState:
    step = _STEPS[state.view]
    if Direction(direction) == Direction.NEXT:
        return replace(state, current_date=state.current_date + step)
    return replace(state, current_date=state.current_date - step)


def go_to_today(state: CalendarState, today: date) -> CalendarState:
    return replace(state, current_date=today)


def select_date(state: CalendarState, day: date) -> CalendarState:
    return replace(state, current_date=day)


def toggle_sidebar(state: CalendarState) -> CalendarState:
    return replace(state, sidebar_open=not state.sidebar_open)


def open_create(state: CalendarState, at: datetime) -> CalendarState:
    start = ensure_utc(at)
    draft = EventDraft(start_time=start, end_time=start + DRAFT_DURATION)
    return replace(state, selected_event=draft, modal_open=True)


def open_event(state: CalendarState, event) -> CalendarState:
    return replace(state, selected_event=EventDraft.from_event(event), modal_open=True)


def close_modal(state: CalendarState) -> CalendarState:
    return replace(state, selected_event=None, modal_open=False)


def begin_fetch(state: CalendarState) -> Tuple[CalendarState, int]:
    generation = state.fetch_generation + 1
    return replace(state, loading=True, fetch_generation=generation), generation


def fetch_succeeded(state: CalendarState, generation: int, events: Sequence[Any]) -> CalendarState:
    if generation != state.fetch_generation:
        return state
    return replace(state, events=tuple(events), loading=False)


def fetch_failed(state: CalendarState, generation: int, message: str) -> CalendarState:
    if generation != state.fetch_generation:
        return state
    return replace(state, loading=False, notification=Notification(message, "error"))


def notify(state: CalendarState, message: str, kind: str = "info") -> CalendarState:
    return replace(state, notification=Notification(message, kind))


def dismiss_notification(state: CalendarState) -> CalendarState:
    return replace(state, notification=None)


def validate_draft(draft: EventDraft) -> Optional[str]:
    if not draft.title.strip():
        return "Title is required"
    if draft.end_time <= draft.start_time:
        return "End time must be after start time"
    return None
