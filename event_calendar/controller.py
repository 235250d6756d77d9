from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Dict, Optional

import pytz

from event_calendar import state as calendar_state
from event_calendar.client import ApiError, EventClient
from event_calendar.overlap import all_day_bounds
from event_calendar.state import CalendarState, Direction, EventDraft, ViewMode
from event_calendar.timeparse import get_timezone, to_iso

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to load events. Please try again."


class CalendarController:
    """Drives ``CalendarState`` from user actions and API responses.

    Every fetch is tagged with a generation number; responses for an
    older generation are dropped so a slow request cannot overwrite the
    result of a newer one.
    """

    def __init__(self, client: EventClient, today: date, tz=pytz.UTC, view: ViewMode = ViewMode.MONTH):
        self.client = client
        self.tz = get_timezone(tz) if isinstance(tz, str) else tz
        self.state = CalendarState(current_date=today, view=view)

    async def refresh(self) -> CalendarState:
        self.state, generation = calendar_state.begin_fetch(self.state)
        start, end = calendar_state.visible_range(self.state.view, self.state.current_date, self.tz)
        try:
            events = await self.client.get_events(start, end)
        except ApiError as exc:
            logger.warning("Fetch %s failed: %s", generation, exc.message)
            self.state = calendar_state.fetch_failed(self.state, generation, FETCH_FAILED_MESSAGE)
        else:
            if generation != self.state.fetch_generation:
                logger.debug("Discarding stale fetch %s", generation)
            self.state = calendar_state.fetch_succeeded(self.state, generation, events)
        return self.state

    async def change_view(self, view: ViewMode) -> CalendarState:
        self.state = calendar_state.change_view(self.state, view)
        return await self.refresh()

    async def navigate(self, direction: Direction) -> CalendarState:
        self.state = calendar_state.navigate(self.state, direction)
        return await self.refresh()

    async def go_to_today(self, today: date) -> CalendarState:
        self.state = calendar_state.go_to_today(self.state, today)
        return await self.refresh()

    async def select_date(self, day: date) -> CalendarState:
        self.state = calendar_state.select_date(self.state, day)
        return await self.refresh()

    def open_create(self, at: datetime) -> CalendarState:
        self.state = calendar_state.open_create(self.state, at)
        return self.state

    def open_event(self, event) -> CalendarState:
        self.state = calendar_state.open_event(self.state, event)
        return self.state

    def close_modal(self) -> CalendarState:
        self.state = calendar_state.close_modal(self.state)
        return self.state

    def dismiss_notification(self) -> CalendarState:
        self.state = calendar_state.dismiss_notification(self.state)
        return self.state

    def _normalized(self, draft: EventDraft) -> EventDraft:
        if not draft.all_day:
            return draft
        start, end = all_day_bounds(draft.start_time, draft.end_time, self.tz)
        return replace(draft, start_time=start, end_time=end)

    @staticmethod
    def _payload(draft: EventDraft) -> Dict[str, Any]:
        return {
            "title": draft.title,
            "description": draft.description,
            "startTime": to_iso(draft.start_time),
            "endTime": to_iso(draft.end_time),
            "allDay": draft.all_day,
            "color": draft.color,
            "location": draft.location,
            "recurring": draft.recurring.value,
        }

    async def save(self, draft: EventDraft, version: Optional[int] = None):
        """Create or update from the dialog; returns the stored event or ``None``."""
        draft = self._normalized(draft)
        problem = calendar_state.validate_draft(draft)
        if problem:
            self.state = calendar_state.notify(self.state, problem, "error")
            return None

        payload = self._payload(draft)

        try:
            if draft.is_existing:
                event = await self.client.update_event(draft.id, payload, version=version)
                message = "Event updated successfully!"
            else:
                event = await self.client.create_event(payload)
                message = "Event created successfully!"
        except ApiError as exc:
            self.state = calendar_state.notify(self.state, exc.message, "error")
            raise

        await self.refresh()
        self.state = calendar_state.close_modal(self.state)
        self.state = calendar_state.notify(self.state, message, "success")
        return event

    async def delete_selected(self):
        draft = self.state.selected_event
        if draft is None or not draft.is_existing:
            return None
        try:
            result = await self.client.delete_event(draft.id)
        except ApiError as exc:
            self.state = calendar_state.notify(self.state, exc.message, "error")
            raise

        await self.refresh()
        self.state = calendar_state.close_modal(self.state)
        self.state = calendar_state.notify(self.state, "Event deleted successfully!", "success")
        return result.event
