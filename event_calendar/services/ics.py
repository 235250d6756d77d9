from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from icalendar import Calendar, Event

from event_calendar import models
from event_calendar.config import Settings


def build_ics(events: Iterable[models.Event], settings: Settings) -> bytes:
    feed = Calendar()
    feed.add("prodid", f"-//{settings.app_name}//Event Export//EN")
    feed.add("version", "2.0")
    feed.add("calscale", "GREGORIAN")
    feed.add("x-wr-calname", settings.app_name)

    for event in events:
        feed.add_component(_event_component(event, settings))

    return feed.to_ical()


def _event_component(event: models.Event, settings: Settings) -> Event:
    component = Event()
    component.add("uid", f"{event.id}@{settings.app_name}")
    component.add("dtstamp", event.updated_at or datetime.now(timezone.utc))
    component.add("created", event.created_at)
    component.add("dtstart", event.start_time)
    component.add("dtend", event.end_time)
    component.add("summary", event.title)
    if event.description:
        component.add("description", event.description)
    if event.location:
        component.add("location", event.location)
    component.add("sequence", max(event.version - 1, 0))
    return component
