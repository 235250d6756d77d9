from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from event_calendar import errors, models, schemas
from event_calendar.queries import DateRange, build_list_query
from event_calendar.timeparse import parse_timestamp

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 200

_WIRE_NAMES = {"start_time": "startTime", "end_time": "endTime", "all_day": "allDay"}
_NULLABLE_DEFAULTS = {
    "description": "",
    "location": "",
    "color": models.DEFAULT_COLOR,
}


def parse_event_id(raw: Union[str, UUID]) -> UUID:
    if isinstance(raw, UUID):
        return raw
    try:
        return UUID(str(raw))
    except ValueError as exc:
        raise errors.InvalidArgument("Invalid event ID format") from exc


def _clean_title(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise errors.ValidationError("Title cannot be empty")
    title = value.strip()
    if len(title) > TITLE_MAX_LENGTH:
        raise errors.ValidationError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")
    return title


def _parse_time_field(field: str, value: Any) -> datetime:
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        raise errors.ValidationError(f"Invalid {_WIRE_NAMES[field]} format") from exc


def _check_order(start: datetime, end: datetime) -> None:
    if end <= start:
        raise errors.ValidationError("End time must be after start time")


def _check_color(color: str, enforce_palette: bool) -> str:
    if enforce_palette and color not in schemas.PALETTE.values():
        raise errors.ValidationError(f"Color must be one of {', '.join(schemas.PALETTE.values())}")
    return color


async def create_event(
    session: AsyncSession,
    *,
    payload: schemas.EventCreate,
    enforce_palette: bool = False,
) -> models.Event:
    if not payload.title or not payload.start_time or not payload.end_time:
        raise errors.ValidationError("Title, startTime, and endTime are required")

    start_dt = _parse_time_field("start_time", payload.start_time)
    end_dt = _parse_time_field("end_time", payload.end_time)
    _check_order(start_dt, end_dt)
    title = _clean_title(payload.title)

    recurring = payload.recurring or schemas.Recurrence.NONE
    event = models.Event(
        title=title,
        description=payload.description or "",
        start_time=start_dt,
        end_time=end_dt,
        all_day=bool(payload.all_day),
        color=_check_color(payload.color or models.DEFAULT_COLOR, enforce_palette),
        location=payload.location or "",
        recurring=recurring.value,
    )
    session.add(event)
    await session.commit()
    await session.refresh(event)
    logger.info("Created event %s (%s - %s)", event.id, event.start_time, event.end_time)
    return event


async def get_event(session: AsyncSession, event_id: Union[str, UUID]) -> models.Event:
    event = await session.get(models.Event, parse_event_id(event_id))
    if event is None:
        raise errors.NotFound("Event not found")
    return event


async def list_events(
    session: AsyncSession, date_range: Optional[DateRange] = None
) -> list[models.Event]:
    result = await session.execute(build_list_query(date_range))
    return list(result.scalars())


async def update_event(
    session: AsyncSession,
    event_id: Union[str, UUID],
    *,
    changes: Dict[str, Any],
    expected_version: Optional[int] = None,
    enforce_palette: bool = False,
) -> models.Event:
    """Apply a partial update.

    ``changes`` holds only the fields present in the request. Start and
    end are validated against each other using the stored value for
    whichever one was omitted.
    """
    event = await get_event(session, event_id)
    if expected_version is not None and event.version != expected_version:
        raise errors.Conflict("Event has been modified since it was last read")

    values: Dict[str, Any] = {}
    for field, value in changes.items():
        if value is None:
            if field not in _NULLABLE_DEFAULTS:
                raise errors.ValidationError(f"{_WIRE_NAMES.get(field, field)} cannot be null")
            value = _NULLABLE_DEFAULTS[field]
        values[field] = value

    if "start_time" in values:
        values["start_time"] = _parse_time_field("start_time", values["start_time"])
    if "end_time" in values:
        values["end_time"] = _parse_time_field("end_time", values["end_time"])
    _check_order(
        values.get("start_time", event.start_time),
        values.get("end_time", event.end_time),
    )
    if "title" in values:
        values["title"] = _clean_title(values["title"])
    if "color" in values:
        _check_color(values["color"], enforce_palette)
    if "recurring" in values:
        values["recurring"] = schemas.Recurrence(values["recurring"]).value

    for field, value in values.items():
        setattr(event, field, value)
    event.updated_at = datetime.now(timezone.utc)

    try:
        await session.commit()
    except StaleDataError as exc:
        await session.rollback()
        raise errors.Conflict("Event was modified concurrently") from exc
    await session.refresh(event)
    logger.info("Updated event %s fields=%s version=%s", event.id, sorted(values), event.version)
    return event


async def delete_event(session: AsyncSession, event_id: Union[str, UUID]) -> schemas.EventResponse:
    """Remove the event and return its state prior to deletion."""
    event = await get_event(session, event_id)
    snapshot = schemas.EventResponse.model_validate(event)
    await session.delete(event)
    try:
        await session.commit()
    except StaleDataError as exc:
        await session.rollback()
        raise errors.Conflict("Event was modified concurrently") from exc
    logger.info("Deleted event %s", snapshot.id)
    return snapshot
