from __future__ import annotations

import hashlib
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from event_calendar import errors, schemas
from event_calendar.config import Settings, get_settings
from event_calendar.db import get_session
from event_calendar.queries import parse_range
from event_calendar.services import events as events_service
from event_calendar.services import ics as ics_service

router = APIRouter(
    prefix="/api/events",
    tags=["events"],
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": schemas.ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": schemas.ErrorResponse},
    },
)


def _etag(version: int) -> str:
    return f'"{version}"'


def _parse_if_match(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    token = value.strip()
    if token.startswith("W/"):
        token = token[2:]
    try:
        return int(token.strip('"'))
    except ValueError as exc:
        raise errors.InvalidArgument("Invalid If-Match header") from exc


@router.get("", response_model=list[schemas.EventResponse])
async def list_events(
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    session: AsyncSession = Depends(get_session),
) -> list[schemas.EventResponse]:
    date_range = parse_range(start_date, end_date)
    events = await events_service.list_events(session, date_range)
    return [schemas.EventResponse.model_validate(event) for event in events]


@router.get("/export.ics", response_class=Response)
async def export_ics(
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> Response:
    date_range = parse_range(start_date, end_date)
    events = await events_service.list_events(session, date_range)
    payload = ics_service.build_ics(events, settings)

    response = Response(content=payload, media_type="text/calendar; charset=utf-8")
    response.headers["Content-Disposition"] = "attachment; filename=events.ics"
    response.headers["Cache-Control"] = f"public, max-age={settings.ics_cache_seconds}"
    response.headers["ETag"] = hashlib.sha256(payload).hexdigest()
    return response


@router.get("/{event_id}", response_model=schemas.EventResponse)
async def get_event(
    event_id: str,
    response: Response,
    session: AsyncSession = Depends(get_session),
) -> schemas.EventResponse:
    event = await events_service.get_event(session, event_id)
    response.headers["ETag"] = _etag(event.version)
    return schemas.EventResponse.model_validate(event)


@router.post("", response_model=schemas.EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: schemas.EventCreate,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> schemas.EventResponse:
    event = await events_service.create_event(
        session, payload=payload, enforce_palette=settings.enforce_palette
    )
    return schemas.EventResponse.model_validate(event)


@router.put(
    "/{event_id}",
    response_model=schemas.EventResponse,
    responses={status.HTTP_409_CONFLICT: {"model": schemas.ErrorResponse}},
)
async def update_event(
    event_id: str,
    payload: schemas.EventUpdate,
    response: Response,
    if_match: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> schemas.EventResponse:
    event = await events_service.update_event(
        session,
        event_id,
        changes=payload.model_dump(exclude_unset=True),
        expected_version=_parse_if_match(if_match),
        enforce_palette=settings.enforce_palette,
    )
    response.headers["ETag"] = _etag(event.version)
    return schemas.EventResponse.model_validate(event)


@router.delete("/{event_id}", response_model=schemas.EventDeleteResponse)
async def delete_event(
    event_id: str,
    session: AsyncSession = Depends(get_session),
) -> schemas.EventDeleteResponse:
    deleted = await events_service.delete_event(session, event_id)
    return schemas.EventDeleteResponse(message="Event deleted successfully", event=deleted)
