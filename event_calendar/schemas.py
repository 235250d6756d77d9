from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from event_calendar.models import DEFAULT_COLOR

PALETTE = {
    "Blue": "#4285f4",
    "Green": "#34a853",
    "Yellow": "#fbbc04",
    "Orange": "#ff9800",
    "Red": "#ea4335",
    "Purple": "#9c27b0",
    "Pink": "#e91e63",
    "Teal": "#009688",
}


class Recurrence(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EventCreate(CamelModel):
    # Timestamps are left untyped; the events service parses and reports them.
    title: str
    description: Optional[str] = Field(default=None, max_length=1000)
    start_time: Any
    end_time: Any
    all_day: Optional[bool] = None
    color: Optional[str] = Field(default=None, max_length=32)
    location: Optional[str] = Field(default=None, max_length=200)
    recurring: Optional[Recurrence] = None


class EventUpdate(CamelModel):
    """Partial update. Only fields present in the request body are applied."""

    title: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=1000)
    start_time: Any = None
    end_time: Any = None
    all_day: Optional[bool] = None
    color: Optional[str] = Field(default=None, max_length=32)
    location: Optional[str] = Field(default=None, max_length=200)
    recurring: Optional[Recurrence] = None


class EventResponse(CamelModel):
    id: UUID
    title: str
    description: str = ""
    start_time: datetime
    end_time: datetime
    all_day: bool = False
    color: str = DEFAULT_COLOR
    location: str = ""
    recurring: Recurrence = Recurrence.NONE
    version: int = 1
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class EventDeleteResponse(BaseModel):
    message: str
    event: EventResponse


class ErrorResponse(BaseModel):
    error: str
    kind: str
    status: int
