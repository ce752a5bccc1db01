"""Pydantic request/response models for event endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Admins file events as upcoming or past; "current" is derived from the date
EventType = Literal["upcoming", "past"]
EventStatus = Literal["draft", "published", "cancelled"]


class EventCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    event_date: datetime
    event_type: EventType
    image_url: str | None = None
    location: str | None = Field(None, max_length=200)
    registration_link: str | None = None
    featured: bool = False
    games: list[str] = Field(default_factory=list)
    organizer: str = Field("Zero Error Esports", min_length=1, max_length=128)
    max_participants: int | None = Field(None, ge=0)
    status: EventStatus = "draft"


class EventUpdateRequest(BaseModel):
    """Partial update. Only the fields sent are changed."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1)
    event_date: datetime | None = None
    event_type: EventType | None = None
    image_url: str | None = None
    location: str | None = Field(None, max_length=200)
    registration_link: str | None = None
    featured: bool | None = None
    games: list[str] | None = None
    organizer: str | None = Field(None, min_length=1, max_length=128)
    max_participants: int | None = Field(None, ge=0)
    status: EventStatus | None = None


class EventResponse(BaseModel):
    id: int
    title: str
    description: str
    event_date: datetime
    event_type: str
    image_url: str | None = None
    location: str | None = None
    registration_link: str | None = None
    featured: bool
    games: list[str]
    organizer: str
    max_participants: int | None = None
    current_participants: int
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AdminEventResponse(EventResponse):
    created_by: int | None = None


class EventListResponse(BaseModel):
    events: list[EventResponse]
    count: int


class EventPagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class AdminEventListResponse(BaseModel):
    events: list[AdminEventResponse]
    pagination: EventPagination


class EventDeleteResponse(BaseModel):
    message: str
