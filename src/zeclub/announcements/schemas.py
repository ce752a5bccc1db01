"""Pydantic request/response models for announcement endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

AnnouncementType = Literal["info", "warning", "success", "urgent"]


class AnnouncementCreateRequest(BaseModel):
    """Create a banner. ``priority`` is clamped to 1..10; empty ``target_pages`` means all pages."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)
    type: AnnouncementType = "info"
    priority: int | None = None
    active: bool = True
    start_date: datetime | None = None
    end_date: datetime | None = None
    link: str | None = None
    link_text: str | None = Field(None, max_length=100)
    target_pages: list[str] | None = None
    dismissible: bool = True


class AnnouncementUpdateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(None, min_length=1, max_length=100)
    message: str | None = Field(None, min_length=1, max_length=500)
    type: AnnouncementType | None = None
    priority: int | None = None
    active: bool | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    link: str | None = None
    link_text: str | None = Field(None, max_length=100)
    target_pages: list[str] | None = None
    dismissible: bool | None = None


class AnnouncementResponse(BaseModel):
    id: int
    title: str
    message: str
    type: str
    priority: int
    active: bool
    start_date: datetime | None = None
    end_date: datetime | None = None
    link: str | None = None
    link_text: str | None = None
    target_pages: list[str]
    dismissible: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AnnouncementPagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_more: bool | None = None


class AnnouncementListResponse(BaseModel):
    announcements: list[AnnouncementResponse]
    pagination: AnnouncementPagination


class AnnouncementDeleteResponse(BaseModel):
    message: str
