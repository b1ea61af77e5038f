"""
schemas/announcements.py — Pydantic models for announcement endpoints

Business Rules:
- Title and content are required and non-empty
- Filters are (filterType, filterValue) pairs; unknown types are accepted
  here and ignored when recipients are resolved

Called by: routers/announcements.py
Depends on: pydantic
"""

from __future__ import annotations

from pydantic import Field, field_validator

from .common import CamelModel, required_text


class AnnouncementFilterIn(CamelModel):
    filter_type: str = Field(..., min_length=1, max_length=20)
    filter_value: str = Field(..., min_length=1, max_length=255)


class AnnouncementCreate(CamelModel):
    title: str = Field(..., max_length=500)
    content: str
    filters: list[AnnouncementFilterIn] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return required_text(v, "Title")

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        return required_text(v, "Content")
