"""
schemas/goals.py — Pydantic models for LDF goal endpoints

Business Rules:
- Title is required and non-empty
- Category must be one of: academic, career, leadership, personal, community
- Progress is an integer 0..100
- Status must be one of: pending, in_progress, completed

Called by: routers/goals.py
Depends on: pydantic
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from .common import CamelModel, required_text

GoalCategory = Literal["academic", "career", "leadership", "personal", "community"]
GoalStatus = Literal["pending", "in_progress", "completed"]


class GoalCreate(CamelModel):
    title: str = Field(..., max_length=500)
    description: str | None = None
    category: GoalCategory
    target_date: datetime
    progress: int = Field(0, ge=0, le=100)
    status: GoalStatus = "pending"

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return required_text(v, "Title")


class GoalUpdate(CamelModel):
    title: str | None = Field(None, max_length=500)
    description: str | None = None
    category: GoalCategory | None = None
    target_date: datetime | None = None
    progress: int | None = Field(None, ge=0, le=100)
    status: GoalStatus | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return required_text(v, "Title")


# ── Comments ─────────────────────────────────────────────────────────


class CommentCreate(CamelModel):
    comment: str = Field(..., max_length=5000)

    @field_validator("comment")
    @classmethod
    def comment_not_blank(cls, v: str) -> str:
        return required_text(v, "Comment")


class CommentUpdate(CommentCreate):
    pass
