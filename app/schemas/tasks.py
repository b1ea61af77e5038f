"""
schemas/tasks.py — Pydantic models for task endpoints

Business Rules:
- Title is required and non-empty; scholarId must be a UUID
- Type must be one of the six task types; priority high/medium/low
- Bulk create requires at least one scholar
- Completion attachments are either plain storage keys or metadata objects

Called by: routers/tasks.py
Depends on: pydantic
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import AliasChoices, Field, field_validator

from .common import CamelModel, required_text

TaskType = Literal[
    "document_upload",
    "form_completion",
    "meeting_attendance",
    "goal_update",
    "feedback_submission",
    "other",
]
TaskStatus = Literal["pending", "in_progress", "completed"]
Priority = Literal["high", "medium", "low"]


class _TaskFields(CamelModel):
    title: str = Field(..., max_length=500)
    description: str | None = None
    type: TaskType
    priority: Priority = "medium"
    due_date: datetime

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return required_text(v, "Title")


class TaskCreate(_TaskFields):
    scholar_id: UUID


class TaskBulkCreate(_TaskFields):
    scholar_ids: list[UUID] = Field(..., min_length=1)


class TaskUpdate(CamelModel):
    title: str | None = Field(None, max_length=500)
    description: str | None = None
    type: TaskType | None = None
    priority: Priority | None = None
    due_date: datetime | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return required_text(v, "Title")


class TaskStatusUpdate(CamelModel):
    status: TaskStatus


class CompletionAttachment(CamelModel):
    attachment_id: str | None = None
    file_key: str | None = None
    file_name: str | None = None
    file_size: int | str | None = None
    mime_type: str | None = None


class TaskComplete(CamelModel):
    response_text: str | None = None
    # Older clients send the same list as attachmentIds
    attachments: list[str | CompletionAttachment] | None = Field(
        None, validation_alias=AliasChoices("attachments", "attachmentIds", "attachment_ids")
    )
