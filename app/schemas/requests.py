"""
schemas/requests.py — Pydantic models for scholar request endpoints

Business Rules:
- Type must be one of the four request types
- Description is required and non-empty
- Review status must be one of: approved, rejected, reviewed, commented

Called by: routers/requests.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, field_validator

from .common import CamelModel, required_text

RequestType = Literal[
    "extenuating_circumstances",
    "summer_funding_request",
    "summer_funding_report",
    "requirement_submission",
]
RequestStatus = Literal["pending", "approved", "rejected", "reviewed", "commented"]
ReviewStatus = Literal["approved", "rejected", "reviewed", "commented"]
Priority = Literal["high", "medium", "low"]


class RequestCreate(CamelModel):
    type: RequestType
    description: str = Field(..., max_length=10000)
    form_data: dict[str, Any] | None = None
    priority: Priority = "medium"
    assigned_to: str | None = None

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        return required_text(v, "Description")


class RequestStatusUpdate(CamelModel):
    status: ReviewStatus
    comment: str = Field("", max_length=5000)
