"""
schemas/invitations.py — Pydantic models for invitation endpoints

Business Rules:
- Email is lowercased and must look like an address
- userType must be staff or scholar
- scholarData pre-fills the scholar profile at sign-up

Called by: routers/invitations.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator

from .common import CamelModel, clean_email


class InvitedScholarData(CamelModel):
    name: str | None = None
    program: str | None = None
    year: str | None = None
    university: str | None = None
    location: str | None = None
    phone: str | None = None
    bio: str | None = None


class InvitationCreate(CamelModel):
    email: str
    user_type: Literal["staff", "scholar"]
    scholar_data: InvitedScholarData | None = None

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return clean_email(v)


class InvitationResend(CamelModel):
    invitation_id: str = Field(..., min_length=1)
