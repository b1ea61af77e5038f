"""
schemas/auth.py — Pydantic models for sign-up, sign-in and the current user

Business Rules:
- Passwords are at least 8 characters
- Emails are compared lowercased
- Sign-up profile fields only apply to scholar accounts

Called by: routers/auth.py, routers/users.py
Depends on: pydantic
"""

from __future__ import annotations

from pydantic import Field, field_validator

from .common import CamelModel, clean_email, required_text


class SignUp(CamelModel):
    email: str
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., max_length=255)
    program: str | None = None
    year: str | None = None
    university: str | None = None
    location: str | None = None
    phone: str | None = None
    bio: str | None = None

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return clean_email(v)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return required_text(v, "Name")


class SignIn(CamelModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def email_lower(cls, v: str) -> str:
        return v.strip().lower()


class UserUpdate(CamelModel):
    name: str | None = Field(None, max_length=255)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return required_text(v, "Name")


class ChangePassword(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)
