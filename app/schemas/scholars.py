"""
schemas/scholars.py — Pydantic models for scholar endpoints

Validates staff-created scholar profiles and scholar self-service edits.

Business Rules:
- Name and email are required when staff create a scholar
- Phone may only contain digits, spaces, +, -, and parentheses
- Date of birth must be in the past and give an age between 16 and 80
- Passport expiration date must not be in the past
- Scholars can never change their name, email or AAI scholar ID

Called by: routers/scholars.py
Depends on: pydantic
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Literal

from pydantic import Field, field_validator

from .common import CamelModel, clean_email, required_text

Gender = Literal["male", "female", "other", "prefer_not_to_say"]

_PHONE_RE = re.compile(r"^[\d\s+\-()]*$")


def parse_date(value: str) -> date:
    """Parse YYYY-MM-DD or a full ISO timestamp into a date."""
    value = value.strip()
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValueError("Invalid date, expected YYYY-MM-DD")


def _today() -> date:
    return datetime.now(timezone.utc).date()


class ScholarCreate(CamelModel):
    name: str = Field(..., max_length=255)
    email: str
    program: str | None = None
    year: str | None = None
    university: str | None = None
    start_date: str | None = None

    aai_scholar_id: str | None = None
    date_of_birth: str | None = None
    gender: Gender | None = None
    nationality: str | None = None
    phone: str | None = None
    location: str | None = None
    address_home_country: str | None = None
    passport_expiration_date: str | None = None
    visa_expiration_date: str | None = None
    emergency_contact_country_of_study: str | None = None
    emergency_contact_home_country: str | None = None
    graduation_date: str | None = None
    university_id: str | None = None
    dietary_information: str | None = None
    kokorozashi: str | None = None
    long_term_career_plan: str | None = None
    post_graduation_plan: str | None = None
    bio: str | None = None
    major_category: str | None = None
    field_of_study: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return required_text(v, "Name")

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return clean_email(v)

    @field_validator("phone")
    @classmethod
    def phone_chars(cls, v: str | None) -> str | None:
        if v and not _PHONE_RE.match(v):
            raise ValueError(
                "Phone number must contain only digits and valid phone characters (+, -, spaces, parentheses)"
            )
        return v

    @field_validator("date_of_birth")
    @classmethod
    def birth_date_reasonable(cls, v: str | None) -> str | None:
        if not v:
            return v
        born = parse_date(v)
        today = _today()
        if born >= today:
            raise ValueError("Date must be in the past")
        age = (today - born).days / 365.25
        if not 16 <= int(age) <= 80:
            raise ValueError("Age must be between 16 and 80 years")
        return v

    @field_validator("passport_expiration_date")
    @classmethod
    def passport_not_expired(cls, v: str | None) -> str | None:
        if not v:
            return v
        if parse_date(v) < _today():
            raise ValueError("Date must not be in the past")
        return v

    @field_validator("start_date", "graduation_date", "visa_expiration_date")
    @classmethod
    def valid_date(cls, v: str | None) -> str | None:
        if v:
            parse_date(v)
        return v


class ScholarProfileUpdate(CamelModel):
    """Scholar self-service edit. Empty strings mean "leave unchanged"."""

    date_of_birth: str | None = None
    gender: Gender | Literal[""] | None = None
    nationality: str | None = None
    phone: str | None = None
    location: str | None = None
    address_home_country: str | None = None
    passport_expiration_date: str | None = None
    visa_expiration_date: str | None = None
    emergency_contact_country_of_study: str | None = None
    emergency_contact_home_country: str | None = None
    program: str | None = None
    university: str | None = None
    year: str | None = None
    start_date: str | None = None
    graduation_date: str | None = None
    university_id: str | None = None
    dietary_information: str | None = None
    kokorozashi: str | None = None
    long_term_career_plan: str | None = None
    post_graduation_plan: str | None = None
    bio: str | None = None

    @field_validator("phone")
    @classmethod
    def phone_chars(cls, v: str | None) -> str | None:
        if v and not _PHONE_RE.match(v):
            raise ValueError(
                "Phone number must contain only digits and valid phone characters (+, -, spaces, parentheses)"
            )
        return v

    @field_validator("start_date", "graduation_date")
    @classmethod
    def valid_date(cls, v: str | None) -> str | None:
        if v:
            parse_date(v)
        return v
