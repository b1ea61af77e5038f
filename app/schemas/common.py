"""
schemas/common.py — Shared schema base and field cleaners

Request bodies arrive in camelCase from the staff and scholar frontends;
CamelModel accepts both camelCase and snake_case field names.

Called by: schemas/*.py
Depends on: pydantic
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def clean_email(v: str) -> str:
    v = v.strip().lower()
    if not v or "@" not in v or v.startswith("@") or v.endswith("@"):
        raise ValueError("valid email required")
    return v


def required_text(v: str, label: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{label} is required")
    return v
