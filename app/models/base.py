"""Declarative base and shared column helpers."""

import uuid

from sqlalchemy import Column, String
from sqlalchemy.orm import DeclarativeBase

from ..database import UTCDateTime, utcnow


class Base(DeclarativeBase):
    pass


def new_id() -> str:
    return str(uuid.uuid4())


def id_column():
    return Column(String(36), primary_key=True, default=new_id)


def created_at_column():
    return Column(UTCDateTime, default=utcnow, nullable=False)


def updated_at_column():
    return Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)
