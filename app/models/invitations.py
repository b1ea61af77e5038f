"""Invitations — the only way to create an account."""

from sqlalchemy import Column, ForeignKey, Integer, String, Text

from ..database import UTCDateTime
from .base import Base, created_at_column, id_column, updated_at_column


class Invitation(Base):
    __tablename__ = "invitations"
    id = id_column()
    email = Column(String(255), unique=True, nullable=False)
    user_type = Column(String(20), nullable=False)  # staff | scholar
    invited_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    # Status workflow: pending → accepted | expired | cancelled
    status = Column(String(20), default="pending", nullable=False)
    token = Column(String(64), unique=True, nullable=False)
    scholar_data = Column(Text)  # JSON string, pre-filled profile fields

    expires_at = Column(UTCDateTime, nullable=False)
    accepted_at = Column(UTCDateTime)
    user_id = Column(String(36), ForeignKey("users.id"))

    sent_at = Column(UTCDateTime)
    last_resent_at = Column(UTCDateTime)
    resent_count = Column(Integer, default=0, nullable=False)

    created_at = created_at_column()
    updated_at = updated_at_column()
