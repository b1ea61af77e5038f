"""Announcements, their audience filters and resolved recipients."""

from sqlalchemy import Boolean, Column, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base, created_at_column, id_column, updated_at_column


class Announcement(Base):
    __tablename__ = "announcements"
    id = id_column()
    title = Column(String(500), nullable=False)
    content = Column(Text, nullable=False)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    archived = Column(Boolean, default=False, nullable=False)
    archived_at = Column(UTCDateTime)
    archived_by = Column(String(36), ForeignKey("users.id"))
    created_at = created_at_column()
    updated_at = updated_at_column()

    creator = relationship("User", foreign_keys=[created_by])
    filters = relationship(
        "AnnouncementFilter", back_populates="announcement", cascade="all, delete-orphan", passive_deletes=True
    )
    recipients = relationship(
        "AnnouncementRecipient", back_populates="announcement", cascade="all, delete-orphan", passive_deletes=True
    )


class AnnouncementFilter(Base):
    __tablename__ = "announcement_filters"
    id = id_column()
    announcement_id = Column(
        String(36), ForeignKey("announcements.id", ondelete="CASCADE"), nullable=False, index=True
    )
    filter_type = Column(String(20), nullable=False)  # program | year | university | location | status
    filter_value = Column(String(255), nullable=False)
    created_at = created_at_column()

    announcement = relationship("Announcement", back_populates="filters")


class AnnouncementRecipient(Base):
    __tablename__ = "announcement_recipients"
    id = id_column()
    announcement_id = Column(
        String(36), ForeignKey("announcements.id", ondelete="CASCADE"), nullable=False, index=True
    )
    scholar_id = Column(String(36), ForeignKey("scholars.id"), nullable=False, index=True)
    created_at = created_at_column()

    announcement = relationship("Announcement", back_populates="recipients")

    __table_args__ = (
        UniqueConstraint("announcement_id", "scholar_id", name="uq_announcement_recipient"),
    )
