"""Scholar requests (approvals), their attachments and audit trail."""

from sqlalchemy import Boolean, Column, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from ..database import UTCDateTime, utcnow
from .base import Base, created_at_column, id_column, updated_at_column


class ScholarRequest(Base):
    __tablename__ = "requests"
    id = id_column()
    scholar_id = Column(String(36), ForeignKey("scholars.id"), nullable=False)
    type = Column(String(40), nullable=False)
    description = Column(Text, nullable=False)
    form_data = Column(Text)  # JSON string, type-specific fields
    priority = Column(String(10), default="medium", nullable=False)
    # Status workflow: pending → reviewed | commented → approved | rejected
    status = Column(String(20), default="pending", nullable=False)
    submitted_date = Column(UTCDateTime, default=utcnow, nullable=False)
    assigned_to = Column(String(36), ForeignKey("users.id"))
    reviewed_by = Column(String(36), ForeignKey("users.id"))
    review_comment = Column(Text)
    review_date = Column(UTCDateTime)
    archived = Column(Boolean, default=False, nullable=False)
    archived_at = Column(UTCDateTime)
    archived_by = Column(String(36), ForeignKey("users.id"))
    created_at = created_at_column()
    updated_at = updated_at_column()

    scholar = relationship("Scholar", back_populates="requests")
    attachments = relationship(
        "RequestAttachment",
        back_populates="request",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="desc(RequestAttachment.uploaded_at)",
    )
    audit_logs = relationship(
        "RequestAuditLog",
        back_populates="request",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="desc(RequestAuditLog.created_at)",
    )

    __table_args__ = (
        Index("ix_requests_status_submitted", "status", "submitted_date"),
        Index("ix_requests_scholar", "scholar_id"),
    )


class RequestAttachment(Base):
    __tablename__ = "request_attachments"
    id = id_column()
    request_id = Column(String(36), ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(500), nullable=False)
    size = Column(String(50), nullable=False)
    url = Column(String(2048), nullable=False)  # storage key
    mime_type = Column(String(255), nullable=False)
    uploaded_at = Column(UTCDateTime, default=utcnow, nullable=False)

    request = relationship("ScholarRequest", back_populates="attachments")


class RequestAuditLog(Base):
    __tablename__ = "request_audit_logs"
    id = id_column()
    request_id = Column(String(36), ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(30), nullable=False)  # created | status_changed | comment_added | attachment_added
    performed_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    previous_status = Column(String(20))
    new_status = Column(String(20))
    comment = Column(Text)
    metadata_json = Column("metadata", Text)
    created_at = created_at_column()

    request = relationship("ScholarRequest", back_populates="audit_logs")
