"""Tasks assigned by staff, and the scholar's response to each."""

from sqlalchemy import Column, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from ..database import UTCDateTime, utcnow
from .base import Base, created_at_column, id_column, updated_at_column


class Task(Base):
    __tablename__ = "tasks"
    id = id_column()
    title = Column(String(500), nullable=False)
    description = Column(Text)
    type = Column(String(30), nullable=False)
    priority = Column(String(10), default="medium", nullable=False)  # high | medium | low
    due_date = Column(UTCDateTime, nullable=False)
    # Status workflow: pending → in_progress → completed
    status = Column(String(20), default="pending", nullable=False)
    scholar_id = Column(String(36), ForeignKey("scholars.id"), nullable=False)
    assigned_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    completed_at = Column(UTCDateTime)
    created_at = created_at_column()
    updated_at = updated_at_column()

    scholar = relationship("Scholar", back_populates="tasks")
    assigner = relationship("User", foreign_keys=[assigned_by])
    response = relationship("TaskResponse", back_populates="task", uselist=False)

    __table_args__ = (
        Index("ix_tasks_scholar_due", "scholar_id", "due_date"),
    )


class TaskResponse(Base):
    __tablename__ = "task_responses"
    id = id_column()
    task_id = Column(String(36), ForeignKey("tasks.id"), unique=True, nullable=False)  # one per task
    response_text = Column(Text)
    submitted_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = updated_at_column()

    task = relationship("Task", back_populates="response")
    attachments = relationship(
        "TaskAttachment", back_populates="task_response", cascade="all, delete-orphan"
    )


class TaskAttachment(Base):
    __tablename__ = "task_attachments"
    id = id_column()
    task_response_id = Column(String(36), ForeignKey("task_responses.id"), nullable=False, index=True)
    file_name = Column(String(500), nullable=False)
    file_url = Column(String(2048), nullable=False)  # storage key
    file_size = Column(String(50), nullable=False)
    mime_type = Column(String(255), nullable=False)
    uploaded_at = Column(UTCDateTime, default=utcnow, nullable=False)

    task_response = relationship("TaskResponse", back_populates="attachments")
