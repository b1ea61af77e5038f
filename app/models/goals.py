"""LDF goals and goal comments."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base, created_at_column, id_column, updated_at_column


class Goal(Base):
    __tablename__ = "goals"
    id = id_column()
    title = Column(String(500), nullable=False)
    description = Column(Text)
    category = Column(String(20), nullable=False)  # academic | career | leadership | personal | community
    target_date = Column(UTCDateTime, nullable=False)
    progress = Column(Integer, default=0, nullable=False)
    # Status workflow: pending → in_progress → completed
    status = Column(String(20), default="pending", nullable=False)
    scholar_id = Column(String(36), ForeignKey("scholars.id"), nullable=False)
    completed_at = Column(UTCDateTime)
    created_at = created_at_column()
    updated_at = updated_at_column()

    scholar = relationship("Scholar", back_populates="goals")
    comments = relationship(
        "GoalComment", back_populates="goal", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_goals_progress_range"),
        Index("ix_goals_scholar_created", "scholar_id", "created_at"),
    )


class GoalComment(Base):
    __tablename__ = "goal_comments"
    id = id_column()
    goal_id = Column(String(36), ForeignKey("goals.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    comment = Column(Text, nullable=False)
    created_at = created_at_column()
    updated_at = updated_at_column()

    goal = relationship("Goal", back_populates="comments")
    author = relationship("User")
