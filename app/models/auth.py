"""Auth & user models."""

from sqlalchemy import Boolean, Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from .base import Base, created_at_column, id_column, updated_at_column


class User(Base):
    __tablename__ = "users"
    id = id_column()
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    image = Column(String(2048))
    user_type = Column(String(20), nullable=False)  # staff | scholar
    password_hash = Column(Text)  # null until the account is claimed
    created_at = created_at_column()
    updated_at = updated_at_column()

    staff = relationship("Staff", back_populates="user", uselist=False, cascade="all, delete-orphan")
    scholar = relationship("Scholar", back_populates="user", uselist=False, cascade="all, delete-orphan")


class Staff(Base):
    __tablename__ = "staff"
    id = id_column()
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    role = Column(String(20), default="viewer", nullable=False)  # admin | viewer
    phone = Column(String(50))
    department = Column(String(255))
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = created_at_column()
    updated_at = updated_at_column()

    user = relationship("User", back_populates="staff")
