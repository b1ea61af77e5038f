"""Scholar profile and scholar documents."""

from sqlalchemy import Column, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from ..database import UTCDateTime, utcnow
from .base import Base, created_at_column, id_column, updated_at_column


class Scholar(Base):
    __tablename__ = "scholars"
    id = id_column()
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    phone = Column(String(50))
    program = Column(String(255), nullable=False)
    year = Column(String(50), nullable=False)
    university = Column(String(255), nullable=False)
    location = Column(String(255))  # address, country of study
    start_date = Column(UTCDateTime, default=utcnow, nullable=False)
    status = Column(String(20), default="active", nullable=False)  # active | inactive | on_hold
    last_activity = Column(UTCDateTime)
    bio = Column(Text)

    # Extended profile
    aai_scholar_id = Column(String(100))  # locked, staff-assigned
    date_of_birth = Column(String(20))
    gender = Column(String(20))
    nationality = Column(String(100))
    address_home_country = Column(Text)
    passport_expiration_date = Column(String(20))
    visa_expiration_date = Column(String(20))
    emergency_contact_country_of_study = Column(Text)  # JSON: name, email, phone
    emergency_contact_home_country = Column(Text)  # JSON: name, email, phone
    graduation_date = Column(UTCDateTime)
    university_id = Column(String(100))
    dietary_information = Column(Text)
    kokorozashi = Column(Text)
    long_term_career_plan = Column(Text)
    post_graduation_plan = Column(Text)
    major_category = Column(String(255))
    field_of_study = Column(String(255))

    created_at = created_at_column()
    updated_at = updated_at_column()

    user = relationship("User", back_populates="scholar")
    goals = relationship("Goal", back_populates="scholar")
    tasks = relationship("Task", back_populates="scholar")
    requests = relationship("ScholarRequest", back_populates="scholar")
    documents = relationship("Document", back_populates="scholar")

    __table_args__ = (
        Index("ix_scholars_status", "status"),
    )


class Document(Base):
    __tablename__ = "documents"
    id = id_column()
    scholar_id = Column(String(36), ForeignKey("scholars.id"), nullable=False, index=True)
    name = Column(String(500), nullable=False)
    type = Column(String(50), nullable=False)  # transcript | certificate | report | ...
    mime_type = Column(String(255), nullable=False)
    size = Column(String(50), nullable=False)
    url = Column(String(2048), nullable=False)  # storage key
    uploaded_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    upload_date = Column(UTCDateTime, default=utcnow, nullable=False)
    created_at = created_at_column()
    updated_at = updated_at_column()

    scholar = relationship("Scholar", back_populates="documents")
