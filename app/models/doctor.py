from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

SPECIALTIES = (
    "Cardiologist",
    "General Physician",
    "Dermatologist",
    "Dentist",
    "Ophthalmologist",
    "Orthopedic",
    "Psychiatrist",
)

class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    hospital_id = Column(Integer, ForeignKey("hospitals.id"), nullable=False, index=True)

    # Professional information
    specialty = Column(String(100), nullable=False, index=True)
    city = Column(String(100), nullable=False, index=True)
    experience = Column(Integer, default=0)

    # Availability
    is_active = Column(Boolean, default=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="doctor")
    hospital = relationship("Hospital", back_populates="doctors")
    appointments = relationship("Appointment", back_populates="doctor")

    __table_args__ = (
        Index("ix_doctors_specialty_city", "specialty", "city"),
    )

    @property
    def name(self):
        return self.user.name if self.user else None

    def __repr__(self):
        return f"<Doctor(id={self.id}, specialty='{self.specialty}', city='{self.city}')>"
