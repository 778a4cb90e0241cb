from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Float, Text, UniqueConstraint, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class HospitalDoctor(Base):
    """A doctor employed by a hospital; managed by the hospital account."""

    __tablename__ = "hospital_doctors"

    id = Column(Integer, primary_key=True, index=True)
    hospital_id = Column(Integer, ForeignKey("hospitals.id"), nullable=False, index=True)

    # Personal information
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=True)

    # Professional information
    specialty = Column(String(100), nullable=False, index=True)
    experience = Column(Integer, default=0)
    qualifications = Column(Text, nullable=True)

    # Location, defaulted from the hospital
    city = Column(String(100), nullable=False, index=True)
    state = Column(String(100), nullable=False)
    address = Column(String(255), nullable=True)
    longitude = Column(Float, nullable=False, default=0.0)
    latitude = Column(Float, nullable=False, default=0.0)

    is_active = Column(Boolean, default=True, index=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    hospital = relationship("Hospital", back_populates="hospital_doctors")
    appointments = relationship("HospitalAppointment", back_populates="hospital_doctor")

    __table_args__ = (
        UniqueConstraint("hospital_id", "email", name="uq_hospital_doctor_email"),
        Index("ix_hospital_doctors_specialty_city", "specialty", "city"),
    )

    def __repr__(self):
        return f"<HospitalDoctor(id={self.id}, name='{self.name}', specialty='{self.specialty}')>"
