from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Float, JSON, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class Hospital(Base):
    __tablename__ = "hospitals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False, index=True)
    state = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)
    emergency_phone = Column(String(30), nullable=True)
    specialties = Column(JSON, default=list)

    # Geographic point, stored longitude first
    longitude = Column(Float, nullable=False, default=0.0)
    latitude = Column(Float, nullable=False, default=0.0)

    emergency_services = Column(Boolean, default=True)
    is_active = Column(Boolean, default=True, index=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="hospital")
    doctors = relationship("Doctor", back_populates="hospital")
    hospital_doctors = relationship("HospitalDoctor", back_populates="hospital")

    __table_args__ = (
        Index("ix_hospitals_location", "longitude", "latitude"),
    )

    @property
    def coordinates(self):
        return [self.longitude, self.latitude]

    def __repr__(self):
        return f"<Hospital(id={self.id}, name='{self.name}', city='{self.city}')>"
