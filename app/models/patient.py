from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Personal information
    age = Column(Integer, nullable=True)
    gender = Column(String(20), nullable=True)

    # Location
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="patient")
    appointments = relationship("Appointment", back_populates="patient")
    hospital_appointments = relationship("HospitalAppointment", back_populates="patient")
    emergencies = relationship("Emergency", back_populates="patient")
    reports = relationship(
        "MedicalReport",
        back_populates="patient",
        order_by="MedicalReport.uploaded_at"
    )

    @property
    def name(self):
        return self.user.name if self.user else None

    def __repr__(self):
        return f"<Patient(id={self.id}, user_id={self.user_id})>"
