from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, Text, Index, text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class EmergencySeverity(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

class EmergencyStatus(str, enum.Enum):
    ACTIVE = "Active"
    ACCEPTED = "Accepted"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

OPEN_EMERGENCY_STATUSES = (EmergencyStatus.ACTIVE, EmergencyStatus.ACCEPTED)
_OPEN_CLAUSE = "status IN ('Active', 'Accepted')"


def _values(enum_cls):
    return [member.value for member in enum_cls]


class Emergency(Base):
    __tablename__ = "emergencies"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)

    # Patient location at the time of the request
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    address = Column(String(255), nullable=True)

    description = Column(Text, nullable=True)
    severity = Column(
        SQLEnum(EmergencySeverity, name="emergency_severity", values_callable=_values),
        nullable=False,
        default=EmergencySeverity.MEDIUM,
    )
    status = Column(
        SQLEnum(EmergencyStatus, name="emergency_status", values_callable=_values),
        nullable=False,
        default=EmergencyStatus.ACTIVE,
        index=True,
    )

    # Set exactly once, by the hospital that wins the accept
    accepted_by_hospital_id = Column(Integer, ForeignKey("hospitals.id"), nullable=True)
    accepted_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("Patient", back_populates="emergencies")
    accepted_by = relationship("Hospital")
    nearby_hospitals = relationship(
        "EmergencyHospital",
        back_populates="emergency",
        order_by="EmergencyHospital.distance_km",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        # A patient holds at most one open request
        Index(
            "uq_emergencies_patient_open",
            "patient_id",
            unique=True,
            sqlite_where=text(_OPEN_CLAUSE),
            postgresql_where=text(_OPEN_CLAUSE),
        ),
    )

    def __repr__(self):
        return f"<Emergency(id={self.id}, patient_id={self.patient_id}, status='{self.status}')>"


class EmergencyHospital(Base):
    """Snapshot row: a hospital notified when the emergency was raised."""

    __tablename__ = "emergency_hospitals"

    id = Column(Integer, primary_key=True, index=True)
    emergency_id = Column(Integer, ForeignKey("emergencies.id"), nullable=False, index=True)
    hospital_id = Column(Integer, ForeignKey("hospitals.id"), nullable=False, index=True)
    distance_km = Column(Float, nullable=False)
    notified_at = Column(DateTime, nullable=False)

    emergency = relationship("Emergency", back_populates="nearby_hospitals")
    hospital = relationship("Hospital")

    def __repr__(self):
        return f"<EmergencyHospital(emergency_id={self.emergency_id}, hospital_id={self.hospital_id}, distance_km={self.distance_km:.2f})>"
