from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, Index, text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship, declared_attr
import enum

from ..core.database import Base

class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

# Statuses that occupy a provider's time slot
ACTIVE_APPOINTMENT_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)
_ACTIVE_SLOT_CLAUSE = "status IN ('pending', 'confirmed')"


def _active_slot_index(name: str, provider_column: str) -> Index:
    """At most one live appointment per provider per 30 minute bucket."""
    return Index(
        name,
        provider_column,
        "slot_bucket",
        unique=True,
        sqlite_where=text(_ACTIVE_SLOT_CLAUSE),
        postgresql_where=text(_ACTIVE_SLOT_CLAUSE),
    )


class AppointmentMixin:
    """Columns shared by both appointment books.

    ``PROVIDER_FIELD`` names the column holding the provider reference so the
    scheduler can work against either table.
    """

    PROVIDER_FIELD = None

    id = Column(Integer, primary_key=True, index=True)

    @declared_attr
    def patient_id(cls):
        return Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)

    @declared_attr
    def hospital_id(cls):
        return Column(Integer, ForeignKey("hospitals.id"), nullable=False, index=True)

    # Appointment details
    date = Column(DateTime, nullable=False, index=True)
    slot_bucket = Column(Integer, nullable=False)
    status = Column(
        SQLEnum(
            AppointmentStatus,
            name="appointment_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=AppointmentStatus.PENDING,
        index=True,
    )
    notes = Column(Text, nullable=True)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def provider_id(self):
        return getattr(self, self.PROVIDER_FIELD)


class Appointment(AppointmentMixin, Base):
    """Appointment booked directly with a registered doctor."""

    __tablename__ = "appointments"
    PROVIDER_FIELD = "doctor_id"

    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)

    # Relationships
    patient = relationship("Patient", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")
    hospital = relationship("Hospital")

    __table_args__ = (
        _active_slot_index("uq_appointments_doctor_active_slot", "doctor_id"),
        Index("ix_appointments_doctor_date", "doctor_id", "date"),
    )

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, date='{self.date}')>"


class HospitalAppointment(AppointmentMixin, Base):
    """Appointment with a doctor employed by a hospital."""

    __tablename__ = "hospital_appointments"
    PROVIDER_FIELD = "hospital_doctor_id"

    hospital_doctor_id = Column(Integer, ForeignKey("hospital_doctors.id"), nullable=False, index=True)
    # Display-only, never used for conflict detection
    time = Column(String(20), nullable=False)

    # Relationships
    patient = relationship("Patient", back_populates="hospital_appointments")
    hospital_doctor = relationship("HospitalDoctor", back_populates="appointments")
    hospital = relationship("Hospital")

    __table_args__ = (
        _active_slot_index("uq_hospital_appointments_doctor_active_slot", "hospital_doctor_id"),
        Index("ix_hospital_appointments_doctor_date", "hospital_doctor_id", "date"),
        Index("ix_hospital_appointments_patient_status", "patient_id", "status"),
    )

    def __repr__(self):
        return f"<HospitalAppointment(id={self.id}, patient_id={self.patient_id}, hospital_doctor_id={self.hospital_doctor_id}, date='{self.date}')>"
