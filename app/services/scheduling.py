"""Appointment book shared by doctor-direct and hospital-doctor bookings.

One :class:`AppointmentScheduler` drives both appointment tables; it is
parameterized over the appointment model and the provider model (anything
with ``id``, ``is_active`` and ``hospital_id``).

Booking and rescheduling lock the provider row before the conflict check so
concurrent requests for the same provider are serialized; the partial unique
index on ``(provider, slot_bucket)`` backs this up at the storage layer.
State transitions are conditional updates, so a request acting on a stale
status fails instead of overwriting a concurrent change.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..models.appointment import (
    Appointment, HospitalAppointment, AppointmentStatus, ACTIVE_APPOINTMENT_STATUSES
)
from ..models.doctor import Doctor
from ..models.hospital_doctor import HospitalDoctor

logger = logging.getLogger(__name__)

CONFLICT_WINDOW = timedelta(minutes=settings.APPOINTMENT_CONFLICT_MINUTES)

# action -> (statuses it may start from, resulting status)
TRANSITIONS = {
    "confirm": ({AppointmentStatus.PENDING}, AppointmentStatus.CONFIRMED),
    "complete": ({AppointmentStatus.CONFIRMED}, AppointmentStatus.COMPLETED),
    "cancel": (
        {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED},
        AppointmentStatus.CANCELLED,
    ),
    "reopen": (set(ACTIVE_APPOINTMENT_STATUSES), AppointmentStatus.PENDING),
}

STATUS_ACTIONS = {
    AppointmentStatus.PENDING: "reopen",
    AppointmentStatus.CONFIRMED: "confirm",
    AppointmentStatus.COMPLETED: "complete",
    AppointmentStatus.CANCELLED: "cancel",
}


def to_utc_naive(value: datetime) -> datetime:
    """Stored datetimes are naive UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def slot_bucket(when: datetime) -> int:
    seconds = when.replace(tzinfo=timezone.utc).timestamp()
    return int(seconds // CONFLICT_WINDOW.total_seconds())


class AppointmentScheduler:
    def __init__(
        self,
        db: Session,
        appointment_model,
        provider_model,
        provider_label: str = "Doctor",
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.db = db
        self.model = appointment_model
        self.provider_model = provider_model
        self.provider_label = provider_label
        self.provider_field = appointment_model.PROVIDER_FIELD
        self.provider_column = getattr(appointment_model, self.provider_field)
        self.clock = clock

    # Conflict checking

    def has_conflict(
        self,
        provider_id: int,
        candidate: datetime,
        exclude_appointment_id: Optional[int] = None,
    ) -> bool:
        """True if an active appointment of the provider lies within the
        conflict window around ``candidate`` (both ends inclusive)."""
        candidate = to_utc_naive(candidate)
        query = self.db.query(self.model.id).filter(
            self.provider_column == provider_id,
            self.model.status.in_(ACTIVE_APPOINTMENT_STATUSES),
            self.model.date >= candidate - CONFLICT_WINDOW,
            self.model.date <= candidate + CONFLICT_WINDOW,
        )
        if exclude_appointment_id is not None:
            query = query.filter(self.model.id != exclude_appointment_id)
        return query.first() is not None

    def ensure_future(self, when: datetime) -> datetime:
        when = to_utc_naive(when)
        if when <= self.clock():
            raise ValidationError("Appointment must be in the future")
        return when

    # Lifecycle

    def book(self, patient_id: int, provider_id: int, when: datetime,
             notes: Optional[str] = None, **extra):
        """Create a pending appointment after the conflict check."""
        when = self.ensure_future(when)

        provider = self._lock_provider(provider_id)
        if not provider or not provider.is_active:
            raise NotFoundError(self.provider_label)

        if self.has_conflict(provider.id, when):
            self.db.rollback()
            logger.warning(
                f"Slot conflict booking {self.provider_field}={provider.id} at {when.isoformat()}"
            )
            raise ConflictError("Selected time is not available. Please choose another slot.")

        appointment = self.model(
            patient_id=patient_id,
            hospital_id=provider.hospital_id,
            date=when,
            slot_bucket=slot_bucket(when),
            status=AppointmentStatus.PENDING,
            notes=notes.strip() if notes else None,
            **{self.provider_field: provider.id},
            **extra,
        )
        self.db.add(appointment)
        self._commit_slot("Selected time is not available. Please choose another slot.")
        self.db.refresh(appointment)

        logger.info(
            f"Booked {self.model.__tablename__} id={appointment.id} "
            f"{self.provider_field}={provider.id} patient_id={patient_id} at {when.isoformat()}"
        )
        return appointment

    def reschedule(self, appointment_id: int, when: datetime, **owner):
        """Move an active appointment; it returns to pending on success."""
        when = self.ensure_future(when)

        appointment = self._scoped(appointment_id, owner).first()
        if not appointment:
            raise NotFoundError("Appointment")
        if appointment.status not in ACTIVE_APPOINTMENT_STATUSES:
            raise ConflictError(f"Cannot reschedule a {appointment.status.value} appointment")

        provider_id = appointment.provider_id
        self._lock_provider(provider_id)
        if self.has_conflict(provider_id, when, exclude_appointment_id=appointment.id):
            self.db.rollback()
            logger.warning(
                f"Slot conflict rescheduling {self.model.__tablename__} id={appointment_id} "
                f"to {when.isoformat()}"
            )
            raise ConflictError("New time not available")

        try:
            updated = self._scoped(appointment_id, owner).filter(
                self.model.status.in_(ACTIVE_APPOINTMENT_STATUSES)
            ).update(
                {
                    "date": when,
                    "slot_bucket": slot_bucket(when),
                    "status": AppointmentStatus.PENDING,
                },
                synchronize_session=False,
            )
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Slot index rejected move of {self.model.__tablename__} id={appointment_id}")
            raise ConflictError("New time not available")
        if not updated:
            self.db.rollback()
            raise ConflictError("Appointment changed while rescheduling; please retry")

        self._commit_slot("New time not available")
        logger.info(f"Rescheduled {self.model.__tablename__} id={appointment_id} to {when.isoformat()}")
        return self._scoped(appointment_id, owner).first()

    def confirm(self, appointment_id: int, **owner):
        return self._transition(appointment_id, "confirm", owner)

    def complete(self, appointment_id: int, **owner):
        return self._transition(appointment_id, "complete", owner)

    def cancel(self, appointment_id: int, **owner):
        return self._transition(appointment_id, "cancel", owner)

    def set_status(self, appointment_id: int, status: AppointmentStatus, **owner):
        return self._transition(appointment_id, STATUS_ACTIONS[status], owner)

    # Queries

    def get(self, appointment_id: int, **owner):
        appointment = self._scoped(appointment_id, owner).first()
        if not appointment:
            raise NotFoundError("Appointment")
        return appointment

    def list_for(self, **owner) -> List:
        query = self.db.query(self.model)
        for field, value in owner.items():
            query = query.filter(getattr(self.model, field) == value)
        return query.order_by(self.model.date).all()

    # Internals

    def _scoped(self, appointment_id: int, owner: dict):
        query = self.db.query(self.model).filter(self.model.id == appointment_id)
        for field, value in owner.items():
            query = query.filter(getattr(self.model, field) == value)
        return query

    def _lock_provider(self, provider_id: int):
        return (
            self.db.query(self.provider_model)
            .filter(self.provider_model.id == provider_id)
            .with_for_update()
            .first()
        )

    def _transition(self, appointment_id: int, action: str, owner: dict):
        allowed, target = TRANSITIONS[action]
        updated = self._scoped(appointment_id, owner).filter(
            self.model.status.in_(allowed)
        ).update({"status": target}, synchronize_session=False)

        if not updated:
            current = self._scoped(appointment_id, owner).first()
            current_status = current.status if current else None
            self.db.rollback()
            if current_status is None:
                raise NotFoundError("Appointment")
            raise ConflictError(f"Cannot {action} a {current_status.value} appointment")

        self.db.commit()
        logger.info(f"{self.model.__tablename__} id={appointment_id} -> {target.value}")
        return self._scoped(appointment_id, owner).first()

    def _commit_slot(self, message: str):
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Slot index rejected write on {self.model.__tablename__}")
            raise ConflictError(message)


def doctor_scheduler(db: Session) -> AppointmentScheduler:
    """Appointments booked directly with registered doctors."""
    return AppointmentScheduler(db, Appointment, Doctor, provider_label="Doctor")


def hospital_doctor_scheduler(db: Session) -> AppointmentScheduler:
    """Appointments with doctors employed by a hospital."""
    return AppointmentScheduler(db, HospitalAppointment, HospitalDoctor, provider_label="Doctor")
