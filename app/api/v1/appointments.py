from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.exceptions import AuthorizationError, NotFoundError
from ...core.security import UserRole
from ...api.deps import get_current_user, get_current_patient, get_current_doctor
from ...models.user import User
from ...models.patient import Patient
from ...models.doctor import Doctor
from ...schemas.appointment import AppointmentCreate, AppointmentResponse, RescheduleRequest
from ...schemas.common import ApiResponse
from ...services.scheduling import doctor_scheduler

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def _one(appointment, message: str = None) -> ApiResponse[AppointmentResponse]:
    return ApiResponse(message=message, data=AppointmentResponse.model_validate(appointment))


@router.post(
    "",
    response_model=ApiResponse[AppointmentResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_appointment(
    data: AppointmentCreate,
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    """Book an appointment with a doctor; the doctor's hospital is attached automatically."""
    appointment = doctor_scheduler(db).book(
        patient_id=patient.id,
        provider_id=data.doctor_id,
        when=data.date,
        notes=data.notes
    )
    return _one(appointment, "Appointment created successfully")


@router.get("/mine", response_model=ApiResponse[List[AppointmentResponse]])
async def my_appointments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Appointments of the calling patient or doctor."""
    scheduler = doctor_scheduler(db)

    if current_user.role == UserRole.PATIENT:
        patient = db.query(Patient).filter(Patient.user_id == current_user.id).first()
        if not patient:
            raise NotFoundError("Patient profile")
        appointments = scheduler.list_for(patient_id=patient.id)
    elif current_user.role == UserRole.DOCTOR:
        doctor = db.query(Doctor).filter(Doctor.user_id == current_user.id).first()
        if not doctor:
            raise NotFoundError("Doctor profile")
        appointments = scheduler.list_for(doctor_id=doctor.id)
    else:
        raise AuthorizationError("Only patients and doctors have appointments")

    data = [AppointmentResponse.model_validate(a) for a in appointments]
    return ApiResponse(data=data, count=len(data))


@router.patch("/{appointment_id}/confirm", response_model=ApiResponse[AppointmentResponse])
async def confirm_appointment(
    appointment_id: int,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    appointment = doctor_scheduler(db).confirm(appointment_id, doctor_id=doctor.id)
    return _one(appointment, "Appointment confirmed")


@router.patch("/{appointment_id}/complete", response_model=ApiResponse[AppointmentResponse])
async def complete_appointment(
    appointment_id: int,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    appointment = doctor_scheduler(db).complete(appointment_id, doctor_id=doctor.id)
    return _one(appointment, "Appointment completed")


@router.patch("/{appointment_id}/cancel", response_model=ApiResponse[AppointmentResponse])
async def cancel_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cancel as the assigned doctor or as the patient who booked it."""
    scheduler = doctor_scheduler(db)

    if current_user.role == UserRole.DOCTOR:
        doctor = db.query(Doctor).filter(Doctor.user_id == current_user.id).first()
        if not doctor:
            raise NotFoundError("Doctor profile")
        appointment = scheduler.cancel(appointment_id, doctor_id=doctor.id)
    elif current_user.role == UserRole.PATIENT:
        patient = db.query(Patient).filter(Patient.user_id == current_user.id).first()
        if not patient:
            raise NotFoundError("Patient profile")
        appointment = scheduler.cancel(appointment_id, patient_id=patient.id)
    else:
        raise AuthorizationError("Only the doctor or the patient can cancel an appointment")

    return _one(appointment, "Appointment cancelled")


@router.patch("/{appointment_id}/reschedule", response_model=ApiResponse[AppointmentResponse])
async def reschedule_appointment(
    appointment_id: int,
    data: RescheduleRequest,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    appointment = doctor_scheduler(db).reschedule(appointment_id, data.date, doctor_id=doctor.id)
    return _one(appointment, "Appointment rescheduled")
