from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.exceptions import NotFoundError
from ...core.security import UserRole
from ...api.deps import get_current_user, get_current_patient, get_current_hospital
from ...models.user import User
from ...models.patient import Patient
from ...models.hospital import Hospital
from ...models.hospital_doctor import HospitalDoctor
from ...schemas.appointment import (
    HospitalAppointmentCreate, HospitalAppointmentResponse, RescheduleRequest, StatusUpdate
)
from ...schemas.common import ApiResponse
from ...services.scheduling import hospital_doctor_scheduler

router = APIRouter(prefix="/hospital-appointments", tags=["Hospital Appointments"])


def _one(appointment, message: str = None) -> ApiResponse[HospitalAppointmentResponse]:
    return ApiResponse(message=message, data=HospitalAppointmentResponse.model_validate(appointment))


def _many(appointments) -> ApiResponse[List[HospitalAppointmentResponse]]:
    data = [HospitalAppointmentResponse.model_validate(a) for a in appointments]
    return ApiResponse(data=data, count=len(data))


@router.post(
    "",
    response_model=ApiResponse[HospitalAppointmentResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_hospital_appointment(
    data: HospitalAppointmentCreate,
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    """Book an appointment with a hospital-employed doctor."""
    appointment = hospital_doctor_scheduler(db).book(
        patient_id=patient.id,
        provider_id=data.hospital_doctor_id,
        when=data.date,
        notes=data.notes,
        time=data.time.strip()
    )
    return _one(appointment, "Appointment created successfully")


@router.get("/patient", response_model=ApiResponse[List[HospitalAppointmentResponse]])
async def patient_hospital_appointments(
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    return _many(hospital_doctor_scheduler(db).list_for(patient_id=patient.id))


@router.get("/doctor/{doctor_id}", response_model=ApiResponse[List[HospitalAppointmentResponse]])
async def doctor_hospital_appointments(
    doctor_id: int,
    hospital: Hospital = Depends(get_current_hospital),
    db: Session = Depends(get_db)
):
    """Schedule of one of the calling hospital's doctors."""
    doctor = db.query(HospitalDoctor).filter(
        HospitalDoctor.id == doctor_id,
        HospitalDoctor.hospital_id == hospital.id
    ).first()
    if not doctor:
        raise NotFoundError("Doctor")
    return _many(hospital_doctor_scheduler(db).list_for(hospital_doctor_id=doctor.id))


@router.patch("/{appointment_id}/status", response_model=ApiResponse[HospitalAppointmentResponse])
async def update_hospital_appointment_status(
    appointment_id: int,
    data: StatusUpdate,
    hospital: Hospital = Depends(get_current_hospital),
    db: Session = Depends(get_db)
):
    appointment = hospital_doctor_scheduler(db).set_status(
        appointment_id, data.status, hospital_id=hospital.id
    )
    return _one(appointment, "Appointment status updated successfully")


@router.patch("/{appointment_id}/reschedule", response_model=ApiResponse[HospitalAppointmentResponse])
async def reschedule_hospital_appointment(
    appointment_id: int,
    data: RescheduleRequest,
    hospital: Hospital = Depends(get_current_hospital),
    db: Session = Depends(get_db)
):
    appointment = hospital_doctor_scheduler(db).reschedule(
        appointment_id, data.date, hospital_id=hospital.id
    )
    return _one(appointment, "Appointment rescheduled")


@router.patch("/{appointment_id}/cancel", response_model=ApiResponse[HospitalAppointmentResponse])
async def cancel_hospital_appointment(
    appointment_id: int,
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    """Patient cancels their own appointment."""
    appointment = hospital_doctor_scheduler(db).cancel(appointment_id, patient_id=patient.id)
    return _one(appointment, "Appointment cancelled successfully")


@router.get("/{appointment_id}", response_model=ApiResponse[HospitalAppointmentResponse])
async def get_hospital_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Visible to the booking patient and the hospital that owns the doctor."""
    scheduler = hospital_doctor_scheduler(db)

    if current_user.role == UserRole.PATIENT and current_user.patient:
        appointment = scheduler.get(appointment_id, patient_id=current_user.patient.id)
    elif current_user.role == UserRole.HOSPITAL and current_user.hospital:
        appointment = scheduler.get(appointment_id, hospital_id=current_user.hospital.id)
    else:
        raise NotFoundError("Appointment")

    return _one(appointment)
