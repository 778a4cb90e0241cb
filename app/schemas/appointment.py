from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from ..models.appointment import AppointmentStatus

NOTES_MAX_LENGTH = 500


class AppointmentCreate(BaseModel):
    doctor_id: int
    date: datetime
    notes: Optional[str] = Field(None, max_length=NOTES_MAX_LENGTH)


class HospitalAppointmentCreate(BaseModel):
    hospital_doctor_id: int
    date: datetime
    time: str = Field(..., min_length=1, max_length=20)
    notes: Optional[str] = Field(None, max_length=NOTES_MAX_LENGTH)


class RescheduleRequest(BaseModel):
    date: datetime


class StatusUpdate(BaseModel):
    status: AppointmentStatus


class AppointmentBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    hospital_id: int
    date: datetime
    status: AppointmentStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AppointmentResponse(AppointmentBase):
    doctor_id: int


class HospitalAppointmentResponse(AppointmentBase):
    hospital_doctor_id: int
    time: str
