from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.exceptions import AuthorizationError, NotFoundError
from ...core.security import UserRole
from ...api.deps import get_current_user, get_current_patient, get_current_hospital
from ...models.user import User
from ...models.patient import Patient
from ...models.hospital import Hospital
from ...schemas.common import ApiResponse
from ...schemas.emergency import EmergencyCreate, EmergencyResponse
from ...services.emergency_service import EmergencyService

router = APIRouter(prefix="/emergency", tags=["Emergency"])


def _one(emergency, message: str = None, count: int = None) -> ApiResponse[EmergencyResponse]:
    return ApiResponse(
        message=message,
        data=EmergencyResponse.model_validate(emergency),
        count=count
    )


@router.post(
    "/sos",
    response_model=ApiResponse[EmergencyResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_sos(
    data: EmergencyCreate,
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    """Raise an SOS; ``count`` is the number of hospitals notified."""
    emergency = EmergencyService(db).create_sos(
        patient_id=patient.id,
        latitude=data.latitude,
        longitude=data.longitude,
        address=data.address,
        description=data.description,
        severity=data.severity
    )
    return _one(emergency, "Emergency SOS sent successfully", count=len(emergency.nearby_hospitals))


@router.get("/patient/{patient_id}", response_model=ApiResponse[List[EmergencyResponse]])
async def patient_emergencies(
    patient_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Emergency history, newest first; patients only see their own."""
    if current_user.role == UserRole.PATIENT:
        if not current_user.patient or current_user.patient.id != patient_id:
            raise AuthorizationError("Patients can only view their own emergencies")
    elif current_user.role != UserRole.HOSPITAL:
        raise AuthorizationError("Access denied")

    emergencies = EmergencyService(db).history(patient_id)
    data = [EmergencyResponse.model_validate(e) for e in emergencies]
    return ApiResponse(data=data, count=len(data))


@router.get("/{emergency_id}", response_model=ApiResponse[EmergencyResponse])
async def get_emergency(
    emergency_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Polled by the patient to learn whether a hospital accepted."""
    service = EmergencyService(db)
    emergency = service.get(emergency_id)

    if current_user.role == UserRole.PATIENT:
        visible = current_user.patient and emergency.patient_id == current_user.patient.id
    elif current_user.role == UserRole.HOSPITAL:
        visible = current_user.hospital and service.was_notified(emergency_id, current_user.hospital.id)
    else:
        visible = False

    if not visible:
        raise NotFoundError("Emergency")
    return _one(emergency)


@router.patch("/{emergency_id}/accept", response_model=ApiResponse[EmergencyResponse])
async def accept_emergency(
    emergency_id: int,
    hospital: Hospital = Depends(get_current_hospital),
    db: Session = Depends(get_db)
):
    emergency = EmergencyService(db).accept(emergency_id, hospital.id)
    return _one(emergency, "Emergency request accepted successfully")


@router.patch("/{emergency_id}/complete", response_model=ApiResponse[EmergencyResponse])
async def complete_emergency(
    emergency_id: int,
    hospital: Hospital = Depends(get_current_hospital),
    db: Session = Depends(get_db)
):
    emergency = EmergencyService(db).complete(emergency_id, hospital.id)
    return _one(emergency, "Emergency request completed successfully")


@router.patch("/{emergency_id}/cancel", response_model=ApiResponse[EmergencyResponse])
async def cancel_emergency(
    emergency_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cancelled by the patient who raised it or by the accepting hospital."""
    service = EmergencyService(db)

    if current_user.role == UserRole.PATIENT and current_user.patient:
        emergency = service.cancel(emergency_id, patient_id=current_user.patient.id)
    elif current_user.role == UserRole.HOSPITAL and current_user.hospital:
        emergency = service.cancel(emergency_id, hospital_id=current_user.hospital.id)
    else:
        raise AuthorizationError("Access denied")

    return _one(emergency, "Emergency request cancelled successfully")
