from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.exceptions import NotFoundError, ValidationError
from ...api.deps import get_current_user
from ...core.security import UserRole
from ...models.user import User
from ...models.hospital import Hospital
from ...schemas.common import ApiResponse
from ...schemas.directory import HospitalResponse, HospitalUpdate, NearbyHospitalResponse
from ...services.geo import find_nearby_hospitals

router = APIRouter(prefix="/hospitals", tags=["Hospitals"])


@router.get("", response_model=ApiResponse[List[HospitalResponse]])
async def list_hospitals(db: Session = Depends(get_db)):
    hospitals = db.query(Hospital).filter(Hospital.is_active.is_(True)).order_by(Hospital.name).all()
    data = [HospitalResponse.model_validate(h) for h in hospitals]
    return ApiResponse(data=data, count=len(data))


@router.get("/nearby", response_model=ApiResponse[List[NearbyHospitalResponse]])
async def nearby_hospitals(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius: float = Query(50.0, gt=0, le=500, description="Search radius in km"),
    db: Session = Depends(get_db)
):
    """Active hospitals within ``radius`` km, nearest first."""
    data = [
        NearbyHospitalResponse(
            **HospitalResponse.model_validate(hospital).model_dump(),
            distance=round(distance, 2)
        )
        for hospital, distance in find_nearby_hospitals(db, latitude, longitude, radius_km=radius)
    ]
    return ApiResponse(data=data, count=len(data))


@router.patch("/me", response_model=ApiResponse[HospitalResponse])
async def update_my_hospital(
    data: HospitalUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update the calling hospital's profile; deactivation is allowed here."""
    if current_user.role != UserRole.HOSPITAL or not current_user.hospital:
        raise NotFoundError("Hospital profile")
    hospital = current_user.hospital

    changes = data.model_dump(exclude_unset=True)
    if (changes.get("latitude") is None) != (changes.get("longitude") is None):
        raise ValidationError("Latitude and longitude must be updated together")

    for field, value in changes.items():
        if value is not None:
            setattr(hospital, field, value)
    db.commit()
    db.refresh(hospital)
    return ApiResponse(message="Profile updated successfully", data=HospitalResponse.model_validate(hospital))


@router.get("/{hospital_id}", response_model=ApiResponse[HospitalResponse])
async def get_hospital(hospital_id: int, db: Session = Depends(get_db)):
    hospital = db.query(Hospital).filter(Hospital.id == hospital_id).first()
    if not hospital or not hospital.is_active:
        raise NotFoundError("Hospital")
    return ApiResponse(data=HospitalResponse.model_validate(hospital))
