from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.exceptions import ConflictError, NotFoundError
from ...api.deps import get_current_hospital
from ...models.doctor import Doctor
from ...models.hospital import Hospital
from ...models.hospital_doctor import HospitalDoctor
from ...schemas.common import ApiResponse
from ...schemas.directory import (
    DoctorResponse, HospitalDoctorCreate, HospitalDoctorResponse, HospitalDoctorUpdate
)

router = APIRouter(tags=["Doctors"])


def search_doctors(db: Session, specialty: Optional[str] = None, city: Optional[str] = None):
    query = db.query(Doctor).filter(Doctor.is_active.is_(True))
    if specialty:
        query = query.filter(Doctor.specialty == specialty)
    if city:
        query = query.filter(func.lower(Doctor.city) == city.strip().lower())
    return query.order_by(Doctor.experience.desc(), Doctor.id).all()


def search_hospital_doctors(db: Session, specialty: Optional[str] = None,
                            city: Optional[str] = None, state: Optional[str] = None):
    query = db.query(HospitalDoctor).filter(HospitalDoctor.is_active.is_(True))
    if specialty:
        query = query.filter(HospitalDoctor.specialty == specialty)
    if city:
        query = query.filter(func.lower(HospitalDoctor.city) == city.strip().lower())
    if state:
        query = query.filter(func.lower(HospitalDoctor.state) == state.strip().lower())
    return query.order_by(HospitalDoctor.experience.desc(), HospitalDoctor.name).all()


def save_hospital_doctor(db: Session, doctor: HospitalDoctor) -> HospitalDoctor:
    db.add(doctor)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Doctor with this email already exists in this hospital")
    db.refresh(doctor)
    return doctor


@router.get("/doctors", response_model=ApiResponse[List[DoctorResponse]])
async def list_doctors(
    specialty: Optional[str] = None,
    city: Optional[str] = None,
    db: Session = Depends(get_db)
):
    data = [DoctorResponse.model_validate(d) for d in search_doctors(db, specialty, city)]
    return ApiResponse(data=data, count=len(data))


@router.get("/hospital-doctors", response_model=ApiResponse[List[HospitalDoctorResponse]])
async def list_hospital_doctors(
    specialty: Optional[str] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    db: Session = Depends(get_db)
):
    doctors = search_hospital_doctors(db, specialty, city, state)
    data = [HospitalDoctorResponse.model_validate(d) for d in doctors]
    return ApiResponse(data=data, count=len(data))


@router.post(
    "/hospital-doctors",
    response_model=ApiResponse[HospitalDoctorResponse],
    status_code=status.HTTP_201_CREATED
)
async def add_hospital_doctor(
    data: HospitalDoctorCreate,
    hospital: Hospital = Depends(get_current_hospital),
    db: Session = Depends(get_db)
):
    """Add a doctor to the calling hospital; location defaults to the hospital's."""
    email = data.email.lower()
    existing = db.query(HospitalDoctor).filter(
        HospitalDoctor.hospital_id == hospital.id,
        HospitalDoctor.email == email
    ).first()
    if existing:
        raise ConflictError("Doctor with this email already exists in this hospital")

    doctor = HospitalDoctor(
        hospital_id=hospital.id,
        name=data.name.strip(),
        email=email,
        phone=data.phone,
        specialty=data.specialty.strip(),
        experience=data.experience,
        qualifications=data.qualifications,
        city=data.city or hospital.city,
        state=data.state or hospital.state,
        address=data.address or hospital.address,
        latitude=hospital.latitude,
        longitude=hospital.longitude,
        is_active=True
    )
    save_hospital_doctor(db, doctor)
    return ApiResponse(message="Doctor added successfully", data=HospitalDoctorResponse.model_validate(doctor))


@router.get("/hospital-doctors/{doctor_id}", response_model=ApiResponse[HospitalDoctorResponse])
async def get_hospital_doctor(doctor_id: int, db: Session = Depends(get_db)):
    doctor = db.query(HospitalDoctor).filter(HospitalDoctor.id == doctor_id).first()
    if not doctor:
        raise NotFoundError("Doctor")
    return ApiResponse(data=HospitalDoctorResponse.model_validate(doctor))


@router.patch("/hospital-doctors/{doctor_id}", response_model=ApiResponse[HospitalDoctorResponse])
async def update_hospital_doctor(
    doctor_id: int,
    data: HospitalDoctorUpdate,
    hospital: Hospital = Depends(get_current_hospital),
    db: Session = Depends(get_db)
):
    """Update one of the calling hospital's doctors; ``is_active=false`` retires them."""
    doctor = db.query(HospitalDoctor).filter(
        HospitalDoctor.id == doctor_id,
        HospitalDoctor.hospital_id == hospital.id
    ).first()
    if not doctor:
        raise NotFoundError("Doctor")

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(doctor, field, value)
    db.commit()
    db.refresh(doctor)
    return ApiResponse(message="Doctor updated successfully", data=HospitalDoctorResponse.model_validate(doctor))
