from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field

PHONE_PATTERN = r"^\+?[\d\s\-\(\)]+$"


class HospitalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    address: str
    city: str
    state: str
    phone: Optional[str] = None
    emergency_phone: Optional[str] = None
    specialties: List[str] = []
    coordinates: List[float]
    emergency_services: bool
    is_active: bool


class NearbyHospitalResponse(HospitalResponse):
    distance: float


class DoctorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: Optional[str] = None
    specialty: str
    city: str
    experience: int
    hospital_id: int
    is_active: bool


class HospitalDoctorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    specialty: str = Field(..., min_length=1, max_length=100)
    experience: int = Field(0, ge=0)
    qualifications: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=255)


class HospitalDoctorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    specialty: Optional[str] = Field(None, min_length=1, max_length=100)
    experience: Optional[int] = Field(None, ge=0)
    qualifications: Optional[str] = None
    is_active: Optional[bool] = None


class HospitalDoctorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    hospital_id: int
    name: str
    email: str
    phone: Optional[str] = None
    specialty: str
    experience: int
    qualifications: Optional[str] = None
    city: str
    state: str
    address: Optional[str] = None
    is_active: bool


class IssueRequest(BaseModel):
    issue: str = Field(..., min_length=1, max_length=2000)
    city: Optional[str] = None


class Recommendation(BaseModel):
    specialty: str
    doctors: List[DoctorResponse] = []
    hospital_doctors: List[HospitalDoctorResponse] = []


class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    original_name: str
    content_type: str
    size_bytes: int
    analysis: str
    file: str
    uploaded_at: datetime


class HospitalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    emergency_phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    specialties: Optional[List[str]] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    emergency_services: Optional[bool] = None
    is_active: Optional[bool] = None
