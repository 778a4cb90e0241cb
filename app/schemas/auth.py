from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..core.security import UserRole
from ..models.doctor import SPECIALTIES

PHONE_PATTERN = r"^\+?[\d\s\-\(\)]+$"


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class RegisterBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class PatientRegister(RegisterBase):
    age: Optional[int] = Field(None, ge=0, le=150)
    gender: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)


class DoctorRegister(RegisterBase):
    specialty: str
    city: str = Field(..., min_length=1, max_length=100)
    experience: int = Field(0, ge=0)
    hospital_id: int

    @field_validator("specialty")
    @classmethod
    def known_specialty(cls, value: str) -> str:
        if value not in SPECIALTIES:
            raise ValueError("Invalid specialty")
        return value


class HospitalRegister(RegisterBase):
    address: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    emergency_phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    specialties: List[str] = []
    latitude: float = Field(0.0, ge=-90, le=90)
    longitude: float = Field(0.0, ge=-180, le=180)
    emergency_services: bool = True


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: EmailStr
    role: UserRole
    is_active: bool
    created_at: Optional[datetime] = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
    profile_id: Optional[int] = None
