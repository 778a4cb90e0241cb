from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from ..models.emergency import EmergencySeverity, EmergencyStatus


class EmergencyCreate(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=500)
    severity: EmergencySeverity = EmergencySeverity.MEDIUM


class NearbyHospitalEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    hospital_id: int
    distance_km: float
    notified_at: datetime


class EmergencyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    latitude: float
    longitude: float
    address: Optional[str] = None
    description: Optional[str] = None
    severity: EmergencySeverity
    status: EmergencyStatus
    accepted_by_hospital_id: Optional[int] = None
    accepted_at: Optional[datetime] = None
    nearby_hospitals: List[NearbyHospitalEntry] = []
    created_at: datetime
    updated_at: Optional[datetime] = None
