from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...schemas.common import ApiResponse
from ...schemas.directory import (
    DoctorResponse, HospitalDoctorResponse, IssueRequest, Recommendation
)
from ...services.classifiers import classify_symptoms
from .doctors import search_doctors, search_hospital_doctors

router = APIRouter(prefix="/issues", tags=["Recommendations"])


@router.post("/recommend", response_model=ApiResponse[Recommendation])
async def recommend(data: IssueRequest, db: Session = Depends(get_db)):
    """Route a free-text complaint to a specialty and the doctors who practise it."""
    specialty = classify_symptoms(data.issue)

    doctors = [DoctorResponse.model_validate(d) for d in search_doctors(db, specialty, data.city)]
    hospital_doctors = [
        HospitalDoctorResponse.model_validate(d)
        for d in search_hospital_doctors(db, specialty, data.city)
    ]
    return ApiResponse(
        data=Recommendation(specialty=specialty, doctors=doctors, hospital_doctors=hospital_doctors),
        count=len(doctors) + len(hospital_doctors)
    )
