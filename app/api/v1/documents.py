from typing import List

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.exceptions import AuthorizationError, NotFoundError
from ...core.security import UserRole
from ...api.deps import get_current_user, get_current_patient
from ...models.user import User
from ...models.patient import Patient
from ...schemas.common import ApiResponse
from ...schemas.directory import ReportResponse
from ...services.document_service import (
    DocumentService, check_content_type, public_path, read_upload
)

router = APIRouter(prefix="/documents", tags=["Documents"])


def _report(report) -> ReportResponse:
    return ReportResponse(
        id=report.id,
        original_name=report.original_name,
        content_type=report.content_type,
        size_bytes=report.size_bytes,
        analysis=report.analysis,
        file=public_path(report.file_path),
        uploaded_at=report.uploaded_at
    )


@router.post(
    "/upload",
    response_model=ApiResponse[ReportResponse],
    status_code=status.HTTP_201_CREATED
)
async def upload_report(
    report: UploadFile = File(...),
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    """Store a medical report and return the keyword triage result."""
    check_content_type(report.content_type)
    content = await read_upload(report)
    stored = DocumentService(db).store_report(
        patient_id=patient.id,
        file_name=report.filename,
        content_type=report.content_type,
        content=content
    )
    return ApiResponse(message="Report uploaded successfully", data=_report(stored))


@router.get("/patient/{patient_id}/reports", response_model=ApiResponse[List[ReportResponse]])
async def patient_reports(
    patient_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if current_user.role == UserRole.PATIENT:
        if not current_user.patient or current_user.patient.id != patient_id:
            raise AuthorizationError("Patients can only view their own reports")

    if not db.query(Patient.id).filter(Patient.id == patient_id).first():
        raise NotFoundError("Patient")

    data = [_report(r) for r in DocumentService(db).reports_for(patient_id)]
    return ApiResponse(data=data, count=len(data))
