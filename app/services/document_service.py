import logging
import re
import time
from datetime import datetime
from pathlib import Path

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ValidationError
from ..models.report import MedicalReport
from .classifiers import classify_document

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
READ_CHUNK_SIZE = 64 * 1024


def sanitize_filename(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", Path(name or "report").name) or "report"


def public_path(file_path: str) -> str:
    return f"/uploads/{Path(file_path).name}"


def check_content_type(content_type: str):
    if content_type not in settings.ALLOWED_UPLOAD_TYPES:
        raise ValidationError(
            "Invalid file type. Only JPEG, PNG, GIF, and PDF files are allowed."
        )


def _size_error() -> ValidationError:
    return ValidationError(
        f"File exceeds the {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB limit"
    )


async def read_upload(upload: UploadFile, limit: int = None) -> bytes:
    """Read an upload in chunks, stopping as soon as it passes ``limit`` bytes."""
    limit = settings.MAX_UPLOAD_SIZE if limit is None else limit
    chunks = []
    size = 0
    while True:
        chunk = await upload.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        size += len(chunk)
        if size > limit:
            raise _size_error()
        chunks.append(chunk)
    return b"".join(chunks)


class DocumentService:
    def __init__(self, db: Session, upload_dir: str = None):
        self.db = db
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)

    def store_report(self, patient_id: int, file_name: str, content_type: str,
                     content: bytes) -> MedicalReport:
        """Validate, persist and triage an uploaded report."""
        check_content_type(content_type)
        if not content:
            raise ValidationError("No file uploaded")
        if len(content) > settings.MAX_UPLOAD_SIZE:
            raise _size_error()

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        stored_name = f"{int(time.time() * 1000)}_{sanitize_filename(file_name)}"
        destination = self.upload_dir / stored_name
        destination.write_bytes(content)

        report = MedicalReport(
            patient_id=patient_id,
            file_path=str(destination),
            original_name=file_name or stored_name,
            content_type=content_type,
            size_bytes=len(content),
            analysis=classify_document(stored_name),
            uploaded_at=datetime.utcnow(),
        )
        self.db.add(report)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            destination.unlink(missing_ok=True)
            logger.error(f"Discarded {stored_name}: report record was not saved")
            raise
        self.db.refresh(report)

        logger.info(f"Stored report id={report.id} for patient_id={patient_id} ({len(content)} bytes)")
        return report

    def reports_for(self, patient_id: int):
        return (
            self.db.query(MedicalReport)
            .filter(MedicalReport.patient_id == patient_id)
            .order_by(MedicalReport.uploaded_at)
            .all()
        )
