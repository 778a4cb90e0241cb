import asyncio
import io
from pathlib import Path

import pytest
from fastapi import UploadFile
from sqlalchemy.exc import OperationalError

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.services.document_service import (
    READ_CHUNK_SIZE, DocumentService, public_path, read_upload, sanitize_filename
)

PDF = b"%PDF-1.4 minimal test document"


def upload(client, patient, name="patient_bloodtest.pdf", content=PDF, content_type="application/pdf"):
    return client.post(
        "/api/v1/documents/upload",
        files={"report": (name, content, content_type)},
        headers=patient["headers"]
    )


class TestUpload:

    def test_upload_flags_blood_report(self, client, register_patient):
        patient = register_patient()

        response = upload(client, patient)
        assert response.status_code == 201

        data = response.json()["data"]
        assert "anemia" in data["analysis"]
        assert data["original_name"] == "patient_bloodtest.pdf"
        assert data["size_bytes"] == len(PDF)
        assert data["file"].startswith("/uploads/")
        assert data["file"].endswith("_patient_bloodtest.pdf")
        assert (Path(settings.UPLOAD_DIR) / Path(data["file"]).name).exists()

    def test_upload_without_flags(self, client, register_patient):
        patient = register_patient()
        response = upload(client, patient, name="report.pdf")
        assert response.json()["data"]["analysis"] == "Report stored. No automated flags raised."

    def test_rejects_unsupported_type(self, client, register_patient):
        patient = register_patient()
        response = upload(client, patient, name="notes.txt", content=b"hello", content_type="text/plain")
        assert response.status_code == 400
        assert "Invalid file type" in response.json()["message"]

    def test_rejects_oversized_file(self, client, register_patient, monkeypatch):
        patient = register_patient()
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 10)
        response = upload(client, patient)
        assert response.status_code == 400

    def test_upload_requires_file(self, client, register_patient):
        patient = register_patient()
        response = client.post("/api/v1/documents/upload", headers=patient["headers"])
        assert response.status_code == 400

    def test_hospitals_cannot_upload(self, client, register_hospital):
        hospital = register_hospital()
        response = upload(client, hospital)
        assert response.status_code == 403


class TestReports:

    def test_list_own_reports(self, client, register_patient):
        patient = register_patient()
        upload(client, patient)
        upload(client, patient, name="ecg.pdf")

        response = client.get(f"/api/v1/documents/patient/{patient['id']}/reports", headers=patient["headers"])
        assert response.status_code == 200
        assert response.json()["count"] == 2

    def test_other_patient_is_forbidden(self, client, register_patient):
        patient = register_patient()
        other = register_patient(email="other@example.com")

        response = client.get(f"/api/v1/documents/patient/{patient['id']}/reports", headers=other["headers"])
        assert response.status_code == 403

    def test_hospital_can_read_reports(self, client, register_patient, register_hospital):
        patient = register_patient()
        hospital = register_hospital()
        upload(client, patient)

        response = client.get(f"/api/v1/documents/patient/{patient['id']}/reports", headers=hospital["headers"])
        assert response.json()["count"] == 1

    def test_unknown_patient(self, client, register_hospital):
        hospital = register_hospital()
        response = client.get("/api/v1/documents/patient/999/reports", headers=hospital["headers"])
        assert response.status_code == 404


class TestDocumentService:

    def test_empty_file_rejected(self, db_session, make_patient, tmp_path):
        patient = make_patient()
        service = DocumentService(db_session, upload_dir=str(tmp_path))
        with pytest.raises(ValidationError) as exc:
            service.store_report(patient.id, "scan.png", "image/png", b"")
        assert exc.value.detail == "No file uploaded"

    def test_stores_under_upload_dir(self, db_session, make_patient, tmp_path):
        patient = make_patient()
        service = DocumentService(db_session, upload_dir=str(tmp_path / "nested"))
        report = service.store_report(patient.id, "../../etc/x ray.png", "image/png", b"img")

        stored = Path(report.file_path)
        assert stored.parent == tmp_path / "nested"
        assert stored.read_bytes() == b"img"
        assert public_path(report.file_path) == f"/uploads/{stored.name}"

    def test_sanitize_filename(self):
        assert sanitize_filename("my report (1).pdf") == "my_report__1_.pdf"
        assert sanitize_filename("../secret.pdf") == "secret.pdf"
        assert sanitize_filename(None) == "report"

    def test_failed_commit_removes_file(self, db_session, make_patient, tmp_path, monkeypatch):
        patient = make_patient()
        service = DocumentService(db_session, upload_dir=str(tmp_path))

        def broken_commit():
            raise OperationalError("INSERT INTO medical_reports", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "commit", broken_commit)
        with pytest.raises(OperationalError):
            service.store_report(patient.id, "scan.png", "image/png", b"img")
        assert list(tmp_path.iterdir()) == []


class TestReadUpload:

    def test_reads_small_file(self):
        upload = UploadFile(file=io.BytesIO(PDF), filename="report.pdf")
        assert asyncio.run(read_upload(upload, limit=1024)) == PDF

    def test_stops_once_over_limit(self):
        body = io.BytesIO(b"x" * (READ_CHUNK_SIZE * 10))
        upload = UploadFile(file=body, filename="huge.pdf")

        with pytest.raises(ValidationError):
            asyncio.run(read_upload(upload, limit=READ_CHUNK_SIZE))
        assert body.tell() == READ_CHUNK_SIZE * 2
