import os
import tempfile
from datetime import datetime, timedelta

import pytest

# Configure the application for tests before it is imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="carelink-uploads-")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.main import app
from app.core.database import get_db, Base
from app.core.security import UserRole
from app import models

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

MUMBAI = (19.07, 72.87)


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def future(days: int = 2, hour: int = 10, minute: int = 0) -> datetime:
    return (datetime.utcnow() + timedelta(days=days)).replace(
        hour=hour, minute=minute, second=0, microsecond=0
    )


@pytest.fixture(scope="function")
def test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(test_db):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client


# API-level factories

@pytest.fixture
def register_hospital(client):
    def _register(email="hospital@example.com", name="City Hospital",
                  latitude=MUMBAI[0], longitude=MUMBAI[1], **extra):
        payload = {
            "name": name,
            "email": email,
            "password": "secret123",
            "address": "1 Marine Drive",
            "city": "Mumbai",
            "state": "Maharashtra",
            "latitude": latitude,
            "longitude": longitude,
        }
        payload.update(extra)
        response = client.post("/api/v1/auth/hospital/register", json=payload)
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return {"id": data["profile_id"], "headers": auth_headers(data["access_token"])}
    return _register


@pytest.fixture
def register_patient(client):
    def _register(email="patient@example.com", name="Asha Patel"):
        payload = {
            "name": name,
            "email": email,
            "password": "secret123",
            "age": 34,
            "city": "Mumbai",
        }
        response = client.post("/api/v1/auth/patient/register", json=payload)
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return {"id": data["profile_id"], "headers": auth_headers(data["access_token"])}
    return _register


@pytest.fixture
def register_doctor(client):
    def _register(hospital_id, email="doctor@example.com", name="Dr. Rao",
                  specialty="Cardiologist", city="Mumbai"):
        payload = {
            "name": name,
            "email": email,
            "password": "secret123",
            "specialty": specialty,
            "city": city,
            "experience": 8,
            "hospital_id": hospital_id,
        }
        response = client.post("/api/v1/auth/doctor/register", json=payload)
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return {"id": data["profile_id"], "headers": auth_headers(data["access_token"])}
    return _register


@pytest.fixture
def add_hospital_doctor(client):
    def _add(hospital_headers, email="staff@example.com", name="Dr. Mehta",
             specialty="Cardiologist"):
        payload = {"name": name, "email": email, "specialty": specialty, "experience": 5}
        response = client.post("/api/v1/hospital-doctors", json=payload, headers=hospital_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _add


# ORM-level factories for service tests

@pytest.fixture
def make_hospital(db_session):
    counter = {"n": 0}

    def _make(latitude=MUMBAI[0], longitude=MUMBAI[1], emergency_services=True,
              is_active=True, name=None):
        counter["n"] += 1
        n = counter["n"]
        user = models.User(
            email=f"hospital{n}@example.com", password_hash="x",
            name=name or f"Hospital {n}", role=UserRole.HOSPITAL
        )
        hospital = models.Hospital(
            user=user, name=name or f"Hospital {n}", email=user.email,
            address="Main Road", city="Mumbai", state="Maharashtra",
            latitude=latitude, longitude=longitude,
            emergency_services=emergency_services, is_active=is_active,
        )
        db_session.add(hospital)
        db_session.commit()
        return hospital
    return _make


@pytest.fixture
def make_patient(db_session):
    counter = {"n": 0}

    def _make():
        counter["n"] += 1
        user = models.User(
            email=f"patient{counter['n']}@example.com", password_hash="x",
            name=f"Patient {counter['n']}", role=UserRole.PATIENT
        )
        patient = models.Patient(user=user)
        db_session.add(patient)
        db_session.commit()
        return patient
    return _make


@pytest.fixture
def make_doctor(db_session):
    counter = {"n": 0}

    def _make(hospital, is_active=True):
        counter["n"] += 1
        user = models.User(
            email=f"doctor{counter['n']}@example.com", password_hash="x",
            name=f"Doctor {counter['n']}", role=UserRole.DOCTOR
        )
        doctor = models.Doctor(
            user=user, hospital_id=hospital.id, specialty="Cardiologist",
            city="Mumbai", is_active=is_active,
        )
        db_session.add(doctor)
        db_session.commit()
        return doctor
    return _make
