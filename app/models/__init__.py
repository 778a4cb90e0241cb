from .user import User, RefreshToken
from .patient import Patient
from .hospital import Hospital
from .doctor import Doctor, SPECIALTIES
from .hospital_doctor import HospitalDoctor
from .appointment import (
    Appointment, HospitalAppointment, AppointmentStatus, ACTIVE_APPOINTMENT_STATUSES
)
from .emergency import (
    Emergency, EmergencyHospital, EmergencySeverity, EmergencyStatus, OPEN_EMERGENCY_STATUSES
)
from .report import MedicalReport

__all__ = [
    "User", "RefreshToken", "Patient", "Hospital", "Doctor", "SPECIALTIES",
    "HospitalDoctor", "Appointment", "HospitalAppointment", "AppointmentStatus",
    "ACTIVE_APPOINTMENT_STATUSES", "Emergency", "EmergencyHospital",
    "EmergencySeverity", "EmergencyStatus", "OPEN_EMERGENCY_STATUSES",
    "MedicalReport",
]
