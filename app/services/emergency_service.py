import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError
from ..models.emergency import (
    Emergency, EmergencyHospital, EmergencySeverity, EmergencyStatus, OPEN_EMERGENCY_STATUSES
)
from ..models.patient import Patient
from .geo import find_nearby_hospitals

logger = logging.getLogger(__name__)


class EmergencyService:
    """SOS dispatch: Active -> Accepted -> Completed, or Cancelled before completion.

    The set of notified hospitals is computed once when the request is raised
    and never recomputed. Requests nobody accepts stay Active.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.utcnow):
        self.db = db
        self.clock = clock

    def create_sos(
        self,
        patient_id: int,
        latitude: float,
        longitude: float,
        address: Optional[str] = None,
        description: Optional[str] = None,
        severity: EmergencySeverity = EmergencySeverity.MEDIUM,
    ) -> Emergency:
        if not self.db.query(Patient.id).filter(Patient.id == patient_id).first():
            raise NotFoundError("Patient")

        if self._open_request_exists(patient_id):
            raise ConflictError("Patient already has an active emergency request")

        nearby = find_nearby_hospitals(
            self.db,
            latitude,
            longitude,
            radius_km=settings.EMERGENCY_RADIUS_KM,
            limit=settings.EMERGENCY_MAX_HOSPITALS,
            emergency_only=True,
        )

        now = self.clock()
        emergency = Emergency(
            patient_id=patient_id,
            latitude=latitude,
            longitude=longitude,
            address=address.strip() if address else None,
            description=description.strip() if description else None,
            severity=severity,
            status=EmergencyStatus.ACTIVE,
            created_at=now,
            nearby_hospitals=[
                EmergencyHospital(hospital_id=hospital.id, distance_km=distance, notified_at=now)
                for hospital, distance in nearby
            ],
        )
        self.db.add(emergency)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against another SOS from the same patient
            self.db.rollback()
            raise ConflictError("Patient already has an active emergency request")
        self.db.refresh(emergency)

        logger.info(
            f"SOS id={emergency.id} patient_id={patient_id} severity={severity.value} "
            f"notified {len(nearby)} hospital(s)"
        )
        return emergency

    def get(self, emergency_id: int) -> Emergency:
        emergency = self.db.query(Emergency).filter(Emergency.id == emergency_id).first()
        if not emergency:
            raise NotFoundError("Emergency")
        return emergency

    def history(self, patient_id: int) -> List[Emergency]:
        return (
            self.db.query(Emergency)
            .filter(Emergency.patient_id == patient_id)
            .order_by(Emergency.created_at.desc(), Emergency.id.desc())
            .all()
        )

    def was_notified(self, emergency_id: int, hospital_id: int) -> bool:
        return self.db.query(EmergencyHospital.id).filter(
            EmergencyHospital.emergency_id == emergency_id,
            EmergencyHospital.hospital_id == hospital_id,
        ).first() is not None

    def accept(self, emergency_id: int, hospital_id: int) -> Emergency:
        emergency = self.get(emergency_id)
        if emergency.status != EmergencyStatus.ACTIVE:
            raise ConflictError("Emergency request is no longer active")
        if not self.was_notified(emergency_id, hospital_id):
            raise ConflictError("Hospital is not in the nearby hospitals list")

        # Compare-and-swap: only one hospital can move the request out of Active
        updated = self.db.query(Emergency).filter(
            Emergency.id == emergency_id,
            Emergency.status == EmergencyStatus.ACTIVE,
        ).update(
            {
                "status": EmergencyStatus.ACCEPTED,
                "accepted_by_hospital_id": hospital_id,
                "accepted_at": self.clock(),
            },
            synchronize_session=False,
        )
        if not updated:
            self.db.rollback()
            logger.warning(f"Emergency id={emergency_id} already taken; hospital_id={hospital_id} lost")
            raise ConflictError("Emergency request is no longer active")

        self.db.commit()
        logger.info(f"Emergency id={emergency_id} accepted by hospital_id={hospital_id}")
        return self.get(emergency_id)

    def complete(self, emergency_id: int, hospital_id: int) -> Emergency:
        updated = self.db.query(Emergency).filter(
            Emergency.id == emergency_id,
            Emergency.status == EmergencyStatus.ACCEPTED,
            Emergency.accepted_by_hospital_id == hospital_id,
        ).update({"status": EmergencyStatus.COMPLETED}, synchronize_session=False)

        if not updated:
            self.db.rollback()
            emergency = self.get(emergency_id)
            if emergency.status != EmergencyStatus.ACCEPTED:
                raise ConflictError("Emergency request must be accepted before completion")
            raise AuthorizationError("Only the accepting hospital can complete this emergency")

        self.db.commit()
        logger.info(f"Emergency id={emergency_id} completed by hospital_id={hospital_id}")
        return self.get(emergency_id)

    def cancel(self, emergency_id: int, patient_id: Optional[int] = None,
               hospital_id: Optional[int] = None) -> Emergency:
        emergency = self.get(emergency_id)
        if patient_id is not None and emergency.patient_id != patient_id:
            raise AuthorizationError("Emergency belongs to another patient")
        if hospital_id is not None and emergency.accepted_by_hospital_id != hospital_id:
            raise AuthorizationError("Only the accepting hospital can cancel this emergency")

        updated = self.db.query(Emergency).filter(
            Emergency.id == emergency_id,
            Emergency.status != EmergencyStatus.COMPLETED,
        ).update({"status": EmergencyStatus.CANCELLED}, synchronize_session=False)
        if not updated:
            self.db.rollback()
            raise ConflictError("Cannot cancel completed emergency request")

        self.db.commit()
        logger.info(f"Emergency id={emergency_id} cancelled")
        return self.get(emergency_id)

    def _open_request_exists(self, patient_id: int) -> bool:
        return self.db.query(Emergency.id).filter(
            Emergency.patient_id == patient_id,
            Emergency.status.in_(OPEN_EMERGENCY_STATUSES),
        ).first() is not None
