from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
import logging

from ..core.config import settings
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError
from ..models.user import User, RefreshToken
from ..models.patient import Patient
from ..models.doctor import Doctor
from ..models.hospital import Hospital
from ..core.security import (
    verify_password, get_password_hash, create_token_pair,
    verify_token, hash_token, REFRESH_TOKEN, UserRole
)
from ..schemas.auth import (
    UserLogin, PatientRegister, DoctorRegister, HospitalRegister,
    TokenResponse, UserResponse
)

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def register_patient(self, data: PatientRegister) -> TokenResponse:
        """Register a patient account and profile."""
        user = self._create_user(data, UserRole.PATIENT)
        patient = Patient(
            user=user,
            age=data.age,
            gender=data.gender,
            address=data.address,
            city=data.city,
            state=data.state
        )
        self.db.add(patient)
        return self._finish_registration(user, patient)

    def register_doctor(self, data: DoctorRegister) -> TokenResponse:
        """Register a doctor attached to an existing hospital."""
        hospital = self.db.query(Hospital).filter(
            Hospital.id == data.hospital_id,
            Hospital.is_active.is_(True)
        ).first()
        if not hospital:
            raise NotFoundError("Hospital")

        user = self._create_user(data, UserRole.DOCTOR)
        doctor = Doctor(
            user=user,
            hospital_id=hospital.id,
            specialty=data.specialty,
            city=data.city.strip(),
            experience=data.experience
        )
        self.db.add(doctor)
        return self._finish_registration(user, doctor)

    def register_hospital(self, data: HospitalRegister) -> TokenResponse:
        """Register a hospital account and its profile."""
        user = self._create_user(data, UserRole.HOSPITAL)
        hospital = Hospital(
            user=user,
            name=data.name,
            email=user.email,
            address=data.address.strip(),
            city=data.city.strip(),
            state=data.state.strip(),
            phone=data.phone,
            emergency_phone=data.emergency_phone,
            specialties=[s.strip() for s in data.specialties if s.strip()],
            latitude=data.latitude,
            longitude=data.longitude,
            emergency_services=data.emergency_services,
            is_active=True
        )
        self.db.add(hospital)
        return self._finish_registration(user, hospital)

    def authenticate_user(self, login_data: UserLogin, role: UserRole) -> TokenResponse:
        """Authenticate a user of the given role and return tokens."""
        email = login_data.email.lower()
        user = self.db.query(User).filter(User.email == email).first()

        if not user or user.role != role:
            raise AuthenticationError("Invalid credentials")

        # Check account lockout
        if user.locked_until and user.locked_until > datetime.utcnow():
            raise AuthenticationError("Account is temporarily locked")

        if not verify_password(login_data.password, user.password_hash):
            self._handle_failed_login(user)
            raise AuthenticationError("Invalid credentials")

        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        # Reset failed login attempts
        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login = datetime.utcnow()

        response = self._issue_tokens(user)
        self.db.commit()
        logger.info(f"User {user.id} logged in as {role.value}")
        return response

    def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """Refresh access token using refresh token."""
        token_payload = verify_token(refresh_token)
        if not token_payload or token_payload.token_type != REFRESH_TOKEN:
            raise AuthenticationError("Invalid refresh token")

        # Check if refresh token exists in database
        token_hash = hash_token(refresh_token)
        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == token_hash,
            RefreshToken.is_revoked.is_(False),
            RefreshToken.expires_at > datetime.utcnow()
        ).first()

        if not stored_token:
            raise AuthenticationError("Invalid or expired refresh token")

        user = self.db.query(User).filter(
            User.id == token_payload.sub
        ).first()

        if not user or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        # Revoke old refresh token and store new one
        stored_token.is_revoked = True
        response = self._issue_tokens(user)
        self.db.commit()
        return response

    def logout_user(self, refresh_token: str) -> bool:
        """Logout user by revoking refresh token."""
        token_hash = hash_token(refresh_token)
        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == token_hash
        ).first()

        if not stored_token:
            return False

        stored_token.is_revoked = True
        self.db.commit()
        return True

    def _create_user(self, data, role: UserRole) -> User:
        email = data.email.lower()
        existing_user = self.db.query(User).filter(User.email == email).first()
        if existing_user:
            raise ConflictError("User with this email already exists")

        user = User(
            email=email,
            password_hash=get_password_hash(data.password),
            name=data.name,
            role=role,
            is_active=True
        )
        self.db.add(user)
        return user

    def _finish_registration(self, user: User, profile) -> TokenResponse:
        try:
            self.db.flush()
            response = self._issue_tokens(user, profile_id=profile.id)
            self.db.commit()
        except IntegrityError:
            # Another registration for the same email committed first
            self.db.rollback()
            raise ConflictError("User with this email already exists")
        logger.info(f"Registered {user.role.value} user {user.id}")
        return response

    def _issue_tokens(self, user: User, profile_id: int = None) -> TokenResponse:
        tokens = create_token_pair(user.id, user.email, user.role)
        self._store_refresh_token(user.id, tokens.refresh_token)

        if profile_id is None:
            profile = {
                UserRole.PATIENT: user.patient,
                UserRole.DOCTOR: user.doctor,
                UserRole.HOSPITAL: user.hospital,
            }[user.role]
            profile_id = profile.id if profile else None

        return TokenResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            expires_in=tokens.expires_in,
            user=UserResponse.model_validate(user),
            profile_id=profile_id
        )

    def _handle_failed_login(self, user: User):
        """Handle failed login attempt."""
        user.failed_login_attempts = (user.failed_login_attempts or 0) + 1

        # Lock account after too many failed attempts
        if user.failed_login_attempts >= settings.MAX_FAILED_LOGINS:
            user.locked_until = datetime.utcnow() + timedelta(minutes=settings.LOCKOUT_MINUTES)
            logger.warning(f"User {user.id} locked after {user.failed_login_attempts} failed logins")

        self.db.commit()

    def _store_refresh_token(self, user_id: int, refresh_token: str):
        """Store refresh token in database."""
        token_hash = hash_token(refresh_token)

        token_payload = verify_token(refresh_token)
        expires_at = datetime.utcfromtimestamp(token_payload.exp) if token_payload and token_payload.exp else datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

        # Only the newest refresh token stays valid
        self.db.query(RefreshToken).filter(
            RefreshToken.user_id == user_id,
            RefreshToken.is_revoked.is_(False)
        ).update({"is_revoked": True}, synchronize_session=False)

        self.db.add(RefreshToken(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at
        ))
