from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from ..core.security import security, verify_token, UserRole, TokenPayload, ACCESS_TOKEN
from ..models.user import User
from ..models.patient import Patient
from ..models.doctor import Doctor
from ..models.hospital import Hospital

logger = logging.getLogger(__name__)

async def get_current_user_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    if credentials is None:
        raise AuthenticationError("Not authorized, no token")

    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    # Check if token is access token
    if token_payload.token_type != ACCESS_TOKEN:
        raise AuthenticationError("Invalid token type")

    return token_payload

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    if not token_payload.sub:
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.id == token_payload.sub).first()
    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return user

# Role-based access control dependencies
def require_role(allowed_roles: List[UserRole]):
    """Create a dependency that requires specific user roles."""
    async def role_checker(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if current_user.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return current_user

    return role_checker

async def get_current_patient(
    current_user: User = Depends(require_role([UserRole.PATIENT])),
    db: Session = Depends(get_db)
) -> Patient:
    """Require patient role and resolve the patient profile."""
    patient = db.query(Patient).filter(Patient.user_id == current_user.id).first()
    if not patient:
        raise NotFoundError("Patient profile")
    return patient

async def get_current_doctor(
    current_user: User = Depends(require_role([UserRole.DOCTOR])),
    db: Session = Depends(get_db)
) -> Doctor:
    """Require doctor role and resolve the doctor profile."""
    doctor = db.query(Doctor).filter(Doctor.user_id == current_user.id).first()
    if not doctor:
        raise NotFoundError("Doctor profile")
    return doctor

async def get_current_hospital(
    current_user: User = Depends(require_role([UserRole.HOSPITAL])),
    db: Session = Depends(get_db)
) -> Hospital:
    """Require hospital role and resolve an active hospital profile."""
    hospital = db.query(Hospital).filter(Hospital.user_id == current_user.id).first()
    if not hospital or not hospital.is_active:
        raise NotFoundError("Hospital profile")
    return hospital

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Fixed-window rate limit for authentication endpoints, keyed by client IP."""
    if not settings.RATE_LIMIT_ENABLED:
        return

    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, settings.RATE_LIMIT_WINDOW_SECONDS, 1)
        return

    if int(current_requests) >= settings.RATE_LIMIT_MAX_REQUESTS:
        logger.warning(f"Rate limit exceeded for {client_ip}")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please try again later."
        )
    redis_client.incr(key)
