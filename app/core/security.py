from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi.security import HTTPBearer
from pydantic import BaseModel
import hashlib
import secrets
from enum import Enum

from .config import settings

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# JWT Security; a missing header is reported by get_current_user_token
security = HTTPBearer(auto_error=False)

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

class UserRole(str, Enum):
    """Account kinds; each has its own register and login endpoints."""
    PATIENT = "patient"
    DOCTOR = "doctor"
    HOSPITAL = "hospital"

class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

class TokenPayload(BaseModel):
    sub: Optional[int] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
    exp: Optional[int] = None
    token_type: Optional[str] = None

# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def hash_token(token: str) -> str:
    """Refresh tokens are stored by digest only."""
    return hashlib.sha256(token.encode()).hexdigest()

# JWT utilities
def _encode(claims: dict, token_type: str, lifetime: timedelta) -> str:
    to_encode = dict(claims)
    to_encode.update({
        "exp": datetime.utcnow() + lifetime,
        "token_type": token_type,
        # two tokens minted in the same second must still differ
        "jti": secrets.token_hex(8),
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def create_access_token(claims: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a short-lived JWT that authorizes API calls."""
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(claims, ACCESS_TOKEN, lifetime)

def create_refresh_token(claims: dict) -> str:
    """Create a JWT that can only be exchanged at /auth/refresh."""
    return _encode(claims, REFRESH_TOKEN, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))

def verify_token(token: str) -> Optional[TokenPayload]:
    """Decode a JWT; None if the signature, expiry or claims are invalid."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return TokenPayload(**payload)
    except (JWTError, ValueError):
        return None

def create_token_pair(user_id: int, email: str, role: UserRole) -> Token:
    claims = {
        "sub": str(user_id),  # the JWT "sub" claim must be a string
        "email": email,
        "role": role.value
    }
    return Token(
        access_token=create_access_token(claims),
        refresh_token=create_refresh_token(claims),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    )
