from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import UserRole
from ...api.deps import get_current_user, rate_limit_check
from ...services.auth_service import AuthService
from ...schemas.auth import (
    UserLogin, PatientRegister, DoctorRegister, HospitalRegister,
    RefreshTokenRequest, TokenResponse, UserResponse
)
from ...schemas.common import ApiResponse
from ...models.user import User

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post(
    "/patient/register",
    response_model=ApiResponse[TokenResponse],
    status_code=status.HTTP_201_CREATED
)
async def register_patient(
    data: PatientRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new patient."""
    tokens = AuthService(db).register_patient(data)
    return ApiResponse(message="Patient registered successfully", data=tokens)

@router.post(
    "/doctor/register",
    response_model=ApiResponse[TokenResponse],
    status_code=status.HTTP_201_CREATED
)
async def register_doctor(
    data: DoctorRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new doctor attached to a hospital."""
    tokens = AuthService(db).register_doctor(data)
    return ApiResponse(message="Doctor registered successfully", data=tokens)

@router.post(
    "/hospital/register",
    response_model=ApiResponse[TokenResponse],
    status_code=status.HTTP_201_CREATED
)
async def register_hospital(
    data: HospitalRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new hospital."""
    tokens = AuthService(db).register_hospital(data)
    return ApiResponse(message="Hospital registered successfully", data=tokens)

@router.post("/patient/login", response_model=ApiResponse[TokenResponse])
async def login_patient(
    login_data: UserLogin,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    tokens = AuthService(db).authenticate_user(login_data, UserRole.PATIENT)
    return ApiResponse(message="Login successful", data=tokens)

@router.post("/doctor/login", response_model=ApiResponse[TokenResponse])
async def login_doctor(
    login_data: UserLogin,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    tokens = AuthService(db).authenticate_user(login_data, UserRole.DOCTOR)
    return ApiResponse(message="Login successful", data=tokens)

@router.post("/hospital/login", response_model=ApiResponse[TokenResponse])
async def login_hospital(
    login_data: UserLogin,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    tokens = AuthService(db).authenticate_user(login_data, UserRole.HOSPITAL)
    return ApiResponse(message="Login successful", data=tokens)

@router.post("/refresh", response_model=ApiResponse[TokenResponse])
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    db: Session = Depends(get_db)
):
    """Refresh access token using refresh token."""
    tokens = AuthService(db).refresh_access_token(refresh_data.refresh_token)
    return ApiResponse(data=tokens)

@router.post("/logout", response_model=ApiResponse)
async def logout(
    refresh_data: RefreshTokenRequest,
    db: Session = Depends(get_db)
):
    """Logout user by revoking refresh token."""
    revoked = AuthService(db).logout_user(refresh_data.refresh_token)
    return ApiResponse(message="Successfully logged out" if revoked else "Logout completed")

@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information."""
    return ApiResponse(data=UserResponse.model_validate(current_user))
