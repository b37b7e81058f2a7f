from fastapi import APIRouter, Depends, Request
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, AuthResponse,
    ForgotPasswordRequest, ForgotPasswordResponse, ResetPasswordRequest
)
from app.modules.auth.service import AuthService
from app.core.rate_limit import limiter
from app.config import settings
from supabase import Client

# Account endpoints live under /users alongside the profile routes
router = APIRouter(prefix="/users", tags=["auth"])


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


@router.post("", response_model=AuthResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.auth_rate_limit)
async def login(
    request: Request,
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login with username or email and get an access token"""
    return service.login(login_data)


@router.post("/forgotpassword", response_model=ForgotPasswordResponse)
@limiter.limit(settings.auth_rate_limit)
async def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Issue a password reset token (valid for a few minutes)"""
    return service.forgot_password(body)


@router.put("/resetpassword/{token}", response_model=AuthResponse)
async def reset_password(
    token: str,
    body: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Set a new password using a reset token"""
    return service.reset_password(token, body)
