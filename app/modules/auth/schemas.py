from pydantic import BaseModel, EmailStr
from typing import Optional

from app.modules.users.schemas import UserProfile


class RegisterRequest(BaseModel):
    username: str
    email: EmailStr
    password: str


class LoginRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: str


class AuthResponse(BaseModel):
    user: UserProfile
    token: str
    token_type: str = "bearer"


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ForgotPasswordResponse(BaseModel):
    message: str
    reset_token: Optional[str] = None  # only returned outside production


class ResetPasswordRequest(BaseModel):
    password: str
    confirm_password: str
