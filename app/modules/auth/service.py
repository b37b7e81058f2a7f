from supabase import Client
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, AuthResponse,
    ForgotPasswordRequest, ForgotPasswordResponse, ResetPasswordRequest
)
from app.modules.users.models import new_user_document
from app.modules.users.service import UserService, to_profile
from app.core.security import (
    create_access_token, create_password_reset_token,
    hash_password, hash_reset_token, verify_password
)
from app.config.settings import settings
from app.database.supabase_client import first_row, parse_timestamp, utcnow
from fastapi import HTTPException
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.users = UserService(supabase)

    def _auth_response(self, user: Dict[str, Any]) -> AuthResponse:
        return AuthResponse(user=to_profile(user), token=create_access_token(user["id"]))

    def register(self, register_data: RegisterRequest) -> AuthResponse:
        """Create a user document and issue a token"""
        username = register_data.username.strip()
        email = str(register_data.email).strip().lower()
        self.users.ensure_username_available(username)
        self.users.ensure_email_available(email)
        self.users.check_password_length(register_data.password)

        try:
            result = self.supabase.table(settings.users_table).insert(
                new_user_document(username, email, hash_password(register_data.password))
            ).execute()
        except Exception as e:
            error_message = str(e)
            if "duplicate" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            logger.error(f"Registration failed for {username}: {error_message}")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

        user = first_row(result)
        if not user:
            raise HTTPException(status_code=500, detail="Failed to register user")
        logger.info(f"Registered user {user['id']} ({username})")
        return self._auth_response(user)

    def login(self, login_data: LoginRequest) -> AuthResponse:
        """Authenticate by username or email"""
        if not login_data.username and not login_data.email:
            raise HTTPException(status_code=400, detail="Username or email is required")

        user = None
        if login_data.username:
            user = self.users.find_one(username=login_data.username.strip())
        if user is None and login_data.email:
            user = self.users.find_one(email=login_data.email.strip().lower())
        if not user:
            field = "email" if login_data.email else "username"
            value = login_data.email or login_data.username
            raise HTTPException(status_code=400, detail=f"User with {field} {value} does not exist")

        if not verify_password(login_data.password, user.get("password_hash")):
            raise HTTPException(status_code=400, detail="Incorrect password")
        return self._auth_response(user)

    def forgot_password(self, request: ForgotPasswordRequest) -> ForgotPasswordResponse:
        """Issue a password reset token; only its hash is stored on the user"""
        user = self.users.find_one(email=str(request.email).strip().lower())
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        raw_token, hashed_token, expires = create_password_reset_token()
        self.users.save(user["id"], {
            "password_reset_token": hashed_token,
            "password_reset_expires": expires,
        })
        reset_url = f"{settings.client_url}/users/resetpassword/{raw_token}"
        logger.info(f"Password reset requested for user {user['id']}: {reset_url}")

        message = f"Reset token issued, valid for {settings.password_reset_ttl_minutes} minutes"
        if settings.is_production:
            return ForgotPasswordResponse(message=message)
        return ForgotPasswordResponse(message=message, reset_token=raw_token)

    def reset_password(self, token: str, request: ResetPasswordRequest) -> AuthResponse:
        user = self.users.find_one(password_reset_token=hash_reset_token(token))
        if not user or not self._reset_token_active(user):
            raise HTTPException(status_code=400, detail="Token is invalid or has expired")
        if request.password != request.confirm_password:
            raise HTTPException(status_code=400, detail="Password didn't match")
        self.users.check_password_length(request.password)

        saved = self.users.save(user["id"], {
            "password_hash": hash_password(request.password),
            "password_reset_token": None,
            "password_reset_expires": None,
        })
        logger.info(f"Password reset completed for user {user['id']}")
        return self._auth_response(saved)

    @staticmethod
    def _reset_token_active(user: Dict[str, Any]) -> bool:
        expires = user.get("password_reset_expires")
        if not expires:
            return False
        return parse_timestamp(expires) > utcnow()
