"""
Password hashing, access tokens and password-reset tokens
"""

import hashlib
import secrets
from datetime import timedelta
from typing import Optional, Tuple

import bcrypt
import jwt
from fastapi import HTTPException, status

from app.config import settings
from app.database.supabase_client import utcnow

NOT_AUTHORIZED = "Not authorized, token failed"


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(user_id: str) -> str:
    now = utcnow()
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expire_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Return the user id carried by a token, or raise 401."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHORIZED)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHORIZED)
    return user_id


def hash_reset_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def create_password_reset_token() -> Tuple[str, str, str]:
    """Return (raw token, sha256 of token, ISO expiry). Only the hash is persisted."""
    raw_token = secrets.token_hex(32)
    expires = utcnow() + timedelta(minutes=settings.password_reset_ttl_minutes)
    return raw_token, hash_reset_token(raw_token), expires.isoformat()
