"""
Core dependencies for route protection and shared services
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config import settings
from app.core.security import decode_access_token, NOT_AUTHORIZED
from app.database.supabase_client import SupabaseClient, get_supabase, first_row
from app.modules.media.service import MediaService
from supabase import Client
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_media_service() -> MediaService:
    return MediaService(SupabaseClient.get_storage_client())


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    supabase: Client = Depends(get_supabase)
) -> Dict[str, Any]:
    """Resolve the bearer token to the caller's user document"""
    user_id = decode_access_token(credentials.credentials)
    try:
        result = supabase.table(settings.users_table)\
            .select("*")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
    except Exception as e:
        logger.error(f"Error loading user {user_id} for token: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHORIZED)
    user = first_row(result)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHORIZED)
    return user


def require_owner(owner_id: str, user: Dict[str, Any], detail: str = "Not authorized") -> None:
    """Raise 401 unless ``user`` is the author of the resource."""
    if str(owner_id) != str(user["id"]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)
