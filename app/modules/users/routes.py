from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import EmailStr
from app.database.supabase_client import get_supabase
from app.modules.users.schemas import (
    UserProfile, UserUpdate, UserSearchResponse,
    FollowStateResponse, FollowersResponse, FollowingsResponse
)
from app.modules.users.service import UserService
from app.modules.media.service import MediaService
from app.core.dependencies import get_current_user, get_media_service
from app.core.uploads import read_upload
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


@router.get("/profile", response_model=UserProfile)
async def get_my_profile(
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Get the caller's profile"""
    return service.get_profile(current_user)


@router.put("/profile", response_model=UserProfile)
async def update_my_profile(
    username: Optional[str] = Form(None, max_length=20),
    email: Optional[EmailStr] = Form(None),
    password: Optional[str] = Form(None),
    bio: Optional[str] = Form(None, max_length=160),
    website: Optional[str] = Form(None, max_length=100),
    location: Optional[str] = Form(None, max_length=100),
    phone: Optional[str] = Form(None, max_length=20),
    profile_pic: Optional[UploadFile] = File(None),
    background_image: Optional[UploadFile] = File(None),
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    media: MediaService = Depends(get_media_service)
):
    """Update the caller's profile (multipart form; pictures are optional files)"""
    user_data = UserUpdate(
        username=username,
        email=email,
        password=password,
        bio=bio,
        website=website,
        location=location,
        phone=phone,
    )
    return await service.update_profile(
        current_user,
        user_data,
        media,
        profile_pic=await read_upload(profile_pic),
        background_image=await read_upload(background_image),
    )


@router.delete("/profile")
async def delete_my_profile(
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    media: MediaService = Depends(get_media_service)
):
    """Delete the caller's account, posts and media"""
    await service.delete_profile(current_user, media)
    return {"message": "User deleted"}


@router.put("/follow/{username}", response_model=FollowStateResponse)
async def follow_user(
    username: str,
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    return service.follow(current_user, username)


@router.put("/unfollow/{username}", response_model=FollowStateResponse)
async def unfollow_user(
    username: str,
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    return service.unfollow(current_user, username)


@router.get("/followers/{username}", response_model=FollowersResponse)
async def get_followers(
    username: str,
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Public profiles of the users following ``username``"""
    return service.get_followers(username)


@router.get("/followings/{username}", response_model=FollowingsResponse)
async def get_followings(
    username: str,
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Public profiles of the users ``username`` follows"""
    return service.get_followings(username)


@router.get("/{username}", response_model=UserSearchResponse)
async def search_users(
    username: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: UserService = Depends(get_user_service)
):
    """Search users whose username contains the keyword (case-insensitive)"""
    return service.search_users(username, limit=limit, offset=offset)
