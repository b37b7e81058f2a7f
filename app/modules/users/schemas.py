from pydantic import BaseModel, EmailStr
from typing import Optional, List
from datetime import datetime

from app.modules.media.schemas import MediaAsset


class FollowRef(BaseModel):
    user_id: str
    created_at: Optional[datetime] = None


class UserPublic(BaseModel):
    """Profile as shown to other users"""
    id: str
    username: str
    bio: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    profile_pic: List[MediaAsset] = []
    background_image: List[MediaAsset] = []
    followers: List[FollowRef] = []
    followings: List[FollowRef] = []


class UserProfile(UserPublic):
    """Profile as shown to its owner"""
    email: str
    phone: Optional[str] = None
    is_active: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AuthorSummary(BaseModel):
    id: str
    username: str
    profile_pic: List[MediaAsset] = []


class UserSearchResponse(BaseModel):
    count: int
    users: List[UserPublic]


class FollowStateResponse(BaseModel):
    followings: List[FollowRef]


class FollowersResponse(BaseModel):
    followers: List[UserPublic]


class FollowingsResponse(BaseModel):
    followings: List[UserPublic]


class UserUpdate(BaseModel):
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
