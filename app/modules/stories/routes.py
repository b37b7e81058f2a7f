from fastapi import APIRouter, Depends, File, Form, UploadFile
from app.database.supabase_client import get_supabase
from app.modules.stories.schemas import StoryResponse, UserStoriesResponse, StoryFeedResponse
from app.modules.stories.service import StoryService
from app.modules.media.service import MediaService
from app.core.dependencies import get_current_user, get_media_service
from app.core.uploads import read_uploads
from supabase import Client
from typing import Dict, List, Optional

router = APIRouter(prefix="/users/stories", tags=["stories"])


def get_story_service(supabase: Client = Depends(get_supabase)) -> StoryService:
    return StoryService(supabase)


@router.post("", response_model=StoryResponse, status_code=201)
async def create_story(
    caption: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    current_user: Dict = Depends(get_current_user),
    service: StoryService = Depends(get_story_service),
    media: MediaService = Depends(get_media_service)
):
    """Post a story that disappears after the configured time"""
    incoming = await read_uploads(files)
    return await service.create_story(current_user, caption, type, incoming, media)


@router.get("/feed", response_model=StoryFeedResponse)
async def get_story_feed(
    current_user: Dict = Depends(get_current_user),
    service: StoryService = Depends(get_story_service)
):
    """Active stories of the accounts the caller follows"""
    return service.get_feed(current_user)


@router.get("/{username}", response_model=UserStoriesResponse)
async def get_user_stories(
    username: str,
    service: StoryService = Depends(get_story_service)
):
    return service.get_user_stories(username)


@router.delete("/{story_id}")
async def delete_story(
    story_id: str,
    current_user: Dict = Depends(get_current_user),
    service: StoryService = Depends(get_story_service),
    media: MediaService = Depends(get_media_service)
):
    await service.delete_story(current_user, story_id, media)
    return {"message": "Story deleted"}
