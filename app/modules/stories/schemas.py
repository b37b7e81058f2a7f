from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

from app.modules.media.schemas import MediaAsset
from app.modules.users.schemas import AuthorSummary


class StoryResponse(BaseModel):
    id: str
    caption: Optional[str] = None
    type: str
    media: List[MediaAsset] = []
    hashtags: List[str] = []
    created_at: datetime
    expires_at: datetime


class UserStoriesResponse(BaseModel):
    user: AuthorSummary
    stories: List[StoryResponse]


class StoryFeedResponse(BaseModel):
    count: int
    feed: List[UserStoriesResponse]
