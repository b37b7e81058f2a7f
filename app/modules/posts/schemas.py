from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

from app.modules.media.schemas import MediaAsset
from app.modules.users.schemas import AuthorSummary


class Reply(BaseModel):
    id: str
    user_id: str
    comment_id: str
    reply: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Comment(BaseModel):
    id: str
    user_id: str
    post_id: str
    comment: str
    replies: List[Reply] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Like(BaseModel):
    id: str
    user_id: str
    post_id: str
    created_at: Optional[datetime] = None


class PostResponse(BaseModel):
    id: str
    user_id: str
    user: Optional[AuthorSummary] = None
    caption: str
    type: str
    category: Optional[str] = None
    images: List[MediaAsset] = []
    videos: List[MediaAsset] = []
    hashtags: List[str] = []
    comments: List[Comment] = []
    likes: List[Like] = []
    shares: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PostListResponse(BaseModel):
    count: int
    posts: List[PostResponse]


class CommentCreate(BaseModel):
    comment: str


class CommentUpdate(BaseModel):
    comment: Optional[str] = None


class ReplyCreate(BaseModel):
    reply: str


class ReplyUpdate(BaseModel):
    reply: Optional[str] = None


class CommentsResponse(BaseModel):
    comments: List[Comment]


class RepliesResponse(BaseModel):
    replies: List[Reply]


class LikesResponse(BaseModel):
    likes: List[Like]


class SharesResponse(BaseModel):
    shares: int
