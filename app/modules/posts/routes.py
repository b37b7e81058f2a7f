from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from app.database.supabase_client import get_supabase
from app.modules.posts.schemas import (
    PostResponse, PostListResponse, CommentCreate, CommentUpdate,
    ReplyCreate, ReplyUpdate, CommentsResponse, RepliesResponse,
    LikesResponse, SharesResponse
)
from app.modules.posts.service import PostService
from app.modules.media.schemas import MediaUrlsResponse
from app.modules.media.service import MediaService
from app.core.dependencies import get_current_user, get_media_service
from app.core.uploads import read_uploads
from supabase import Client
from typing import Dict, List, Optional

router = APIRouter(prefix="/posts", tags=["posts"])


def get_post_service(supabase: Client = Depends(get_supabase)) -> PostService:
    return PostService(supabase)


@router.get("", response_model=PostListResponse)
async def list_posts(
    caption: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: PostService = Depends(get_post_service)
):
    """List posts, optionally searching captions for a keyword"""
    return service.list_posts(caption=caption, limit=limit, offset=offset)


@router.post("", response_model=PostResponse, status_code=201)
async def create_post(
    caption: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
    media: MediaService = Depends(get_media_service)
):
    """Create a post; image or video files are uploaded to the asset host"""
    incoming = await read_uploads(files)
    return await service.create_post(current_user, caption, type, category, incoming, media)


@router.get("/user/{user_id}", response_model=PostListResponse)
async def get_posts_by_user(
    user_id: str,
    service: PostService = Depends(get_post_service)
):
    return service.get_posts_by_user(user_id)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str,
    service: PostService = Depends(get_post_service)
):
    return service.get_post(post_id)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: str,
    caption: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
    media: MediaService = Depends(get_media_service)
):
    """Update a post (author only)"""
    incoming = await read_uploads(files)
    return await service.update_post(current_user, post_id, caption, type, category, incoming, media)


@router.delete("/{post_id}")
async def delete_post(
    post_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
    media: MediaService = Depends(get_media_service)
):
    """Delete a post and its media (author only)"""
    await service.delete_post(current_user, post_id, media)
    return {"message": "Post deleted"}


@router.get("/{post_id}/media", response_model=MediaUrlsResponse)
async def get_post_media_urls(
    post_id: str,
    service: PostService = Depends(get_post_service),
    media: MediaService = Depends(get_media_service)
):
    return service.media_urls(post_id, media)


@router.post("/{post_id}/comment", response_model=CommentsResponse)
async def comment_on_post(
    post_id: str,
    body: CommentCreate,
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service)
):
    return service.add_comment(current_user, post_id, body.comment)


@router.put("/{post_id}/comment/{comment_id}", response_model=CommentsResponse)
async def update_comment(
    post_id: str,
    comment_id: str,
    body: CommentUpdate,
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service)
):
    return service.update_comment(current_user, post_id, comment_id, body.comment)


@router.delete("/{post_id}/comment/{comment_id}", response_model=CommentsResponse)
async def delete_comment(
    post_id: str,
    comment_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service)
):
    return service.delete_comment(current_user, post_id, comment_id)


@router.post("/{post_id}/comment/{comment_id}/reply", response_model=RepliesResponse)
async def reply_to_comment(
    post_id: str,
    comment_id: str,
    body: ReplyCreate,
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service)
):
    return service.add_reply(current_user, post_id, comment_id, body.reply)


@router.put("/{post_id}/comment/{comment_id}/reply/{reply_id}", response_model=RepliesResponse)
async def update_reply(
    post_id: str,
    comment_id: str,
    reply_id: str,
    body: ReplyUpdate,
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service)
):
    return service.update_reply(current_user, post_id, comment_id, reply_id, body.reply)


@router.delete("/{post_id}/comment/{comment_id}/reply/{reply_id}", response_model=RepliesResponse)
async def delete_reply(
    post_id: str,
    comment_id: str,
    reply_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service)
):
    return service.delete_reply(current_user, post_id, comment_id, reply_id)


@router.put("/{post_id}/like", response_model=LikesResponse)
async def like_post(
    post_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service)
):
    return service.like(current_user, post_id)


@router.put("/{post_id}/unlike", response_model=LikesResponse)
async def unlike_post(
    post_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service)
):
    return service.unlike(current_user, post_id)


@router.put("/{post_id}/share", response_model=SharesResponse)
async def share_post(
    post_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service)
):
    """Increment the share counter"""
    return service.share(post_id)
