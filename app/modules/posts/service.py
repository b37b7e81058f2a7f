from supabase import Client
from app.config import settings
from app.core.dependencies import require_owner
from app.core.uploads import IncomingFile, resolve_media_type
from app.database.supabase_client import first_row, is_invalid_id_error, utcnow_iso
from app.modules.media.schemas import MediaUrlsResponse
from app.modules.media.service import MediaService
from app.modules.posts.models import CATEGORIES, extract_hashtags, new_subdocument_id
from app.modules.posts.schemas import (
    PostResponse, PostListResponse, CommentsResponse, RepliesResponse,
    LikesResponse, SharesResponse
)
from app.modules.users.schemas import AuthorSummary
from app.modules.users.service import UserService
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging
import re

logger = logging.getLogger(__name__)


def find_comment(post: Dict[str, Any], comment_id: str) -> Dict[str, Any]:
    for comment in post.get("comments") or []:
        if str(comment.get("id")) == str(comment_id):
            return comment
    raise HTTPException(status_code=404, detail="Comment not found")


def find_reply(comment: Dict[str, Any], reply_id: str) -> Dict[str, Any]:
    for reply in comment.get("replies") or []:
        if str(reply.get("id")) == str(reply_id):
            return reply
    raise HTTPException(status_code=404, detail="Reply not found")


def find_like(post: Dict[str, Any], user_id: str) -> Optional[Dict[str, Any]]:
    for like in post.get("likes") or []:
        if str(like.get("user_id")) == str(user_id):
            return like
    return None


def check_category(category: Optional[str]) -> Optional[str]:
    if category is None:
        return None
    category = category.strip().lower()
    if category not in CATEGORIES:
        raise HTTPException(status_code=400, detail=f"Category must be one of: {', '.join(CATEGORIES)}")
    return category


class PostService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.table = settings.posts_table
        self.users = UserService(supabase)

    def _query(self):
        return self.supabase.table(self.table)

    def get_post_document(self, post_id: str) -> Dict[str, Any]:
        try:
            result = self._query()\
                .select("*")\
                .eq("id", post_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            if is_invalid_id_error(e):
                raise HTTPException(status_code=404, detail="Post not found")
            logger.error(f"Error loading post {post_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        post = first_row(result)
        if not post:
            raise HTTPException(status_code=404, detail="Post not found")
        return post

    def save(self, post_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        try:
            changes = {**changes, "updated_at": utcnow_iso()}
            result = self._query()\
                .update(changes)\
                .eq("id", post_id)\
                .execute()
            post = first_row(result)
            if not post:
                raise HTTPException(status_code=404, detail="Post not found")
            return post
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error saving post {post_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def to_responses(self, posts: List[Dict[str, Any]]) -> List[PostResponse]:
        """Serialize posts with their author embedded"""
        author_ids = sorted({p["user_id"] for p in posts})
        authors = {
            u["id"]: AuthorSummary(id=u["id"], username=u["username"], profile_pic=u.get("profile_pic") or [])
            for u in self.users.get_users_by_ids(author_ids)
        }
        responses = []
        for post in posts:
            data = {k: v for k, v in post.items() if k in PostResponse.model_fields and v is not None}
            data["user"] = authors.get(post["user_id"])
            responses.append(PostResponse(**data))
        return responses

    def list_posts(self, caption: Optional[str] = None, limit: int = 20, offset: int = 0) -> PostListResponse:
        """List posts newest first, optionally filtered by a caption keyword (case-insensitive)"""
        try:
            query = self._query().select("*")
            if caption:
                query = query.filter("caption", "imatch", re.escape(caption))
            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            posts = self.to_responses(result.data or [])
            return PostListResponse(count=len(posts), posts=posts)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing posts: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_post(self, post_id: str) -> PostResponse:
        return self.to_responses([self.get_post_document(post_id)])[0]

    def get_posts_by_user(self, user_id: str) -> PostListResponse:
        user = self.users.get_user_by_id(user_id)
        try:
            result = self._query()\
                .select("*")\
                .eq("user_id", user["id"])\
                .order("created_at", desc=True)\
                .execute()
        except Exception as e:
            logger.error(f"Error listing posts of user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        posts = self.to_responses(result.data or [])
        return PostListResponse(count=len(posts), posts=posts)

    async def create_post(
        self,
        user: Dict[str, Any],
        caption: Optional[str],
        post_type: Optional[str],
        category: Optional[str],
        files: List[IncomingFile],
        media: MediaService,
    ) -> PostResponse:
        if not caption or not caption.strip():
            raise HTTPException(status_code=400, detail="Caption is required")
        post_type = resolve_media_type(post_type, files)
        category = check_category(category)

        images: List[Dict[str, Any]] = []
        videos: List[Dict[str, Any]] = []
        if post_type == "image":
            images = await media.upload_many(files, "images", "image")
        elif post_type == "video":
            videos = await media.upload_many(files, "videos", "video")

        document = {
            "user_id": user["id"],
            "caption": caption,
            "type": post_type,
            "category": category,
            "images": images,
            "videos": videos,
            "hashtags": extract_hashtags(caption),
            "comments": [],
            "likes": [],
            "shares": 0,
        }
        try:
            result = self._query().insert(document).execute()
        except Exception as e:
            logger.error(f"Error creating post for user {user['id']}: {e}")
            await media.delete_many(images + videos)
            raise HTTPException(status_code=500, detail=str(e))
        post = first_row(result)
        if not post:
            await media.delete_many(images + videos)
            raise HTTPException(status_code=500, detail="Failed to create post")
        logger.info(f"User {user['id']} created {post_type} post {post['id']} with {len(files)} file(s)")
        return self.to_responses([post])[0]

    async def update_post(
        self,
        user: Dict[str, Any],
        post_id: str,
        caption: Optional[str],
        post_type: Optional[str],
        category: Optional[str],
        files: List[IncomingFile],
        media: MediaService,
    ) -> PostResponse:
        """Update caption/type/category; new images replace the old ones, new videos are appended"""
        post = self.get_post_document(post_id)
        require_owner(post["user_id"], user)

        update_data: Dict[str, Any] = {}
        if caption is not None:
            if not caption.strip():
                raise HTTPException(status_code=400, detail="Caption cannot be empty")
            update_data["caption"] = caption
            update_data["hashtags"] = extract_hashtags(caption)
        new_type = resolve_media_type(post_type, files, default=post["type"])
        if new_type != post["type"]:
            if new_type in ("image", "video") and not files:
                raise HTTPException(status_code=400, detail=f"Changing a post to {new_type} requires {new_type} files")
            update_data["type"] = new_type
        if category is not None:
            update_data["category"] = check_category(category)

        uploaded: List[Dict[str, Any]] = []
        replaced: List[Dict[str, Any]] = []
        if files and new_type == "image":
            uploaded = await media.upload_many(files, "images", "image")
            update_data["images"] = uploaded
            replaced = post.get("images") or []
        elif files and new_type == "video":
            uploaded = await media.upload_many(files, "videos", "video")
            update_data["videos"] = (post.get("videos") or []) + uploaded

        if not update_data:
            return self.to_responses([post])[0]
        try:
            saved = self.save(post_id, update_data)
        except HTTPException:
            await media.delete_many(uploaded)
            raise
        if replaced:
            await media.delete_many(replaced)
        return self.to_responses([saved])[0]

    async def delete_post(self, user: Dict[str, Any], post_id: str, media: MediaService) -> bool:
        post = self.get_post_document(post_id)
        require_owner(post["user_id"], user)
        assets = (post.get("images") or []) + (post.get("videos") or [])
        removed = await media.delete_many(assets)
        if removed < len(assets):
            logger.warning(f"Post {post_id}: only {removed} of {len(assets)} asset(s) deleted")
        try:
            result = self._query()\
                .delete()\
                .eq("id", post_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            logger.error(f"Error deleting post {post_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def media_urls(self, post_id: str, media: MediaService) -> MediaUrlsResponse:
        """Fresh URLs for the post's assets (presigned when stored on S3)"""
        post = self.get_post_document(post_id)
        return MediaUrlsResponse(
            images=[media.url_for(a["public_id"]) for a in post.get("images") or []],
            videos=[media.url_for(a["public_id"]) for a in post.get("videos") or []],
        )

    # Comments

    def add_comment(self, user: Dict[str, Any], post_id: str, text: str) -> CommentsResponse:
        if not text or not text.strip():
            raise HTTPException(status_code=400, detail="Comment is required")
        post = self.get_post_document(post_id)
        now = utcnow_iso()
        comments = (post.get("comments") or []) + [{
            "id": new_subdocument_id(),
            "user_id": user["id"],
            "post_id": post["id"],
            "comment": text,
            "replies": [],
            "created_at": now,
            "updated_at": now,
        }]
        saved = self.save(post_id, {"comments": comments})
        return CommentsResponse(comments=saved.get("comments") or [])

    def update_comment(self, user: Dict[str, Any], post_id: str, comment_id: str, text: Optional[str]) -> CommentsResponse:
        post = self.get_post_document(post_id)
        comment = find_comment(post, comment_id)
        require_owner(comment["user_id"], user)
        if text is not None and text.strip():
            comment["comment"] = text
            comment["updated_at"] = utcnow_iso()
            post = self.save(post_id, {"comments": post["comments"]})
        return CommentsResponse(comments=post.get("comments") or [])

    def delete_comment(self, user: Dict[str, Any], post_id: str, comment_id: str) -> CommentsResponse:
        post = self.get_post_document(post_id)
        comment = find_comment(post, comment_id)
        require_owner(comment["user_id"], user)
        comments = [c for c in post["comments"] if str(c.get("id")) != str(comment_id)]
        saved = self.save(post_id, {"comments": comments})
        return CommentsResponse(comments=saved.get("comments") or [])

    # Replies

    def add_reply(self, user: Dict[str, Any], post_id: str, comment_id: str, text: str) -> RepliesResponse:
        post = self.get_post_document(post_id)
        comment = find_comment(post, comment_id)
        if not text or not text.strip():
            raise HTTPException(status_code=400, detail="Reply is required")
        now = utcnow_iso()
        comment["replies"] = (comment.get("replies") or []) + [{
            "id": new_subdocument_id(),
            "user_id": user["id"],
            "comment_id": comment["id"],
            "reply": text,
            "created_at": now,
            "updated_at": now,
        }]
        saved = self.save(post_id, {"comments": post["comments"]})
        return RepliesResponse(replies=find_comment(saved, comment_id).get("replies") or [])

    def update_reply(
        self, user: Dict[str, Any], post_id: str, comment_id: str, reply_id: str, text: Optional[str]
    ) -> RepliesResponse:
        post = self.get_post_document(post_id)
        comment = find_comment(post, comment_id)
        reply = find_reply(comment, reply_id)
        require_owner(reply["user_id"], user)
        if text is not None and text.strip():
            reply["reply"] = text
            reply["updated_at"] = utcnow_iso()
            post = self.save(post_id, {"comments": post["comments"]})
        return RepliesResponse(replies=find_comment(post, comment_id).get("replies") or [])

    def delete_reply(self, user: Dict[str, Any], post_id: str, comment_id: str, reply_id: str) -> RepliesResponse:
        post = self.get_post_document(post_id)
        comment = find_comment(post, comment_id)
        reply = find_reply(comment, reply_id)
        require_owner(reply["user_id"], user)
        comment["replies"] = [r for r in comment["replies"] if str(r.get("id")) != str(reply_id)]
        saved = self.save(post_id, {"comments": post["comments"]})
        return RepliesResponse(replies=find_comment(saved, comment_id).get("replies") or [])

    # Likes and shares

    def like(self, user: Dict[str, Any], post_id: str) -> LikesResponse:
        post = self.get_post_document(post_id)
        if find_like(post, user["id"]):
            raise HTTPException(status_code=400, detail="Post already liked")
        likes = (post.get("likes") or []) + [{
            "id": new_subdocument_id(),
            "user_id": user["id"],
            "post_id": post["id"],
            "created_at": utcnow_iso(),
        }]
        saved = self.save(post_id, {"likes": likes})
        return LikesResponse(likes=saved.get("likes") or [])

    def unlike(self, user: Dict[str, Any], post_id: str) -> LikesResponse:
        post = self.get_post_document(post_id)
        if not find_like(post, user["id"]):
            raise HTTPException(status_code=400, detail="Post not liked")
        likes = [like for like in post["likes"] if str(like.get("user_id")) != str(user["id"])]
        saved = self.save(post_id, {"likes": likes})
        return LikesResponse(likes=saved.get("likes") or [])

    def share(self, post_id: str) -> SharesResponse:
        post = self.get_post_document(post_id)
        saved = self.save(post_id, {"shares": (post.get("shares") or 0) + 1})
        return SharesResponse(shares=saved.get("shares") or 0)
