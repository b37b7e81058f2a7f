from supabase import Client
from app.config import settings
from app.core.security import hash_password
from app.core.uploads import IncomingFile
from app.database.supabase_client import first_row, is_invalid_id_error, utcnow_iso
from app.modules.media.service import MediaService
from app.modules.users.models import PASSWORD_MIN_LENGTH, USERNAME_MAX_LENGTH, USERNAME_MIN_LENGTH
from app.modules.users.schemas import (
    UserPublic, UserProfile, UserUpdate, UserSearchResponse,
    FollowStateResponse, FollowersResponse, FollowingsResponse
)
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging
import re

logger = logging.getLogger(__name__)


def is_following(user: Dict[str, Any], target_id: str) -> bool:
    return any(str(ref.get("user_id")) == str(target_id) for ref in user.get("followings") or [])


def without_ref(refs: Optional[List[Dict[str, Any]]], user_id: str) -> List[Dict[str, Any]]:
    return [ref for ref in refs or [] if str(ref.get("user_id")) != str(user_id)]


def with_ref(refs: Optional[List[Dict[str, Any]]], user_id: str) -> List[Dict[str, Any]]:
    return without_ref(refs, user_id) + [{"user_id": str(user_id), "created_at": utcnow_iso()}]


def to_public(doc: Dict[str, Any]) -> UserPublic:
    return UserPublic(**{k: v for k, v in doc.items() if k in UserPublic.model_fields and v is not None})


def to_profile(doc: Dict[str, Any]) -> UserProfile:
    return UserProfile(**{k: v for k, v in doc.items() if k in UserProfile.model_fields and v is not None})


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.table = settings.users_table

    def _query(self):
        return self.supabase.table(self.table)

    def find_one(self, **filters) -> Optional[Dict[str, Any]]:
        """First user document matching all equality filters, or None"""
        try:
            query = self._query().select("*")
            for column, value in filters.items():
                query = query.eq(column, value)
            return first_row(query.limit(1).execute())
        except Exception as e:
            if is_invalid_id_error(e):
                return None
            logger.error(f"Error looking up user by {filters}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_by_id(self, user_id: str) -> Dict[str, Any]:
        user = self.find_one(id=user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    def get_user_by_username(self, username: str) -> Dict[str, Any]:
        user = self.find_one(username=username)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    def get_users_by_ids(self, user_ids: List[str]) -> List[Dict[str, Any]]:
        if not user_ids:
            return []
        try:
            result = self._query()\
                .select("*")\
                .in_("id", list(user_ids))\
                .execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Error loading users {user_ids}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def save(self, user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Persist changed fields of a user document and return the stored document"""
        try:
            changes = {**changes, "updated_at": utcnow_iso()}
            result = self._query()\
                .update(changes)\
                .eq("id", user_id)\
                .execute()
            user = first_row(result)
            if not user:
                raise HTTPException(status_code=404, detail="User not found")
            return user
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error saving user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def ensure_username_available(self, username: str) -> None:
        if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
            raise HTTPException(
                status_code=400,
                detail=f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
            )
        if self.find_one(username=username):
            raise HTTPException(status_code=400, detail=f"User with username {username} already exists")

    def ensure_email_available(self, email: str) -> None:
        if self.find_one(email=email):
            raise HTTPException(status_code=400, detail=f"User with email {email} already exists")

    @staticmethod
    def check_password_length(password: str) -> None:
        if len(password) < PASSWORD_MIN_LENGTH:
            raise HTTPException(
                status_code=400,
                detail=f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
            )

    def get_profile(self, user: Dict[str, Any]) -> UserProfile:
        return to_profile(user)

    async def update_profile(
        self,
        user: Dict[str, Any],
        user_data: UserUpdate,
        media: MediaService,
        profile_pic: Optional[IncomingFile] = None,
        background_image: Optional[IncomingFile] = None,
    ) -> UserProfile:
        """Update profile fields; uploaded pictures replace the previous ones"""
        update_data: Dict[str, Any] = {}
        username = user_data.username.strip() if user_data.username else None
        if username and username != user["username"]:
            self.ensure_username_available(username)
            update_data["username"] = username
        email = user_data.email.strip().lower() if user_data.email else None
        if email and email != user.get("email"):
            self.ensure_email_available(email)
            update_data["email"] = email
        if user_data.password:
            self.check_password_length(user_data.password)
            update_data["password_hash"] = hash_password(user_data.password)
        for field in ("bio", "website", "location", "phone"):
            value = getattr(user_data, field)
            if value is not None:
                update_data[field] = value.strip()

        pictures = [
            (field, upload, folder)
            for field, upload, folder in (
                ("profile_pic", profile_pic, "profiles"),
                ("background_image", background_image, "backgrounds"),
            )
            if upload is not None
        ]
        for field, upload, _ in pictures:
            if upload.kind != "image":
                raise HTTPException(status_code=400, detail=f"{field} must be an image")

        uploaded: List[Dict[str, Any]] = []
        replaced: List[Dict[str, Any]] = []
        try:
            for field, upload, folder in pictures:
                assets = await media.upload_many([upload], folder, "image")
                uploaded.extend(assets)
                update_data[field] = assets
                replaced.extend(user.get(field) or [])

            if not update_data:
                return to_profile(user)
            saved = self.save(user["id"], update_data)
        except HTTPException:
            await media.delete_many(uploaded)
            raise
        if replaced:
            await media.delete_many(replaced)
        return to_profile(saved)

    async def delete_profile(self, user: Dict[str, Any], media: MediaService) -> bool:
        """Delete the user with its posts and media, and drop it from other users' follow lists"""
        user_id = user["id"]
        try:
            posts_result = self.supabase.table(settings.posts_table)\
                .select("*")\
                .eq("user_id", user_id)\
                .execute()
            posts = posts_result.data or []
            assets = list(user.get("profile_pic") or []) + list(user.get("background_image") or [])
            for story in user.get("stories") or []:
                assets.extend(story.get("media") or [])
            for post in posts:
                assets.extend(post.get("images") or [])
                assets.extend(post.get("videos") or [])
            if posts:
                self.supabase.table(settings.posts_table)\
                    .delete()\
                    .eq("user_id", user_id)\
                    .execute()

            related_ids = {ref["user_id"] for ref in (user.get("followers") or []) + (user.get("followings") or [])}
            for other in self.get_users_by_ids(sorted(related_ids)):
                self.save(other["id"], {
                    "followers": without_ref(other.get("followers"), user_id),
                    "followings": without_ref(other.get("followings"), user_id),
                })

            result = self._query()\
                .delete()\
                .eq("id", user_id)\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        removed = await media.delete_many(assets)
        logger.info(f"Deleted user {user_id} with {len(posts)} post(s), {removed}/{len(assets)} asset(s) removed")
        return len(result.data or []) > 0

    def search_users(self, keyword: str, limit: int = 20, offset: int = 0) -> UserSearchResponse:
        """Case-insensitive keyword match on username"""
        try:
            result = self._query()\
                .select("*")\
                .filter("username", "imatch", re.escape(keyword))\
                .order("username")\
                .limit(limit)\
                .offset(offset)\
                .execute()
            users = [to_public(u) for u in result.data or []]
            return UserSearchResponse(count=len(users), users=users)
        except Exception as e:
            logger.error(f"Error searching users for '{keyword}': {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def follow(self, user: Dict[str, Any], username: str) -> FollowStateResponse:
        if user["username"] == username:
            raise HTTPException(status_code=400, detail="You cannot follow yourself")
        target = self.find_one(username=username)
        if not target:
            raise HTTPException(status_code=404, detail="User to follow not found")
        if is_following(user, target["id"]):
            raise HTTPException(status_code=400, detail="You are already following this user")

        saved = self.save(user["id"], {"followings": with_ref(user.get("followings"), target["id"])})
        self.save(target["id"], {"followers": with_ref(target.get("followers"), user["id"])})
        logger.info(f"User {user['id']} followed {target['id']}")
        return FollowStateResponse(followings=saved.get("followings") or [])

    def unfollow(self, user: Dict[str, Any], username: str) -> FollowStateResponse:
        target = self.find_one(username=username)
        if not target:
            raise HTTPException(status_code=404, detail="User to unfollow not found")
        if not is_following(user, target["id"]):
            raise HTTPException(status_code=400, detail="You are not following this user")

        saved = self.save(user["id"], {"followings": without_ref(user.get("followings"), target["id"])})
        self.save(target["id"], {"followers": without_ref(target.get("followers"), user["id"])})
        logger.info(f"User {user['id']} unfollowed {target['id']}")
        return FollowStateResponse(followings=saved.get("followings") or [])

    def _related_users(self, refs: Optional[List[Dict[str, Any]]]) -> List[UserPublic]:
        ids = [ref["user_id"] for ref in refs or []]
        by_id = {u["id"]: u for u in self.get_users_by_ids(ids)}
        return [to_public(by_id[i]) for i in ids if i in by_id]

    def get_followers(self, username: str) -> FollowersResponse:
        user = self.get_user_by_username(username)
        return FollowersResponse(followers=self._related_users(user.get("followers")))

    def get_followings(self, username: str) -> FollowingsResponse:
        user = self.get_user_by_username(username)
        return FollowingsResponse(followings=self._related_users(user.get("followings")))
