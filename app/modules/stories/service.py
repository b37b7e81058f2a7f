from datetime import timedelta
from supabase import Client
from app.config import settings
from app.core.uploads import IncomingFile, resolve_media_type
from app.database.supabase_client import utcnow
from app.modules.media.service import MediaService
from app.modules.posts.models import extract_hashtags, new_subdocument_id
from app.modules.stories.models import active_stories, is_active
from app.modules.stories.schemas import StoryResponse, UserStoriesResponse, StoryFeedResponse
from app.modules.users.schemas import AuthorSummary
from app.modules.users.service import UserService
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def author_of(user: Dict[str, Any]) -> AuthorSummary:
    return AuthorSummary(id=user["id"], username=user["username"], profile_pic=user.get("profile_pic") or [])


class StoryService:
    """Stories are stored on the owner's user document and expire after story_ttl_hours"""

    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.users = UserService(supabase)

    async def create_story(
        self,
        user: Dict[str, Any],
        caption: Optional[str],
        story_type: Optional[str],
        files: List[IncomingFile],
        media: MediaService,
    ) -> StoryResponse:
        story_type = resolve_media_type(story_type, files)
        if story_type == "text" and not (caption and caption.strip()):
            raise HTTPException(status_code=400, detail="Caption is required for text stories")
        if story_type != "text" and not files:
            raise HTTPException(status_code=400, detail=f"A {story_type} story needs at least one file")

        assets = await media.upload_many(files, "stories", story_type) if files else []
        now = utcnow()
        story = {
            "id": new_subdocument_id(),
            "caption": caption,
            "type": story_type,
            "media": assets,
            "hashtags": extract_hashtags(caption),
            "created_at": now.isoformat(),
            "expires_at": (now + timedelta(hours=settings.story_ttl_hours)).isoformat(),
        }
        stories = user.get("stories") or []
        expired = [s for s in stories if not is_active(s, now)]
        try:
            self.users.save(user["id"], {"stories": active_stories(stories, now) + [story]})
        except HTTPException:
            await media.delete_many(assets)
            raise
        if expired:
            await media.delete_many([a for s in expired for a in s.get("media") or []])
        logger.info(f"User {user['id']} posted {story_type} story {story['id']}, pruned {len(expired)} expired")
        return StoryResponse(**story)

    def get_user_stories(self, username: str) -> UserStoriesResponse:
        user = self.users.get_user_by_username(username)
        stories = active_stories(user.get("stories"), utcnow())
        return UserStoriesResponse(user=author_of(user), stories=[StoryResponse(**s) for s in stories])

    def get_feed(self, user: Dict[str, Any]) -> StoryFeedResponse:
        """Active stories of the accounts the user follows, newest author activity first"""
        now = utcnow()
        followed_ids = [ref["user_id"] for ref in user.get("followings") or []]
        feed = []
        for followed in self.users.get_users_by_ids(followed_ids):
            stories = active_stories(followed.get("stories"), now)
            if stories:
                feed.append(UserStoriesResponse(
                    user=author_of(followed),
                    stories=[StoryResponse(**s) for s in stories],
                ))
        feed.sort(key=lambda entry: max(s.created_at for s in entry.stories), reverse=True)
        return StoryFeedResponse(count=len(feed), feed=feed)

    async def delete_story(self, user: Dict[str, Any], story_id: str, media: MediaService) -> bool:
        stories = user.get("stories") or []
        story = next((s for s in stories if str(s.get("id")) == str(story_id)), None)
        if story is None:
            raise HTTPException(status_code=404, detail="Story not found")
        self.users.save(user["id"], {"stories": [s for s in stories if s is not story]})
        await media.delete_many(story.get("media") or [])
        return True
