# Stories are embedded in users.stories (jsonb); there is no stories table.

"""
Story sub-document:
- id: text (uuid4 hex)
- caption: text (nullable; required for text stories)
- type: text - values: image, video, text
- media: list of media assets
- hashtags: list of '#tag' tokens of the caption
- created_at: timestamptz
- expires_at: timestamptz - created_at + settings.story_ttl_hours
"""

from datetime import datetime
from typing import Any, Dict, List

from app.database.supabase_client import parse_timestamp


def is_active(story: Dict[str, Any], now: datetime) -> bool:
    expires_at = story.get("expires_at")
    return bool(expires_at) and parse_timestamp(expires_at) > now


def active_stories(stories: List[Dict[str, Any]], now: datetime) -> List[Dict[str, Any]]:
    return [s for s in stories or [] if is_active(s, now)]
