# Supabase table: posts
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

posts:
- id: uuid (primary key, default: gen_random_uuid())
- user_id: uuid (foreign key to users.id, not null) - author
- caption: text (not null)
- type: text (not null) - values: image, video, text
- category: text (nullable) - values: see CATEGORIES
- images: jsonb (default: '[]') - list of media assets
- videos: jsonb (default: '[]') - list of media assets
- hashtags: jsonb (default: '[]') - '#tag' tokens of the caption
- comments: jsonb (default: '[]')
    [{id, user_id, post_id, comment, created_at, updated_at,
      replies: [{id, user_id, comment_id, reply, created_at, updated_at}]}]
- likes: jsonb (default: '[]') - [{id, user_id, post_id, created_at}], one per user
- shares: integer (default: 0)
- created_at: timestamptz (default: now())
- updated_at: timestamptz (nullable)
"""

import re
import uuid
from typing import List, Optional

POST_TYPES = ("image", "video", "text")

CATEGORIES = ("funny", "sad", "happy", "news", "politics", "sports", "entertainment", "other")

HASHTAG_PATTERN = re.compile(r"#\w+")


def extract_hashtags(caption: Optional[str]) -> List[str]:
    """Every #tag of the caption, in order of appearance"""
    return HASHTAG_PATTERN.findall(caption or "")


def new_subdocument_id() -> str:
    return uuid.uuid4().hex
