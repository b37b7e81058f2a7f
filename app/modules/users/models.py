# Supabase table: users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, default: gen_random_uuid())
- username: text (unique, not null) - 3 to 20 characters, trimmed
- email: text (unique, not null)
- password_hash: text (not null) - bcrypt
- bio: text (nullable) - max 160
- website: text (nullable) - max 100
- location: text (nullable) - max 100
- phone: text (nullable) - max 20
- profile_pic: jsonb (default: '[]') - list of media assets
- background_image: jsonb (default: '[]') - list of media assets
- followers: jsonb (default: '[]') - [{user_id, created_at}]
- followings: jsonb (default: '[]') - [{user_id, created_at}]
- stories: jsonb (default: '[]') - see app/modules/stories/models.py
- is_active: boolean (default: false)
- is_admin: boolean (default: false)
- password_reset_token: text (nullable) - sha256 hex of the emailed token
- password_reset_expires: timestamptz (nullable)
- created_at: timestamptz (default: now())
- updated_at: timestamptz (nullable)

Media asset shape: {public_id, url, secure_url, resource_type}
"""

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6


def new_user_document(username: str, email: str, password_hash: str) -> dict:
    return {
        "username": username,
        "email": email,
        "password_hash": password_hash,
        "profile_pic": [],
        "background_image": [],
        "followers": [],
        "followings": [],
        "stories": [],
        "is_active": False,
        "is_admin": False,
    }
