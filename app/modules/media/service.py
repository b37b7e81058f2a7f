import asyncio
import logging
import os
import uuid
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from supabase import Client

from app.config import settings
from app.core.uploads import IncomingFile
from app.modules.media.s3_storage import S3Storage

logger = logging.getLogger(__name__)


class MediaService:
    """Uploads to the asset host: S3 when configured, Supabase Storage otherwise.

    Every stored file is described by a MediaAsset dict
    ``{public_id, url, secure_url, resource_type}``; ``public_id`` is the storage key.
    """

    def __init__(self, supabase: Client, s3_storage: Optional[S3Storage] = None):
        self.supabase = supabase
        self.bucket = settings.media_bucket
        self.s3_storage = s3_storage
        if self.s3_storage is None and settings.s3_configured:
            try:
                self.s3_storage = S3Storage()
                logger.info("S3 storage initialized successfully")
            except Exception as e:
                logger.warning(f"S3 storage initialization failed ({str(e)}), will use Supabase Storage")
                self.s3_storage = None

    @staticmethod
    def build_key(folder: str, filename: str) -> str:
        extension = os.path.splitext(filename or "")[1].lower()
        return f"{folder}/{uuid.uuid4().hex}{extension}"

    def upload(self, file: IncomingFile, folder: str, resource_type: str) -> Dict[str, Any]:
        key = self.build_key(folder, file.filename)
        try:
            if self.s3_storage:
                url = self.s3_storage.upload_file(file.data, key, file.content_type)
            else:
                self.supabase.storage.from_(self.bucket).upload(
                    key,
                    file.data,
                    file_options={"content-type": file.content_type}
                )
                url = self.supabase.storage.from_(self.bucket).get_public_url(key)
        except Exception as e:
            logger.error(f"Upload of {file.filename} to {key} failed: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Failed to upload {file.filename}")
        logger.info(f"Uploaded {file.filename} as {key}")
        return {
            "public_id": key,
            "url": url,
            "secure_url": url.replace("http://", "https://", 1),
            "resource_type": resource_type,
        }

    async def upload_many(self, files: List[IncomingFile], folder: str, resource_type: str) -> List[Dict[str, Any]]:
        """Upload a batch concurrently. If any upload fails the rest of the batch is removed."""
        if not files:
            return []
        results = await asyncio.gather(
            *(asyncio.to_thread(self.upload, f, folder, resource_type) for f in files),
            return_exceptions=True,
        )
        uploaded = [r for r in results if not isinstance(r, BaseException)]
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            logger.error(f"{len(failures)} of {len(files)} upload(s) failed, removing {len(uploaded)} uploaded asset(s)")
            await self.delete_many(uploaded)
            if isinstance(failures[0], HTTPException):
                raise failures[0]
            raise HTTPException(status_code=500, detail="Failed to upload media")
        return uploaded

    def delete(self, asset: Dict[str, Any]) -> bool:
        key = (asset or {}).get("public_id")
        if not key:
            return False
        try:
            if self.s3_storage:
                return self.s3_storage.delete_file(key)
            self.supabase.storage.from_(self.bucket).remove([key])
            logger.info(f"Deleted {key} from Supabase Storage")
            return True
        except Exception as e:
            logger.warning(f"Failed to delete {key}: {e}")
            return False

    async def delete_many(self, assets: List[Dict[str, Any]]) -> int:
        """Delete assets concurrently; returns how many were removed. Failures are only logged."""
        if not assets:
            return 0
        results = await asyncio.gather(*(asyncio.to_thread(self.delete, a) for a in assets))
        return sum(1 for ok in results if ok)

    def url_for(self, public_id: str) -> str:
        if self.s3_storage:
            return self.s3_storage.presigned_url(public_id, settings.presigned_url_ttl_seconds)
        return self.supabase.storage.from_(self.bucket).get_public_url(public_id)
