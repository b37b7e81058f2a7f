"""
Multipart file intake: reads UploadFile parts into memory and validates them
against the configured MIME allow-list and size limit.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from fastapi import HTTPException, UploadFile

from app.config import settings

logger = logging.getLogger(__name__)


@dataclass
class IncomingFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def kind(self) -> str:
        """'image', 'video' or the MIME major type."""
        return self.content_type.split("/", 1)[0]


async def read_upload(file: UploadFile) -> Optional[IncomingFile]:
    """Read and validate a single part. Blank form inputs yield None."""
    if file is None or not file.filename:
        return None
    content_type = (file.content_type or "").lower()
    if content_type not in settings.get_allowed_mime_types():
        raise HTTPException(status_code=400, detail=f"File type {content_type or 'unknown'} is not allowed")
    data = await file.read()
    if not data:
        return None
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File {file.filename} exceeds the {settings.max_upload_mb}MB limit"
        )
    return IncomingFile(filename=file.filename, content_type=content_type, data=data)


async def read_uploads(files: Optional[List[UploadFile]]) -> List[IncomingFile]:
    incoming = []
    for file in files or []:
        item = await read_upload(file)
        if item is not None:
            incoming.append(item)
    if incoming:
        logger.debug(f"Received {len(incoming)} file(s): {[f.filename for f in incoming]}")
    return incoming


def resolve_media_type(requested: Optional[str], files: List[IncomingFile], default: str = "text") -> str:
    """Pick the post/story type from the form field and the uploaded files.

    An explicit type must agree with the files; without one the type is
    inferred from the files (all images or all videos), else ``default``.
    """
    if requested is not None:
        requested = requested.strip().lower()
        if requested not in ("image", "video", "text"):
            raise HTTPException(status_code=400, detail="Type must be one of: image, video, text")
    kinds = {f.kind for f in files}
    if len(kinds) > 1:
        raise HTTPException(status_code=400, detail="Images and videos cannot be mixed in one upload")
    file_kind = kinds.pop() if kinds else None
    if requested is None:
        return file_kind or default
    if file_kind is not None and file_kind != requested:
        raise HTTPException(status_code=400, detail=f"Uploaded files do not match type '{requested}'")
    return requested
