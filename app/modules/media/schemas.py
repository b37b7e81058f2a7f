from pydantic import BaseModel
from typing import List, Optional


class MediaAsset(BaseModel):
    public_id: str
    url: str
    secure_url: Optional[str] = None
    resource_type: str = "image"


class MediaUrlsResponse(BaseModel):
    images: List[str] = []
    videos: List[str] = []
