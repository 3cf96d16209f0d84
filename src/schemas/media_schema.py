# src/schemas/media_schema.py
from typing import Any, Dict, List, Literal, Optional
import uuid

from pydantic import Field

from src.schemas.base import CamelModel, Pagination, RequestModel, UTCDateTime

MediaType = Literal["IMAGE", "VIDEO"]

class MediaAssetRead(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    post_id: Optional[uuid.UUID] = None
    url: str
    type: MediaType
    file_name: str
    mime_type: str
    size: int
    title: Optional[str] = None
    description: Optional[str] = None
    uploaded_at: UTCDateTime

class PostSummary(CamelModel):
    id: uuid.UUID
    content: str
    created_at: UTCDateTime

class MediaAssetDetail(MediaAssetRead):
    post: Optional[PostSummary] = None

class UploadResponse(CamelModel):
    success: bool = True
    message: str
    uploaded_files: List[MediaAssetRead]
    total_uploaded: int

class MediaListResponse(CamelModel):
    assets: List[MediaAssetRead]
    pagination: Pagination

class DeleteResponse(CamelModel):
    success: bool = True
    message: str

class PrepareLinkedInRequest(RequestModel):
    asset_ids: List[str] = Field(min_length=1)
    post_content: Optional[str] = None

class PrepareLinkedInResponse(CamelModel):
    linkedin_payload: Dict[str, Any]
    assets: List[MediaAssetRead]
