# src/schemas/post_schema.py
from typing import Any, List, Optional
import uuid

from pydantic import Field

from src.schemas.base import CamelModel, Pagination, RequestModel, UTCDateTime
from src.schemas.media_schema import MediaAssetRead

class PostCreate(RequestModel):
    content: str
    convo: Optional[Any] = None  # AI conversation history, stored as-is
    media_asset_ids: List[str] = Field(default_factory=list)
    socials: List[str] = Field(default_factory=lambda: ["linkedin"])
    scheduled_at: Optional[str] = None  # ISO-8601; parsed by the service

class PostUpdate(RequestModel):
    """Partial update: only fields present in the body are applied."""
    content: Optional[str] = None
    convo: Optional[Any] = None
    media_asset_ids: Optional[List[str]] = None
    socials: Optional[List[str]] = None
    scheduled_at: Optional[str] = None  # explicit null clears the schedule

class PostRead(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    content: str
    convo: Optional[Any] = None
    socials: List[str]
    scheduled_at: Optional[UTCDateTime] = None
    is_posted: bool
    created_at: UTCDateTime
    updated_at: UTCDateTime
    media_assets: List[MediaAssetRead] = Field(default_factory=list)

class CreatePostResponse(CamelModel):
    post: PostRead
    is_scheduled: bool
    media_count: int

class PostListResponse(CamelModel):
    posts: List[PostRead]
    pagination: Pagination
