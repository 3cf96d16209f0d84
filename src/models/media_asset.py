# src/models/media_asset.py
from sqlmodel import SQLModel, Field, Column
from typing import Optional
from datetime import datetime
import uuid
from sqlalchemy import String
from src.models.columns import UTCDateTimeType, utcnow

MEDIA_TYPE_IMAGE = "IMAGE"
MEDIA_TYPE_VIDEO = "VIDEO"

class MediaAsset(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    # SET NULL on the column keeps assets alive if a post row goes away outside the service
    post_id: Optional[uuid.UUID] = Field(default=None, foreign_key="post.id", index=True, ondelete="SET NULL")
    file_name: str
    mime_type: str
    size: int
    storage_key: str = Field(sa_column=Column(String, unique=True, nullable=False))
    url: str
    type: str = Field(index=True)  # IMAGE | VIDEO
    title: Optional[str] = None
    description: Optional[str] = None
    uploaded_at: datetime = Field(default_factory=utcnow, sa_column=Column(UTCDateTimeType(), index=True, nullable=False))
