# src/models/post.py
from sqlmodel import SQLModel, Field, Column
from typing import Any, List, Optional
import uuid
from datetime import datetime
from sqlalchemy import JSON, Text
from src.models.columns import UTCDateTimeType, utcnow

class Post(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    content: str = Field(sa_column=Column(Text, nullable=False))
    convo: Optional[Any] = Field(default=None, sa_column=Column(JSON))  # AI chat history
    socials: List[str] = Field(default_factory=lambda: ["linkedin"], sa_column=Column(JSON, nullable=False))
    scheduled_at: Optional[datetime] = Field(default=None, sa_column=Column(UTCDateTimeType(), index=True, nullable=True))
    is_posted: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(UTCDateTimeType(), index=True, nullable=False))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(UTCDateTimeType(), nullable=False))
