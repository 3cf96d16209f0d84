# src/UAA/models.py
from sqlmodel import SQLModel, Field, Column
from typing import Optional
from datetime import datetime
import uuid
from sqlalchemy import String
from src.models.columns import UTCDateTimeType, utcnow

class User(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    email: str = Field(sa_column=Column(String, unique=True, index=True, nullable=False))
    username: str = Field(sa_column=Column(String, unique=True, index=True, nullable=False))
    hashed_password: str
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(UTCDateTimeType(), nullable=False))
    last_login: Optional[datetime] = Field(default=None, sa_column=Column(UTCDateTimeType(), nullable=True))

    # LinkedIn connection; tokens are Fernet ciphertext
    linkedin_access_token: Optional[str] = None
    linkedin_refresh_token: Optional[str] = None
    linkedin_token_expiry: Optional[datetime] = Field(default=None, sa_column=Column(UTCDateTimeType(), nullable=True))
    linkedin_connected: bool = Field(default=False)
