from pydantic import EmailStr, Field
import uuid

from src.schemas.base import CamelModel, RequestModel, UTCDateTime

class SignupRequest(RequestModel):
    username: str = Field(min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(min_length=5, max_length=128)

class SigninRequest(RequestModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

class UserPublic(CamelModel):
    id: uuid.UUID
    username: str
    email: str

class UserRead(UserPublic):
    created_at: UTCDateTime
    linkedin_connected: bool

class AuthResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserPublic

class IdentityRead(CamelModel):
    user_id: uuid.UUID
    email: str
