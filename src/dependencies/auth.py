# src/dependencies/auth.py
import uuid
from dataclasses import dataclass
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from src.exceptions import UnauthorizedError
from src.UAA.utils import decode_token

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: uuid.UUID
    email: str


async def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> AuthenticatedUser:
    """Resolve the bearer credential to the caller's identity without touching the database."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("No token provided, authorization denied")
    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise UnauthorizedError("Token is not valid")
    if payload.get("type") != "access":
        raise UnauthorizedError("Token is not valid")
    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise UnauthorizedError("Token is not valid")
    email = payload.get("email")
    if not email:
        raise UnauthorizedError("Token is not valid")
    return AuthenticatedUser(user_id=user_id, email=email)
