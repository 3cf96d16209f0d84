# src/infrastructure/credentials_repo.py
from dataclasses import dataclass
from typing import Optional
from sqlmodel.ext.asyncio.session import AsyncSession
from src.UAA.models import User
from src.UAA.utils import decrypt_token, encrypt_token
import uuid
from datetime import datetime
from src.models.columns import utcnow


@dataclass
class LinkedInCredentials:
    connected: bool
    access_token: Optional[str]
    refresh_token: Optional[str]
    expires_at: Optional[datetime]

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at < (now or utcnow())


class CredentialsRepository:
    """
    LinkedIn credentials stored on the User row.
    Tokens are encrypted on write and decrypted on read; callers only see plaintext.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_user(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_linkedin(self, user_id: uuid.UUID) -> Optional[LinkedInCredentials]:
        user = await self._get_user(user_id)
        if not user:
            return None
        return LinkedInCredentials(
            connected=user.linkedin_connected,
            access_token=decrypt_token(user.linkedin_access_token),
            refresh_token=decrypt_token(user.linkedin_refresh_token),
            expires_at=user.linkedin_token_expiry,
        )

    async def save_linkedin_tokens(
        self,
        user_id: uuid.UUID,
        access_token: str,
        refresh_token: Optional[str],
        expires_at: datetime,
    ) -> bool:
        """
        Store a fresh token pair and mark the user connected.
        Returns False when no such user exists.
        """
        user = await self._get_user(user_id)
        if not user:
            return False
        user.linkedin_access_token = encrypt_token(access_token)
        user.linkedin_refresh_token = encrypt_token(refresh_token)
        user.linkedin_token_expiry = expires_at
        user.linkedin_connected = True
        self.session.add(user)
        await self.session.commit()
        return True

    async def clear_linkedin_tokens(self, user_id: uuid.UUID) -> bool:
        user = await self._get_user(user_id)
        if not user:
            return False
        user.linkedin_access_token = None
        user.linkedin_refresh_token = None
        user.linkedin_token_expiry = None
        user.linkedin_connected = False
        self.session.add(user)
        await self.session.commit()
        return True
