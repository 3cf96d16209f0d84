# src/services/connect_service.py
"""
LinkedIn account connection.

The authorization leg carries the caller's identity to the callback inside a
signed state value; no server-side session exists between the two legs.
Tokens are never refreshed: once they expire the user reconnects.
"""
import os
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlencode
import uuid

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from src.exceptions import InternalError, NotConnectedError, NotFoundError, UpstreamError
from src.infrastructure.credentials_repo import CredentialsRepository
from src.infrastructure.linkedin_client import ERROR_OAUTH_FAILED, LinkedInClient, LinkedInError
from src.models.columns import utcnow
from src.UAA.utils import create_oauth_state, verify_oauth_state

logger = structlog.get_logger(__name__)

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
PROFILE_PATH = "/dashboard/profile"
DEFAULT_TOKEN_LIFETIME_SECONDS = 60 * 24 * 60 * 60

ERROR_NO_CODE = "no_code"
ERROR_NO_STATE = "no_state"
ERROR_INVALID_STATE = "invalid_state"
SUCCESS_CONNECTED = "linkedin_connected"


def profile_redirect(**params: str) -> str:
    return f"{FRONTEND_URL.rstrip('/')}{PROFILE_PATH}?{urlencode(params)}"


@dataclass
class ConnectionState:
    connected: bool
    expiry: Optional[datetime]
    is_expired: bool


class ConnectService:
    def __init__(self, session: AsyncSession, client: LinkedInClient):
        self.session = session
        self.client = client
        self.credentials = CredentialsRepository(session)

    def start(self, user_id: uuid.UUID) -> dict:
        if not self.client.is_configured:
            raise InternalError("LinkedIn OAuth not configured")
        state = create_oauth_state(str(user_id))
        logger.info("linkedin_connect_started", user_id=str(user_id))
        return {"url": self.client.authorization_url(state), "state": state}

    async def complete(
        self,
        code: Optional[str],
        state: Optional[str],
        error: Optional[str] = None,
    ) -> str:
        """Finish the authorization-code exchange. Always returns a browser
        redirect URL; failures are reported as a coarse error parameter."""
        if error:
            logger.info("linkedin_authorization_denied", error=error)
            return profile_redirect(error=error)
        if not code:
            return profile_redirect(error=ERROR_NO_CODE)
        if not state:
            return profile_redirect(error=ERROR_NO_STATE)

        raw_user_id = verify_oauth_state(state)
        if raw_user_id is None:
            logger.warning("linkedin_callback_invalid_state")
            return profile_redirect(error=ERROR_INVALID_STATE)
        try:
            user_id = uuid.UUID(raw_user_id)
        except ValueError:
            return profile_redirect(error=ERROR_INVALID_STATE)

        try:
            token_data = await self.client.exchange_code(code)
        except LinkedInError as e:
            logger.warning("linkedin_token_exchange_failed", user_id=str(user_id), category=e.category, status=e.status_code)
            return profile_redirect(error=e.category)

        try:
            lifetime = int(token_data.get("expires_in") or DEFAULT_TOKEN_LIFETIME_SECONDS)
        except (TypeError, ValueError):
            lifetime = DEFAULT_TOKEN_LIFETIME_SECONDS
        expires_at = utcnow() + timedelta(seconds=lifetime)

        try:
            saved = await self.credentials.save_linkedin_tokens(
                user_id,
                access_token=token_data["access_token"],
                refresh_token=token_data.get("refresh_token"),
                expires_at=expires_at,
            )
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("linkedin_token_store_failed", user_id=str(user_id), error=str(e))
            return profile_redirect(error=ERROR_OAUTH_FAILED)
        if not saved:
            logger.warning("linkedin_callback_unknown_user", user_id=str(user_id))
            return profile_redirect(error=ERROR_OAUTH_FAILED)

        logger.info("linkedin_connected", user_id=str(user_id), expires_at=expires_at.isoformat())
        return profile_redirect(success=SUCCESS_CONNECTED)

    async def status(self, user_id: uuid.UUID) -> ConnectionState:
        creds = await self.credentials.get_linkedin(user_id)
        if creds is None:
            raise NotFoundError("User not found")
        return ConnectionState(
            connected=creds.connected,
            expiry=creds.expires_at,
            is_expired=creds.is_expired(),
        )

    async def disconnect(self, user_id: uuid.UUID) -> None:
        # local only: LinkedIn is not asked to revoke anything
        if not await self.credentials.clear_linkedin_tokens(user_id):
            raise NotFoundError("User not found")
        logger.info("linkedin_disconnected", user_id=str(user_id))

    async def check_connection(self, user_id: uuid.UUID) -> dict:
        creds = await self.credentials.get_linkedin(user_id)
        if creds is None:
            raise NotFoundError("User not found")
        if not creds.connected or not creds.access_token:
            raise NotConnectedError()
        if creds.is_expired():
            raise NotConnectedError("LinkedIn token expired", error_code="LINKEDIN_TOKEN_EXPIRED")
        try:
            info = await self.client.get_userinfo(creds.access_token)
        except LinkedInError as e:
            logger.warning("linkedin_check_failed", user_id=str(user_id), category=e.category, status=e.status_code)
            raise UpstreamError("LinkedIn API test failed", details={"reason": e.category})
        logger.info("linkedin_check_ok", user_id=str(user_id))
        return info
