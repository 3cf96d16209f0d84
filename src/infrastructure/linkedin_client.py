# src/infrastructure/linkedin_client.py
import os
from typing import Optional
from urllib.parse import urlencode

import httpx
import structlog

logger = structlog.get_logger(__name__)

LINKEDIN_CLIENT_ID = os.getenv("LINKEDIN_CLIENT_ID", "")
LINKEDIN_CLIENT_SECRET = os.getenv("LINKEDIN_CLIENT_SECRET", "")
LINKEDIN_REDIRECT_URI = os.getenv("LINKEDIN_REDIRECT_URI", "http://localhost:8000/connect/callback")
LINKEDIN_SCOPES = os.getenv("LINKEDIN_SCOPES", "openid profile email w_member_social")

AUTH_URL = "https://www.linkedin.com/oauth/v2/authorization"
TOKEN_URL = "https://www.linkedin.com/oauth/v2/accessToken"
USERINFO_URL = "https://api.linkedin.com/v2/userinfo"

TOKEN_EXCHANGE_TIMEOUT = 10
USERINFO_TIMEOUT = 10

# coarse failure categories; these are the only upstream details that reach a browser
ERROR_NETWORK_TIMEOUT = "network_timeout"
ERROR_INVALID_REQUEST = "invalid_request"
ERROR_UNAUTHORIZED = "unauthorized"
ERROR_OAUTH_FAILED = "oauth_failed"


class LinkedInError(Exception):
    def __init__(self, category: str, message: str, status_code: Optional[int] = None):
        self.category = category
        self.status_code = status_code
        super().__init__(message)


def _categorize_status(status_code: int) -> str:
    if status_code == 400:
        return ERROR_INVALID_REQUEST
    if status_code == 401:
        return ERROR_UNAUTHORIZED
    return ERROR_OAUTH_FAILED


class LinkedInClient:
    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id if client_id is not None else LINKEDIN_CLIENT_ID
        self.client_secret = client_secret if client_secret is not None else LINKEDIN_CLIENT_SECRET
        self.redirect_uri = redirect_uri or LINKEDIN_REDIRECT_URI
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.redirect_uri)

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self.transport)

    def authorization_url(self, state: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": LINKEDIN_SCOPES,
            "state": state,
        }
        return f"{AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> dict:
        """
        Trade an authorization code for tokens.
        The redirect_uri must be the one used to build the authorization URL.
        Raises LinkedInError with a coarse category on any failure.
        """
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        try:
            async with self._client(TOKEN_EXCHANGE_TIMEOUT) as client:
                response = await client.post(
                    TOKEN_URL,
                    data=data,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            logger.warning("linkedin_token_exchange_network_error", error=str(e))
            raise LinkedInError(ERROR_NETWORK_TIMEOUT, "LinkedIn unreachable or timed out")
        except httpx.HTTPError as e:
            logger.warning("linkedin_token_exchange_transport_error", error=str(e))
            raise LinkedInError(ERROR_OAUTH_FAILED, "LinkedIn token exchange failed")

        if response.status_code >= 400:
            logger.warning("linkedin_token_exchange_rejected", status=response.status_code)
            raise LinkedInError(
                _categorize_status(response.status_code),
                f"LinkedIn token endpoint returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError:
            raise LinkedInError(ERROR_OAUTH_FAILED, "LinkedIn token response was not JSON")
        if not isinstance(body, dict) or not body.get("access_token"):
            raise LinkedInError(ERROR_OAUTH_FAILED, "No access token returned from LinkedIn")
        return body

    async def get_userinfo(self, access_token: str) -> dict:
        """Read-only OpenID userinfo call used to check a stored token."""
        try:
            async with self._client(USERINFO_TIMEOUT) as client:
                response = await client.get(USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"})
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            logger.warning("linkedin_userinfo_network_error", error=str(e))
            raise LinkedInError(ERROR_NETWORK_TIMEOUT, "LinkedIn unreachable or timed out")
        except httpx.HTTPError as e:
            logger.warning("linkedin_userinfo_transport_error", error=str(e))
            raise LinkedInError(ERROR_OAUTH_FAILED, "LinkedIn userinfo call failed")

        if response.status_code >= 400:
            logger.warning("linkedin_userinfo_rejected", status=response.status_code)
            raise LinkedInError(
                _categorize_status(response.status_code),
                f"LinkedIn userinfo returned {response.status_code}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError:
            raise LinkedInError(ERROR_OAUTH_FAILED, "LinkedIn userinfo response was not JSON")
        return {"sub": data.get("sub"), "name": data.get("name"), "email": data.get("email")}
