"""Discord OAuth2 authorization-code exchange.

1. Exchange the authorization code for an access token
2. Fetch the signed-in user's identity with that token
"""

from __future__ import annotations

import logging

import httpx

from app.core.config import settings
from app.core.errors import ExternalServiceError
from app.models.profile import DiscordUser

logger = logging.getLogger(__name__)

OAUTH_SCOPE = "identify email"


class DiscordOAuthClient:
    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        api_base_url: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.client_id = client_id or settings.DISCORD_CLIENT_ID
        self.client_secret = client_secret or settings.DISCORD_CLIENT_SECRET
        self.redirect_uri = redirect_uri or settings.DISCORD_REDIRECT_URI
        self.api_base_url = (api_base_url or settings.DISCORD_API_BASE_URL).rstrip("/")
        self.timeout = timeout

    async def exchange_code(self, code: str) -> str:
        """Return the access token for an authorization code."""
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self.redirect_uri,
            "scope": OAUTH_SCOPE,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.api_base_url}/oauth2/token",
                    data=data,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"Token exchange failed: {exc}") from exc

        if response.status_code != 200:
            logger.warning(
                "discord_token_exchange_rejected",
                extra={"status_code": response.status_code},
            )
            raise ExternalServiceError("Failed to exchange code for token")

        try:
            body = response.json()
        except ValueError as exc:
            raise ExternalServiceError("Token response is not JSON") from exc
        access_token = body.get("access_token") if isinstance(body, dict) else None
        if not access_token:
            raise ExternalServiceError("Token response has no access_token")
        return access_token

    async def fetch_user(self, access_token: str) -> DiscordUser:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.api_base_url}/users/@me",
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"User info request failed: {exc}") from exc

        if response.status_code != 200:
            raise ExternalServiceError("Failed to get user info")
        try:
            return DiscordUser.model_validate(response.json())
        except ValueError as exc:
            raise ExternalServiceError("Malformed user info response") from exc
