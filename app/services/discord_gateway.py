"""Discord bot REST client (channels, messages, direct messages, guild info).

Calls are authenticated with the bot token.  Any non-2xx answer or
transport error becomes ``DependencyFailure``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.core.config import settings
from app.core.errors import DependencyFailure

logger = logging.getLogger(__name__)

# Channel types
GUILD_TEXT = 0
GUILD_VOICE = 2

# Permission bits
VIEW_CHANNEL = 1 << 10
SEND_MESSAGES = 1 << 11
EMBED_LINKS = 1 << 14
ATTACH_FILES = 1 << 15
READ_MESSAGE_HISTORY = 1 << 16
CONNECT = 1 << 20
SPEAK = 1 << 21
USE_VAD = 1 << 25

TEXT_MEMBER_PERMISSIONS = (
    VIEW_CHANNEL | SEND_MESSAGES | READ_MESSAGE_HISTORY | ATTACH_FILES | EMBED_LINKS
)
VOICE_MEMBER_PERMISSIONS = VIEW_CHANNEL | CONNECT | SPEAK | USE_VAD

# Overwrite target types
ROLE_OVERWRITE = 0
MEMBER_OVERWRITE = 1


def private_overwrites(guild_id: str, member_ids: list[str], allow: int) -> list[dict[str, Any]]:
    """Hide the channel from @everyone and grant ``allow`` to each member."""
    overwrites: list[dict[str, Any]] = [
        # The @everyone role shares the guild's id
        {"id": guild_id, "type": ROLE_OVERWRITE, "deny": str(VIEW_CHANNEL), "allow": "0"},
    ]
    for member_id in member_ids:
        overwrites.append(
            {"id": member_id, "type": MEMBER_OVERWRITE, "allow": str(allow), "deny": "0"}
        )
    return overwrites


def channel_url(guild_id: str, channel_id: str) -> str:
    return f"https://discord.com/channels/{guild_id}/{channel_id}"


class DiscordGateway:
    def __init__(
        self,
        bot_token: str | None = None,
        guild_id: str | None = None,
        api_base_url: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._bot_token = bot_token or settings.DISCORD_BOT_TOKEN
        self.guild_id = guild_id or settings.DISCORD_GUILD_ID
        self._base_url = (api_base_url or settings.DISCORD_API_BASE_URL).rstrip("/")
        self._timeout = timeout

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        if not self._bot_token or not self.guild_id:
            raise DependencyFailure("Discord bot is not configured")
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(
                    method,
                    f"{self._base_url}{path}",
                    headers={"Authorization": f"Bot {self._bot_token}"},
                    json=json,
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error(
                "discord_request_failed",
                extra={"method": method, "path": path, "error_message": str(exc)},
            )
            raise DependencyFailure(f"Discord request failed: {method} {path}") from exc
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def create_channel(
        self,
        name: str,
        channel_type: int,
        permission_overwrites: list[dict[str, Any]],
        topic: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "name": name,
            "type": channel_type,
            "permission_overwrites": permission_overwrites,
        }
        if topic and channel_type == GUILD_TEXT:
            body["topic"] = topic[:1024]
        return await self._request("POST", f"/guilds/{self.guild_id}/channels", json=body)

    async def send_message(
        self,
        channel_id: str,
        content: str | None = None,
        embeds: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if content:
            body["content"] = content[:2000]
        if embeds:
            body["embeds"] = embeds
        return await self._request("POST", f"/channels/{channel_id}/messages", json=body)

    async def send_direct_message(self, user_id: str, embeds: list[dict[str, Any]]) -> dict[str, Any]:
        dm = await self._request("POST", "/users/@me/channels", json={"recipient_id": user_id})
        return await self.send_message(dm["id"], embeds=embeds)

    async def get_guild(self) -> dict[str, Any]:
        return await self._request("GET", f"/guilds/{self.guild_id}?with_counts=true")

    async def list_channels(self) -> list[dict[str, Any]]:
        return await self._request("GET", f"/guilds/{self.guild_id}/channels") or []
