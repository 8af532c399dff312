"""Unit tests for Discord provisioning, the bot gateway and the channel sync."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import httpx
import pytest

from app.core.errors import DependencyFailure
from app.models.enums import NotificationType
from app.models.profile import Profile
from app.services.discord_gateway import (
    GUILD_TEXT,
    GUILD_VOICE,
    MEMBER_OVERWRITE,
    ROLE_OVERWRITE,
    VIEW_CHANNEL,
    DiscordGateway,
    private_overwrites,
)
from app.services.team_channels import (
    TeamChannelProvisioner,
    match_channel_name,
    notification_embed,
    slugify,
)

GUILD_ID = "guild-1"


def _gateway() -> MagicMock:
    gateway = MagicMock()
    gateway.guild_id = GUILD_ID
    created = iter(range(100, 200))

    async def _create_channel(name: str, channel_type: int, **_kwargs: Any) -> dict[str, Any]:
        return {"id": str(next(created)), "name": name, "type": channel_type}

    gateway.create_channel = AsyncMock(side_effect=_create_channel)
    gateway.send_message = AsyncMock(return_value={"id": "msg"})
    gateway.send_direct_message = AsyncMock(return_value={"id": "dm"})
    gateway.list_channels = AsyncMock(return_value=[])
    gateway.get_guild = AsyncMock(return_value={"id": GUILD_ID, "name": "Hack", "approximate_member_count": 42})
    return gateway


class TestHelpers:
    def test_slugify(self) -> None:
        assert slugify("  Rocket  Team ") == "rocket-team"

    def test_match_channel_name(self) -> None:
        assert match_channel_name("Ada", "Grace Hopper") == "match-ada-grace-hopper"

    def test_private_overwrites_hide_from_everyone(self) -> None:
        overwrites = private_overwrites(GUILD_ID, ["u1", "u2"], 123)

        assert overwrites[0] == {"id": GUILD_ID, "type": ROLE_OVERWRITE, "deny": str(VIEW_CHANNEL), "allow": "0"}
        assert [o["id"] for o in overwrites[1:]] == ["u1", "u2"]
        assert all(o["type"] == MEMBER_OVERWRITE and o["allow"] == "123" for o in overwrites[1:])

    @pytest.mark.parametrize(
        ("kind", "color"),
        [
            (NotificationType.info, 0x0099FF),
            (NotificationType.success, 0x00FF00),
            (NotificationType.warning, 0xFFAA00),
            (NotificationType.error, 0xFF0000),
        ],
    )
    def test_notification_colours(self, kind: NotificationType, color: int) -> None:
        embed = notification_embed("hello", kind)

        assert embed["color"] == color
        assert embed["description"] == "hello"


class TestCreateTeamSpace:
    @pytest.mark.asyncio
    async def test_creates_text_and_voice_and_welcome(self) -> None:
        gateway = _gateway()
        db = MagicMock()
        provisioner = TeamChannelProvisioner(gateway, db)

        space = await provisioner.create_team_space("Rocket Team", "We fly", ["u1", "u2", "u3"], "Moon app")

        text_call, voice_call = gateway.create_channel.await_args_list
        assert text_call.kwargs["name"] == "team-rocket-team"
        assert text_call.kwargs["channel_type"] == GUILD_TEXT
        assert voice_call.kwargs["name"] == "🔊 Rocket Team"
        assert voice_call.kwargs["channel_type"] == GUILD_VOICE
        assert space.text_channel.url == f"https://discord.com/channels/{GUILD_ID}/100"

        welcome = gateway.send_message.await_args.kwargs["content"]
        for member in ("<@u1>", "<@u2>", "<@u3>"):
            assert member in welcome
        assert gateway.send_message.await_count == 1

        db.table.assert_called_with("discord_channels")
        recorded = db.table.return_value.insert.call_args.args[0]
        assert recorded["channel_type"] == "team"
        assert recorded["channel_id"] == "100"

    @pytest.mark.asyncio
    async def test_voice_failure_surfaces_without_rollback(self) -> None:
        gateway = _gateway()
        gateway.create_channel = AsyncMock(
            side_effect=[{"id": "100", "name": "team-x"}, DependencyFailure("voice failed")]
        )
        provisioner = TeamChannelProvisioner(gateway, MagicMock())

        with pytest.raises(DependencyFailure):
            await provisioner.create_team_space("x", None, ["u1", "u2"])
        gateway.send_message.assert_not_awaited()


class TestMatchChannelAndNotifications:
    @pytest.mark.asyncio
    async def test_match_channel_for_two(self, make_profile: Callable[..., Profile]) -> None:
        gateway = _gateway()
        provisioner = TeamChannelProvisioner(gateway, MagicMock())
        ada = make_profile("a", username="ada", discord_id="d-a")
        bob = make_profile("b", username="bob", discord_id="d-b", full_name="Bob B")

        channel = await provisioner.create_match_channel(ada, bob, "Both love Go")

        kwargs = gateway.create_channel.await_args.kwargs
        assert channel.name == "match-ada-bob"
        assert [o["id"] for o in kwargs["permission_overwrites"][1:]] == ["d-a", "d-b"]
        intro = gateway.send_message.await_args.kwargs["content"]
        assert "Both love Go" in intro
        assert "(Bob B)" in intro

    @pytest.mark.asyncio
    async def test_notification_is_dm_embed(self) -> None:
        gateway = _gateway()
        provisioner = TeamChannelProvisioner(gateway, MagicMock())

        await provisioner.send_notification("d-1", "Team formed", NotificationType.success)

        user_id, embeds = gateway.send_direct_message.await_args.args
        assert user_id == "d-1"
        assert embeds[0]["color"] == 0x00FF00

    @pytest.mark.asyncio
    async def test_server_info_lists_text_channels(self) -> None:
        gateway = _gateway()
        gateway.list_channels = AsyncMock(
            return_value=[{"id": "1", "name": "general", "type": 0}, {"id": "2", "name": "Voice", "type": 2}]
        )
        info = await TeamChannelProvisioner(gateway, MagicMock()).server_info()

        assert info["guild"]["member_count"] == 42
        assert [c["name"] for c in info["channels"]] == ["general"]


class TestProvisionAcceptedMatches:
    def _store(self, rows: list[dict[str, Any]]) -> MagicMock:
        store = MagicMock()
        store.list_accepted.return_value = rows
        return store

    def _row(self, match_id: str, first: str, second: str) -> dict[str, Any]:
        return {
            "id": match_id,
            "match_reason": "fit",
            "profile": {"discord_id": f"d-{first}", "username": first},
            "matched_profile": {"discord_id": f"d-{second}", "username": second},
        }

    @pytest.mark.asyncio
    async def test_skips_existing_channels(self) -> None:
        gateway = _gateway()
        gateway.list_channels = AsyncMock(return_value=[{"id": "9", "name": "match-ada-bob", "type": 0}])
        store = self._store([self._row("m1", "ada", "bob"), self._row("m2", "cy", "di")])
        provisioner = TeamChannelProvisioner(gateway, MagicMock(), store)

        created = await provisioner.provision_accepted_match_channels()

        assert [c.match_id for c in created] == ["m2"]
        assert gateway.create_channel.await_count == 1

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_rest(self) -> None:
        gateway = _gateway()
        gateway.create_channel = AsyncMock(
            side_effect=[DependencyFailure("rate limited"), {"id": "200", "name": "match-cy-di"}]
        )
        store = self._store([self._row("m1", "ada", "bob"), self._row("m2", "cy", "di")])
        provisioner = TeamChannelProvisioner(gateway, MagicMock(), store)

        created = await provisioner.provision_accepted_match_channels()

        assert [c.match_id for c in created] == ["m2"]

    @pytest.mark.asyncio
    async def test_rows_without_discord_ids_are_skipped(self) -> None:
        gateway = _gateway()
        row = self._row("m1", "ada", "bob")
        row["matched_profile"]["discord_id"] = None
        provisioner = TeamChannelProvisioner(gateway, MagicMock(), self._store([row]))

        assert await provisioner.provision_accepted_match_channels() == []
        gateway.create_channel.assert_not_awaited()


class TestDiscordGateway:
    @pytest.mark.asyncio
    async def test_unconfigured_bot_raises(self) -> None:
        gateway = DiscordGateway(bot_token="", guild_id="")
        gateway._bot_token = ""
        gateway.guild_id = ""

        with pytest.raises(DependencyFailure, match="not configured"):
            await gateway.list_channels()

    @pytest.mark.asyncio
    async def test_http_error_becomes_dependency_failure(self) -> None:
        response = MagicMock()
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "403", request=MagicMock(), response=MagicMock()
        )
        mock_client = AsyncMock()
        mock_client.request.return_value = response
        mock_client.__aenter__.return_value = mock_client
        mock_client.__aexit__.return_value = False

        with patch("app.services.discord_gateway.httpx.AsyncClient", return_value=mock_client):
            gateway = DiscordGateway(bot_token="bot", guild_id=GUILD_ID)
            with pytest.raises(DependencyFailure):
                await gateway.get_guild()

    @pytest.mark.asyncio
    async def test_direct_message_opens_dm_channel_first(self) -> None:
        dm_response = MagicMock(status_code=200, content=b"{}")
        dm_response.json.return_value = {"id": "dm-1"}
        msg_response = MagicMock(status_code=200, content=b"{}")
        msg_response.json.return_value = {"id": "msg-1"}
        mock_client = AsyncMock()
        mock_client.request.side_effect = [dm_response, msg_response]
        mock_client.__aenter__.return_value = mock_client
        mock_client.__aexit__.return_value = False

        with patch("app.services.discord_gateway.httpx.AsyncClient", return_value=mock_client):
            gateway = DiscordGateway(bot_token="bot", guild_id=GUILD_ID, api_base_url="https://discord.test")
            await gateway.send_direct_message("u-1", [{"title": "hi"}])

        first, second = mock_client.request.await_args_list
        assert first.args == ("POST", "https://discord.test/users/@me/channels")
        assert first.kwargs["json"] == {"recipient_id": "u-1"}
        assert second.args == ("POST", "https://discord.test/channels/dm-1/messages")
        assert first.kwargs["headers"]["Authorization"] == "Bot bot"


class TestChannelSyncLock:
    @pytest.mark.asyncio
    async def test_returns_none_while_locked(self) -> None:
        from app.scheduler.lock import acquire_sync_lock, release_sync_lock
        from app.services.channel_sync import sync_match_channels

        provisioner = MagicMock()
        provisioner.provision_accepted_match_channels = AsyncMock(return_value=[])
        assert acquire_sync_lock(uuid4())
        try:
            assert await sync_match_channels(provisioner, trigger="manual") is None
            provisioner.provision_accepted_match_channels.assert_not_awaited()
        finally:
            release_sync_lock()

    @pytest.mark.asyncio
    async def test_releases_lock_after_failure(self) -> None:
        from app.scheduler.lock import is_sync_running
        from app.services.channel_sync import sync_match_channels

        provisioner = MagicMock()
        provisioner.provision_accepted_match_channels = AsyncMock(side_effect=DependencyFailure("db"))

        with pytest.raises(DependencyFailure):
            await sync_match_channels(provisioner, trigger="manual")
        assert is_sync_running() is False

    @pytest.mark.asyncio
    async def test_completes_with_info_logging_enabled(self, caplog: pytest.LogCaptureFixture) -> None:
        from app.services.channel_sync import sync_match_channels

        store = MagicMock()
        store.list_accepted.return_value = [
            {
                "id": "m1",
                "match_reason": "fit",
                "profile": {"discord_id": "d-ada", "username": "ada"},
                "matched_profile": {"discord_id": "d-bob", "username": "bob"},
            }
        ]
        provisioner = TeamChannelProvisioner(_gateway(), MagicMock(), store)

        with caplog.at_level(logging.INFO):
            result = await sync_match_channels(provisioner, trigger="manual")

        assert result is not None
        assert result["count"] == 1
        completed = [r for r in caplog.records if r.getMessage() == "channel_sync_completed"]
        assert completed[0].created_count == 1
