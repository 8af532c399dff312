"""Discord channel provisioning for teams and accepted matches.

A team space is a private text channel plus a private voice channel, each
visible only to the listed members.  If the voice channel fails after the
text channel was created, the error propagates and the text channel is
left in place (no rollback).
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any

from supabase import Client

from app.core.constants import DEFAULT_MATCH_REASON, NOTIFICATION_FOOTER, NOTIFICATION_STYLES
from app.core.errors import AppError, DependencyFailure
from app.models.enums import ChannelKind, NotificationType
from app.models.profile import Profile
from app.models.team import ChannelRef, CreatedMatchChannel, TeamSpace
from app.services.discord_gateway import (
    GUILD_TEXT,
    GUILD_VOICE,
    TEXT_MEMBER_PERMISSIONS,
    VOICE_MEMBER_PERMISSIONS,
    DiscordGateway,
    channel_url,
    private_overwrites,
)
from app.services.match_store import MatchStore

logger = logging.getLogger(__name__)


def slugify(value: str) -> str:
    return re.sub(r"\s+", "-", value.strip().lower())


def match_channel_name(username1: str, username2: str) -> str:
    return slugify(f"match-{username1}-{username2}")


def _mentions(member_ids: list[str]) -> str:
    return ", ".join(f"<@{member_id}>" for member_id in member_ids)


def team_welcome_message(
    team_name: str,
    description: str | None,
    project_idea: str | None,
    member_ids: list[str],
    text_channel_id: str,
    voice_channel_id: str,
) -> str:
    lines = [f"🎉 **Welcome to Team {team_name}!**", ""]
    if description:
        lines.append(f"**Description:** {description}")
    if project_idea:
        lines.append(f"**Project Idea:** {project_idea}")
    lines += [
        "",
        "**Team Members:**",
        _mentions(member_ids),
        "",
        "**Available Channels:**",
        f"• <#{text_channel_id}> - Main team chat",
        f"• <#{voice_channel_id}> - Voice chat",
        "",
        "**Next Steps:**",
        "1. Introduce yourselves and share your skills",
        "2. Discuss project ideas and roles",
        "3. Set up your development environment",
        "4. Start coding! 🚀",
        "",
        "Good luck with your hackathon project!",
    ]
    return "\n".join(lines)


def match_intro_message(
    first: tuple[str, str], second: tuple[str, str], reason: str | None
) -> str:
    """``first``/``second`` are (discord_id, display name) pairs."""
    return "\n".join([
        "🤝 **AI-Generated Match!**",
        "",
        "**Participants:**",
        f"• <@{first[0]}> ({first[1]})",
        f"• <@{second[0]}> ({second[1]})",
        "",
        f"**Why you were matched:** {reason or DEFAULT_MATCH_REASON}",
        "",
        "**Next Steps:**",
        "1. Introduce yourselves and share your skills",
        "2. Discuss potential project ideas",
        "3. See if you'd like to form a team together",
        "4. Use this channel to coordinate and collaborate",
        "",
        "Good luck with your hackathon journey! 🚀",
    ])


def notification_embed(message: str, kind: NotificationType) -> dict[str, Any]:
    color, title = NOTIFICATION_STYLES[kind.value]
    return {
        "color": color,
        "title": title,
        "description": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "footer": {"text": NOTIFICATION_FOOTER},
    }


class TeamChannelProvisioner:
    def __init__(
        self,
        gateway: DiscordGateway,
        client: Client,
        store: MatchStore | None = None,
    ) -> None:
        self._gateway = gateway
        self._client = client
        self._store = store

    async def create_team_space(
        self,
        team_name: str,
        description: str | None,
        member_ids: list[str],
        project_idea: str | None = None,
        team_id: str | None = None,
    ) -> TeamSpace:
        guild_id = self._gateway.guild_id
        text = await self._gateway.create_channel(
            name=f"team-{slugify(team_name)}",
            channel_type=GUILD_TEXT,
            topic=f"{description or 'Team collaboration channel'}\n\nProject: {project_idea or 'TBD'}",
            permission_overwrites=private_overwrites(guild_id, member_ids, TEXT_MEMBER_PERMISSIONS),
        )
        voice = await self._gateway.create_channel(
            name=f"🔊 {team_name}",
            channel_type=GUILD_VOICE,
            permission_overwrites=private_overwrites(guild_id, member_ids, VOICE_MEMBER_PERMISSIONS),
        )

        self._record_channel(text, ChannelKind.team, team_id=team_id)

        await self._gateway.send_message(
            text["id"],
            content=team_welcome_message(
                team_name, description, project_idea, member_ids, text["id"], voice["id"]
            ),
        )
        logger.info(
            "team_space_created",
            extra={"team_name": team_name, "members": len(member_ids), "text_channel_id": text["id"]},
        )
        return TeamSpace(
            text_channel=ChannelRef(id=text["id"], name=text["name"], url=channel_url(guild_id, text["id"])),
            voice_channel=ChannelRef(id=voice["id"], name=voice["name"], url=channel_url(guild_id, voice["id"])),
        )

    async def create_match_channel(
        self,
        requester: Profile,
        matched: Profile,
        reason: str | None = None,
        match_id: str | None = None,
    ) -> ChannelRef:
        guild_id = self._gateway.guild_id
        member_ids = [requester.discord_id or "", matched.discord_id or ""]
        requester_name = requester.full_name or requester.username
        matched_name = matched.full_name or matched.username

        channel = await self._gateway.create_channel(
            name=match_channel_name(requester.username, matched.username),
            channel_type=GUILD_TEXT,
            topic=f"AI-generated match between {requester_name} and {matched_name}",
            permission_overwrites=private_overwrites(guild_id, member_ids, TEXT_MEMBER_PERMISSIONS),
        )
        self._record_channel(channel, ChannelKind.match, match_id=match_id)
        await self._gateway.send_message(
            channel["id"],
            content=match_intro_message(
                (member_ids[0], requester_name), (member_ids[1], matched_name), reason
            ),
        )
        return ChannelRef(id=channel["id"], name=channel["name"], url=channel_url(guild_id, channel["id"]))

    async def send_notification(
        self, discord_id: str, message: str, kind: NotificationType = NotificationType.info
    ) -> None:
        await self._gateway.send_direct_message(discord_id, [notification_embed(message, kind)])

    async def server_info(self) -> dict[str, Any]:
        guild = await self._gateway.get_guild()
        channels = await self._gateway.list_channels()
        return {
            "guild": {
                "id": guild["id"],
                "name": guild.get("name"),
                "member_count": guild.get("approximate_member_count"),
                "icon": guild.get("icon"),
            },
            "channels": [
                {"id": c["id"], "name": c.get("name"), "topic": c.get("topic")}
                for c in channels
                if c.get("type") == GUILD_TEXT
            ],
        }

    async def provision_accepted_match_channels(self) -> list[CreatedMatchChannel]:
        """Create a private channel for every accepted match that has none yet.

        Failures for one match are logged and skipped.
        """
        if self._store is None:
            raise RuntimeError("Match channel provisioning needs a MatchStore")

        accepted = self._store.list_accepted()
        existing = {c.get("name") for c in await self._gateway.list_channels()}
        created: list[CreatedMatchChannel] = []

        for match in accepted:
            first = match.get("profile") or {}
            second = match.get("matched_profile") or {}
            if not first.get("discord_id") or not second.get("discord_id"):
                continue
            name = match_channel_name(first.get("username", ""), second.get("username", ""))
            if name in existing:
                continue
            try:
                channel = await self._gateway.create_channel(
                    name=name,
                    channel_type=GUILD_TEXT,
                    topic=f"AI-generated match between {first['username']} and {second['username']}",
                    permission_overwrites=private_overwrites(
                        self._gateway.guild_id,
                        [first["discord_id"], second["discord_id"]],
                        TEXT_MEMBER_PERMISSIONS,
                    ),
                )
                self._record_channel(channel, ChannelKind.match, match_id=match["id"])
                await self._gateway.send_message(
                    channel["id"],
                    content=match_intro_message(
                        (first["discord_id"], first["username"]),
                        (second["discord_id"], second["username"]),
                        match.get("match_reason"),
                    ),
                )
            except AppError as exc:
                logger.error(
                    "match_channel_provision_failed",
                    extra={"match_id": match.get("id"), "error_message": str(exc)},
                )
                continue
            existing.add(name)
            created.append(
                CreatedMatchChannel(match_id=match["id"], channel_id=channel["id"], channel_name=channel["name"])
            )

        logger.info(
            "provision_match_channels_completed",
            extra={"accepted": len(accepted), "created_count": len(created)},
        )
        return created

    def _record_channel(
        self,
        channel: dict[str, Any],
        kind: ChannelKind,
        team_id: str | None = None,
        match_id: str | None = None,
    ) -> None:
        try:
            self._client.table("discord_channels").insert({
                "channel_id": channel["id"],
                "channel_name": channel["name"],
                "channel_type": kind.value,
                "team_id": team_id,
                "match_id": match_id,
            }).execute()
        except Exception as exc:
            raise DependencyFailure("Failed to record Discord channel") from exc
