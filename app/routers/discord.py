"""Discord workspace endpoints (session auth).

POST /create-team-channel        -- private text + voice channels for a team.
POST /create-match-channel       -- private channel for the caller and a match.
POST /send-notification          -- DM embed to one participant.
GET  /server-info                -- guild summary and text channels.
POST /bulk-create-match-channels -- channel sync for accepted matches
                                    (409 while a sync is running).
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from app.core.errors import DependencyFailure, NotFoundError
from app.dependencies import get_current_user, get_directory, get_provisioner
from app.models.auth import AuthUser
from app.models.team import MatchChannelRequest, NotificationRequest, TeamChannelRequest
from app.scheduler.lock import get_current_run_id
from app.services.channel_sync import sync_match_channels
from app.services.profiles import ProfileDirectory
from app.services.team_channels import TeamChannelProvisioner

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create-team-channel")
async def create_team_channel(
    body: TeamChannelRequest,
    user: AuthUser = Depends(get_current_user),
    provisioner: TeamChannelProvisioner = Depends(get_provisioner),
) -> dict[str, Any]:
    try:
        space = await provisioner.create_team_space(
            body.team_name,
            body.team_description,
            body.member_discord_ids,
            project_idea=body.project_idea,
            team_id=body.team_id,
        )
    except DependencyFailure as exc:
        logger.error(
            "create_team_channel_failed",
            extra={"team_name": body.team_name, "requested_by": user.id, "error_message": str(exc)},
        )
        raise HTTPException(status_code=500, detail="Failed to create team channel") from exc
    return {
        "success": True,
        "team_channel": space.text_channel,
        "voice_channel": space.voice_channel,
        "message": "Team channels created successfully",
    }


@router.post("/create-match-channel")
async def create_match_channel(
    body: MatchChannelRequest,
    user: AuthUser = Depends(get_current_user),
    directory: ProfileDirectory = Depends(get_directory),
    provisioner: TeamChannelProvisioner = Depends(get_provisioner),
) -> dict[str, Any]:
    try:
        requester = directory.get_by_discord_id(user.discord_id)
        matched = directory.get_by_discord_id(body.matched_user_discord_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="User not found") from exc
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to create match channel") from exc

    try:
        channel = await provisioner.create_match_channel(requester, matched, body.match_reason)
    except DependencyFailure as exc:
        logger.error(
            "create_match_channel_failed",
            extra={"requester_id": requester.id, "matched_id": matched.id, "error_message": str(exc)},
        )
        raise HTTPException(status_code=500, detail="Failed to create match channel") from exc
    return {
        "success": True,
        "channel": channel,
        "message": "Match channel created successfully",
    }


@router.post("/send-notification")
async def send_notification(
    body: NotificationRequest,
    user: AuthUser = Depends(get_current_user),
    provisioner: TeamChannelProvisioner = Depends(get_provisioner),
) -> dict[str, Any]:
    try:
        await provisioner.send_notification(body.discord_id, body.message, body.type)
    except DependencyFailure as exc:
        logger.error(
            "send_notification_failed",
            extra={"discord_id": body.discord_id, "requested_by": user.id, "error_message": str(exc)},
        )
        raise HTTPException(status_code=500, detail="Failed to send notification") from exc
    return {"success": True, "message": "Notification sent successfully"}


@router.get("/server-info", dependencies=[Depends(get_current_user)])
async def server_info(
    provisioner: TeamChannelProvisioner = Depends(get_provisioner),
) -> dict[str, Any]:
    try:
        return await provisioner.server_info()
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to get server info") from exc


@router.post("/bulk-create-match-channels")
async def bulk_create_match_channels(
    user: AuthUser = Depends(get_current_user),
    provisioner: TeamChannelProvisioner = Depends(get_provisioner),
) -> dict[str, Any]:
    try:
        result = await sync_match_channels(provisioner, trigger="manual")
    except DependencyFailure as exc:
        logger.error(
            "bulk_match_channels_failed",
            extra={"requested_by": user.id, "error_message": str(exc)},
        )
        raise HTTPException(status_code=500, detail="Failed to create match channels") from exc

    if result is None:
        run_id = get_current_run_id()
        raise HTTPException(
            status_code=409,
            detail={
                "message": "Channel sync already running",
                "run_id": str(run_id) if run_id else None,
            },
        )
    return {
        "success": True,
        "created_channels": result["created_channels"],
        "count": result["count"],
        "message": f"Created {result['count']} match channels",
    }
