"""Machine-to-machine directory endpoints authenticated by API key.

``read`` covers the profile listings; sending notifications needs
``write``.  An ``admin`` key satisfies either.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.core.errors import DependencyFailure, NotFoundError
from app.dependencies import get_directory, get_provisioner, require_permission
from app.models.api_key import ApiKeyContext
from app.models.enums import ApiKeyPermission, ExperienceLevel, TeamSizePreference
from app.models.profile import Pagination
from app.models.team import NotificationRequest
from app.services.profiles import ProfileDirectory
from app.services.team_channels import TeamChannelProvisioner

logger = logging.getLogger(__name__)

router = APIRouter()

_read = require_permission(ApiKeyPermission.read)
_write = require_permission(ApiKeyPermission.write)


@router.get("/profiles")
async def list_profiles(
    skills: str | None = Query(default=None, description="Comma-separated skills (any match)"),
    experience_level: ExperienceLevel | None = None,
    team_size_preference: TeamSizePreference | None = None,
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    key: ApiKeyContext = Depends(_read),
    directory: ProfileDirectory = Depends(get_directory),
) -> dict[str, Any]:
    skill_list = [s.strip() for s in (skills or "").split(",") if s.strip()] or None
    try:
        rows, total = directory.list_profiles(
            skills=skill_list,
            experience_level=experience_level.value if experience_level else None,
            team_size_preference=team_size_preference.value if team_size_preference else None,
            limit=limit,
            offset=offset,
        )
    except DependencyFailure as exc:
        logger.error("directory_list_failed", extra={"key_id": key.id, "error_message": str(exc)})
        raise HTTPException(status_code=500, detail="Failed to get profiles") from exc
    return {
        "profiles": rows,
        "pagination": Pagination(limit=limit, offset=offset, total=total),
    }


@router.get("/profiles/{profile_id}")
async def get_profile(
    profile_id: str,
    key: ApiKeyContext = Depends(_read),
    directory: ProfileDirectory = Depends(get_directory),
) -> dict[str, Any]:
    try:
        return {"profile": directory.get_by_id(profile_id)}
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Profile not found") from exc
    except DependencyFailure as exc:
        logger.error("directory_get_failed", extra={"key_id": key.id, "error_message": str(exc)})
        raise HTTPException(status_code=500, detail="Failed to get profile") from exc


@router.post("/notifications")
async def send_notification(
    body: NotificationRequest,
    key: ApiKeyContext = Depends(_write),
    provisioner: TeamChannelProvisioner = Depends(get_provisioner),
) -> dict[str, Any]:
    try:
        await provisioner.send_notification(body.discord_id, body.message, body.type)
    except DependencyFailure as exc:
        logger.error(
            "directory_notification_failed",
            extra={"key_id": key.id, "discord_id": body.discord_id, "error_message": str(exc)},
        )
        raise HTTPException(status_code=502, detail="Failed to send notification") from exc
    return {"success": True, "message": "Notification sent successfully"}
