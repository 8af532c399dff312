"""Participant profile endpoints (session auth).

Static paths (/me, /search, /skills, /stats) are declared before /{id} so
they are not swallowed by the id route.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.constants import DEFAULT_PAGE_SIZE, DEFAULT_SEARCH_LIMIT, MAX_PAGE_SIZE
from app.core.errors import DependencyFailure, NotFoundError
from app.dependencies import get_current_user, get_db, get_directory
from app.models.auth import AuthUser
from app.models.enums import ExperienceLevel, TeamSizePreference
from app.models.profile import Pagination, ProfileUpdate
from app.services import stats
from app.services.profiles import ProfileDirectory

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])


def _split(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


@router.get("")
async def list_profiles(
    skills: str | None = Query(default=None, description="Comma-separated skills (any match)"),
    experience_level: ExperienceLevel | None = None,
    team_size_preference: TeamSizePreference | None = None,
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    directory: ProfileDirectory = Depends(get_directory),
) -> dict[str, Any]:
    try:
        rows, total = directory.list_profiles(
            skills=_split(skills),
            experience_level=experience_level.value if experience_level else None,
            team_size_preference=team_size_preference.value if team_size_preference else None,
            limit=limit,
            offset=offset,
        )
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to get profiles") from exc
    return {
        "profiles": rows,
        "pagination": Pagination(limit=limit, offset=offset, total=total),
    }


@router.get("/me")
async def get_own_profile(
    user: AuthUser = Depends(get_current_user),
    directory: ProfileDirectory = Depends(get_directory),
) -> dict[str, Any]:
    try:
        return {"profile": directory.get_by_discord_id(user.discord_id)}
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Profile not found") from exc
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to get profile") from exc


@router.put("/me")
async def update_own_profile(
    body: ProfileUpdate,
    user: AuthUser = Depends(get_current_user),
    directory: ProfileDirectory = Depends(get_directory),
) -> dict[str, Any]:
    try:
        profile = directory.update_own(user.discord_id, body)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Profile not found") from exc
    except DependencyFailure as exc:
        logger.error(
            "update_profile_failed",
            extra={"discord_id": user.discord_id, "error_message": str(exc)},
        )
        raise HTTPException(status_code=500, detail="Failed to update profile") from exc
    return {"profile": profile, "message": "Profile updated successfully"}


@router.get("/search/{query}")
async def search_profiles(
    query: str,
    limit: int = Query(default=DEFAULT_SEARCH_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    directory: ProfileDirectory = Depends(get_directory),
) -> dict[str, Any]:
    try:
        return {"profiles": directory.search(query, limit=limit)}
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Search failed") from exc


@router.get("/skills/{skill}")
async def profiles_by_skill(
    skill: str,
    limit: int = Query(default=DEFAULT_SEARCH_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    directory: ProfileDirectory = Depends(get_directory),
) -> dict[str, Any]:
    try:
        return {"profiles": directory.by_skill(skill, limit=limit)}
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to get profiles by skill") from exc


@router.get("/stats/overview")
async def profile_stats(db: Any = Depends(get_db)) -> dict[str, Any]:
    try:
        return stats.get_profile_overview(db)
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to get statistics") from exc


@router.get("/{profile_id}")
async def get_profile(
    profile_id: str,
    directory: ProfileDirectory = Depends(get_directory),
) -> dict[str, Any]:
    try:
        return {"profile": directory.get_by_id(profile_id)}
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Profile not found") from exc
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to get profile") from exc
