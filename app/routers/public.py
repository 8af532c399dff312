"""Unauthenticated directory endpoints.

Only the public column set is ever returned here: no ids, emails or Discord
identities.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.core.constants import DEFAULT_PAGE_SIZE, DEFAULT_SEARCH_LIMIT, EXPERIENCE_LEVELS, MAX_PAGE_SIZE
from app.core.errors import DependencyFailure
from app.dependencies import get_db, get_directory
from app.models.enums import ExperienceLevel
from app.models.profile import Pagination
from app.services import stats
from app.services.profiles import ProfileDirectory

logger = logging.getLogger(__name__)

router = APIRouter()

_ENDPOINTS: dict[str, dict[str, str]] = {
    "public": {
        "GET /public/stats": "Hackathon statistics",
        "GET /public/participants": "Public participant directory",
        "GET /public/search/{query}": "Search participants",
        "GET /public/skills/{skill}": "Participants by skill",
        "GET /public/industry/{industry}": "Participants by industry",
        "GET /public/skills": "Skill counts",
        "GET /public/industries": "Industry counts",
        "GET /public/experience-levels": "Experience level counts",
    },
    "directory": {
        "GET /directory/profiles": "Profile directory (API key, read)",
        "GET /directory/profiles/{id}": "Single profile (API key, read)",
        "POST /directory/notifications": "Direct-message a participant (API key, write)",
    },
    "api_keys": {
        "POST /keys/generate": "Generate new API key",
        "GET /keys/list": "List your API keys",
        "PUT /keys/{key_id}": "Update API key",
        "DELETE /keys/{key_id}": "Revoke API key",
        "GET /keys/{key_id}/stats": "API key usage stats",
    },
    "auth": {
        "POST /auth/discord/callback": "Sign in with Discord",
        "GET /auth/me": "Current user",
        "POST /auth/refresh": "Refresh session token",
    },
    "matching": {
        "GET /matching/ai-matches": "AI-ranked matches",
        "GET /matching/history": "Match history",
        "POST /matching/{match_id}/respond": "Accept or reject a match",
        "POST /matching/team-recommendations": "Team recommendations",
    },
}


def _handle(exc: DependencyFailure, detail: str) -> HTTPException:
    logger.error("public_query_failed", extra={"error_message": str(exc)})
    return HTTPException(status_code=500, detail=detail)


@router.get("/stats")
async def public_stats(db: Any = Depends(get_db)) -> dict[str, Any]:
    try:
        return stats.get_public_stats(db)
    except DependencyFailure as exc:
        raise _handle(exc, "Failed to get statistics") from exc


@router.get("/participants")
async def participants(
    skills: str | None = Query(default=None, description="Comma-separated skills (any match)"),
    experience_level: ExperienceLevel | None = None,
    industry: str | None = None,
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    directory: ProfileDirectory = Depends(get_directory),
) -> dict[str, Any]:
    skill_list = [s.strip() for s in (skills or "").split(",") if s.strip()] or None
    try:
        rows, total = directory.list_public(
            skills=skill_list,
            experience_level=experience_level.value if experience_level else None,
            industry=industry,
            limit=limit,
            offset=offset,
        )
    except DependencyFailure as exc:
        raise _handle(exc, "Failed to get participants") from exc
    return {
        "participants": rows,
        "pagination": Pagination(limit=limit, offset=offset, total=total),
    }


@router.get("/search/{query}")
async def search(
    query: str,
    limit: int = Query(default=DEFAULT_SEARCH_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    directory: ProfileDirectory = Depends(get_directory),
) -> dict[str, Any]:
    try:
        results = directory.search(query, limit=limit, public=True)
    except DependencyFailure as exc:
        raise _handle(exc, "Search failed") from exc
    return {"query": query, "results": results, "count": len(results)}


@router.get("/skills/{skill}")
async def by_skill(
    skill: str,
    limit: int = Query(default=DEFAULT_SEARCH_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    directory: ProfileDirectory = Depends(get_directory),
) -> dict[str, Any]:
    try:
        results = directory.by_skill(skill, limit=limit, public=True)
    except DependencyFailure as exc:
        raise _handle(exc, "Failed to get participants by skill") from exc
    return {"skill": skill, "participants": results, "count": len(results)}


@router.get("/industry/{industry}")
async def by_industry(
    industry: str,
    limit: int = Query(default=DEFAULT_SEARCH_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    directory: ProfileDirectory = Depends(get_directory),
) -> dict[str, Any]:
    try:
        results = directory.by_industry(industry, limit=limit)
    except DependencyFailure as exc:
        raise _handle(exc, "Failed to get participants by industry") from exc
    return {"industry": industry, "participants": results, "count": len(results)}


@router.get("/skills")
async def skills(db: Any = Depends(get_db)) -> dict[str, Any]:
    try:
        counts = stats.get_skills(db)
    except DependencyFailure as exc:
        raise _handle(exc, "Failed to get skills") from exc
    return {"skills": counts, "total_unique_skills": len(counts)}


@router.get("/industries")
async def industries(db: Any = Depends(get_db)) -> dict[str, Any]:
    try:
        counts = stats.get_industries(db)
    except DependencyFailure as exc:
        raise _handle(exc, "Failed to get industries") from exc
    return {"industries": counts, "total_unique_industries": len(counts)}


@router.get("/experience-levels")
async def experience_levels(db: Any = Depends(get_db)) -> dict[str, Any]:
    try:
        return {"experience_levels": stats.get_experience_levels(db)}
    except DependencyFailure as exc:
        raise _handle(exc, "Failed to get experience levels") from exc


@router.get("/docs")
async def docs(request: Request) -> dict[str, Any]:
    return {
        "api_name": request.app.title,
        "version": request.app.version,
        "base_url": f"{str(request.base_url).rstrip('/')}/api",
        "authentication": {
            "session": "Authorization: Bearer <token> from /api/auth/discord/callback",
            "api_key": "X-API-Key: <key> from /api/keys/generate",
        },
        "endpoints": _ENDPOINTS,
        "experience_levels": list(EXPERIENCE_LEVELS),
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }
