"""Team formation endpoints (session auth)."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from app.core.errors import ConflictError, DependencyFailure, NotFoundError
from app.dependencies import get_current_user, get_team_registry
from app.models.auth import AuthUser
from app.models.team import Team, TeamCreate, TeamDetail, TeamJoinRequest, TeamMember
from app.services.teams import TeamRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=TeamDetail, status_code=201)
async def create_team(
    body: TeamCreate,
    user: AuthUser = Depends(get_current_user),
    registry: TeamRegistry = Depends(get_team_registry),
) -> TeamDetail:
    try:
        return registry.create_team(user.id, body)
    except DependencyFailure as exc:
        logger.error("create_team_failed", extra={"owner_id": user.id, "error_message": str(exc)})
        raise HTTPException(status_code=500, detail="Failed to create team") from exc


@router.get("", dependencies=[Depends(get_current_user)])
async def list_teams(registry: TeamRegistry = Depends(get_team_registry)) -> dict[str, list[Team]]:
    try:
        return {"teams": registry.list_open_teams()}
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to list teams") from exc


@router.get("/{team_id}", response_model=TeamDetail, dependencies=[Depends(get_current_user)])
async def get_team(team_id: str, registry: TeamRegistry = Depends(get_team_registry)) -> TeamDetail:
    try:
        return registry.get_team(team_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Team not found") from exc
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to get team") from exc


@router.post("/{team_id}/join", status_code=201)
async def join_team(
    team_id: str,
    body: TeamJoinRequest | None = None,
    user: AuthUser = Depends(get_current_user),
    registry: TeamRegistry = Depends(get_team_registry),
) -> dict[str, Any]:
    try:
        member: TeamMember = registry.join_team(team_id, user.id, role=body.role if body else None)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Team not found") from exc
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to join team") from exc
    return {"member": member, "message": "Joined team successfully"}
