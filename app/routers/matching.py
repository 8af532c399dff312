"""AI matching endpoints (session auth).

GET  /ai-matches           -- rank candidates for the caller and store them.
GET  /history              -- caller's stored matches, newest first.
POST /{match_id}/respond   -- accept or reject one of the caller's matches.
POST /team-recommendations -- suggest a team for a project idea.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.constants import DEFAULT_MAX_MATCHES, DEFAULT_MIN_SCORE, MAX_MATCHES_LIMIT
from app.core.errors import DependencyFailure, NotFoundError
from app.dependencies import (
    get_current_user,
    get_directory,
    get_match_finder,
    get_match_store,
    get_team_recommender,
)
from app.models.auth import AuthUser
from app.models.enums import ExperienceLevel, MatchAction, MatchStatus
from app.models.match import (
    MatchesResponse,
    MatchHistoryResponse,
    MatchOptions,
    MatchRespondRequest,
    MatchRespondResponse,
    MatchResult,
    TeamRecommendationRequest,
    TeamRecommendationResponse,
)
from app.models.profile import ProfileSummary
from app.services.match_store import MatchStore
from app.services.matching import MatchFinder, TeamRecommender
from app.services.profiles import ProfileDirectory

logger = logging.getLogger(__name__)

router = APIRouter()

_ACTION_STATUS = {
    MatchAction.accept: MatchStatus.accepted,
    MatchAction.reject: MatchStatus.rejected,
}


@router.get("/ai-matches", response_model=MatchesResponse)
async def ai_matches(
    max_matches: int = Query(default=DEFAULT_MAX_MATCHES, ge=1, le=MAX_MATCHES_LIMIT),
    min_score: float = Query(default=DEFAULT_MIN_SCORE, ge=0.0, le=1.0),
    skills_focus: str | None = Query(default=None, description="Comma-separated skills"),
    experience_level: ExperienceLevel | None = None,
    user: AuthUser = Depends(get_current_user),
    directory: ProfileDirectory = Depends(get_directory),
    finder: MatchFinder = Depends(get_match_finder),
) -> MatchesResponse:
    options = MatchOptions(
        max_matches=max_matches,
        min_score=min_score,
        skills_focus=[s.strip() for s in (skills_focus or "").split(",") if s.strip()],
        experience_level=experience_level,
    )
    try:
        requester = directory.get_by_id(user.id)
        matches = await finder.run(requester, options)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Profile not found") from exc
    except DependencyFailure as exc:
        logger.error(
            "ai_matches_failed",
            extra={"profile_id": user.id, "error_message": str(exc)},
        )
        raise HTTPException(status_code=500, detail="Failed to find matches") from exc

    return MatchesResponse(
        matches=[
            MatchResult(profile=ProfileSummary.of(m.profile), score=m.score, reasons=m.reasons)
            for m in matches
        ],
        total_found=len(matches),
    )


@router.get("/history", response_model=MatchHistoryResponse)
async def match_history(
    user: AuthUser = Depends(get_current_user),
    store: MatchStore = Depends(get_match_store),
) -> MatchHistoryResponse:
    try:
        return MatchHistoryResponse(matches=store.list_for_requester(user.id))
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to get match history") from exc


@router.post("/team-recommendations", response_model=TeamRecommendationResponse)
async def team_recommendations(
    body: TeamRecommendationRequest,
    user: AuthUser = Depends(get_current_user),
    directory: ProfileDirectory = Depends(get_directory),
    recommender: TeamRecommender = Depends(get_team_recommender),
) -> TeamRecommendationResponse:
    try:
        requester = directory.get_by_id(user.id)
        team, reasoning = await recommender.recommend(
            requester, body.project_idea, body.required_skills, body.team_size
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Profile not found") from exc
    except DependencyFailure as exc:
        logger.error(
            "team_recommendations_failed",
            extra={"profile_id": user.id, "error_message": str(exc)},
        )
        raise HTTPException(status_code=500, detail="Failed to generate team recommendations") from exc

    return TeamRecommendationResponse(
        project_idea=body.project_idea,
        recommended_team=[ProfileSummary.of(p) for p in team],
        team_size=len(team),
        reasoning=reasoning,
    )


@router.post("/{match_id}/respond", response_model=MatchRespondResponse)
async def respond_to_match(
    match_id: str,
    body: MatchRespondRequest,
    user: AuthUser = Depends(get_current_user),
    store: MatchStore = Depends(get_match_store),
) -> MatchRespondResponse:
    status = _ACTION_STATUS[body.action]
    try:
        match = store.set_status(match_id, user.id, status)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Match not found") from exc
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to respond to match") from exc

    return MatchRespondResponse(match=match, message=f"Match {status.value} successfully")
