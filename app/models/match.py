"""Pydantic models for the ``matches`` table and the matching API.

A match is a directed edge requester -> candidate; the reverse direction
is a separate row with its own score and reason.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import (
    DEFAULT_MAX_MATCHES,
    DEFAULT_MIN_SCORE,
    DEFAULT_TEAM_SIZE,
    MAX_MATCHES_LIMIT,
)
from app.models.enums import ExperienceLevel, MatchAction, MatchStatus
from app.models.profile import Profile, ProfileSummary


class MatchOptions(BaseModel):
    """Tuning knobs for a single matching request."""
    max_matches: int = Field(default=DEFAULT_MAX_MATCHES, ge=1, le=MAX_MATCHES_LIMIT)
    min_score: float = Field(default=DEFAULT_MIN_SCORE, ge=0.0, le=1.0)
    skills_focus: list[str] = Field(default_factory=list)
    experience_level: ExperienceLevel | None = None


class MatchCandidate(BaseModel):
    """A scored candidate produced by the match finder (not yet persisted)."""
    profile: Profile
    score: float = Field(ge=0.0, le=1.0)
    reasons: str


class MatchUpsert(BaseModel):
    """Payload for upserting a match (conflict on profile_id, matched_profile_id)."""
    profile_id: str
    matched_profile_id: str
    match_score: float = Field(ge=0.0, le=1.0)
    match_reason: str
    status: MatchStatus | None = None
    created_at: datetime


class Match(BaseModel):
    """Full match record returned from the database."""
    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    profile_id: str
    matched_profile_id: str
    match_score: float
    match_reason: str | None = None
    status: MatchStatus = MatchStatus.pending
    created_at: datetime | None = None


# --- API contracts ---

class MatchResult(BaseModel):
    profile: ProfileSummary
    score: float
    reasons: str


class MatchesResponse(BaseModel):
    """Response for GET /api/matching/ai-matches."""
    matches: list[MatchResult] = []
    total_found: int = 0


class MatchHistoryResponse(BaseModel):
    matches: list[dict[str, Any]] = []


class MatchRespondRequest(BaseModel):
    action: MatchAction


class MatchRespondResponse(BaseModel):
    match: Match
    message: str


class TeamRecommendationRequest(BaseModel):
    project_idea: str = Field(min_length=1, max_length=1000)
    required_skills: list[str] = Field(default_factory=list)
    team_size: int = Field(default=DEFAULT_TEAM_SIZE, ge=2, le=10)


class TeamRecommendationResponse(BaseModel):
    project_idea: str
    recommended_team: list[ProfileSummary] = []
    team_size: int = 0
    reasoning: str
