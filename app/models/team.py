"""Pydantic models for teams, team membership and Discord provisioning."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import NotificationType, TeamStatus


class TeamCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    project_idea: str | None = None
    required_skills: list[str] = Field(default_factory=list)
    max_members: int = Field(default=4, ge=2, le=10)


class Team(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    name: str
    description: str | None = None
    project_idea: str | None = None
    required_skills: list[str] = Field(default_factory=list)
    max_members: int = 4
    current_members: int = 0
    status: TeamStatus = TeamStatus.open
    created_by: str | None = None
    created_at: datetime | None = None


class TeamMember(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str | None = None
    team_id: str
    profile_id: str
    role: str | None = None
    joined_at: datetime | None = None


class TeamDetail(BaseModel):
    team: Team
    members: list[TeamMember] = []


class TeamJoinRequest(BaseModel):
    role: str | None = Field(default=None, max_length=100)


# --- Discord provisioning ---

class TeamChannelRequest(BaseModel):
    """Request body for POST /api/discord/create-team-channel."""
    team_name: str = Field(min_length=1, max_length=100)
    team_description: str | None = Field(default=None, max_length=500)
    member_discord_ids: list[str] = Field(min_length=2, max_length=10)
    project_idea: str | None = Field(default=None, max_length=1000)
    team_id: str | None = None


class MatchChannelRequest(BaseModel):
    matched_user_discord_id: str
    match_reason: str | None = None


class NotificationRequest(BaseModel):
    discord_id: str = Field(min_length=1)
    message: str = Field(min_length=1, max_length=4000)
    type: NotificationType = NotificationType.info


class ChannelRef(BaseModel):
    id: str
    name: str
    url: str


class TeamSpace(BaseModel):
    text_channel: ChannelRef
    voice_channel: ChannelRef


class CreatedMatchChannel(BaseModel):
    match_id: str
    channel_id: str
    channel_name: str
