"""Pydantic models for the ``profiles`` table.

One row per Discord identity (``discord_id`` is UNIQUE).  LinkedIn fields
are imported provenance and are populated independently of each other.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import ExperienceLevel, TeamSizePreference


class Profile(BaseModel):
    """Full profile record returned from the database."""
    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    discord_id: str | None = None
    username: str
    email: str | None = None
    full_name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    skills: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    experience_level: ExperienceLevel | None = None
    team_size_preference: TeamSizePreference | None = None
    github_url: str | None = None
    linkedin_url: str | None = None
    portfolio_url: str | None = None
    timezone: str | None = None
    availability: dict[str, Any] | None = None
    project_preferences: dict[str, Any] | None = None
    communication_preferences: dict[str, Any] | None = None

    # LinkedIn provenance
    linkedin_headline: str | None = None
    linkedin_industry: str | None = None
    linkedin_position: str | None = None
    linkedin_experience: list[dict[str, Any]] | None = None
    linkedin_education: list[dict[str, Any]] | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Profile":
        """Build a Profile from a raw row, treating NULL arrays as empty."""
        data = dict(row)
        data["skills"] = data.get("skills") or []
        data["interests"] = data.get("interests") or []
        return cls(**data)


class ProfileSummary(BaseModel):
    """Subset of profile fields embedded in match responses."""
    id: str
    username: str
    full_name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    skills: list[str] = Field(default_factory=list)
    experience_level: ExperienceLevel | None = None

    @classmethod
    def of(cls, profile: Profile) -> "ProfileSummary":
        return cls(
            id=profile.id,
            username=profile.username,
            full_name=profile.full_name,
            avatar_url=profile.avatar_url,
            bio=profile.bio,
            skills=profile.skills,
            experience_level=profile.experience_level,
        )


class ProfileUpdate(BaseModel):
    """Fields a participant may change on their own profile."""
    model_config = ConfigDict(extra="forbid")

    bio: str | None = Field(default=None, max_length=500)
    skills: list[str] | None = None
    interests: list[str] | None = None
    experience_level: ExperienceLevel | None = None
    github_url: str | None = None
    linkedin_url: str | None = None
    portfolio_url: str | None = None
    timezone: str | None = None
    availability: dict[str, Any] | None = None
    project_preferences: dict[str, Any] | None = None
    team_size_preference: TeamSizePreference | None = None
    communication_preferences: dict[str, Any] | None = None


class DiscordUser(BaseModel):
    """User payload returned by Discord's ``/users/@me``."""
    model_config = ConfigDict(extra="ignore")

    id: str
    username: str
    email: str | None = None
    avatar: str | None = None
    global_name: str | None = None

    @property
    def avatar_url(self) -> str | None:
        if not self.avatar:
            return None
        return f"https://cdn.discordapp.com/avatars/{self.id}/{self.avatar}.png"


class Pagination(BaseModel):
    limit: int
    offset: int
    total: int
