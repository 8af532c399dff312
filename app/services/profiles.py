"""Participant directory over the ``profiles`` table.

Filtering, free-text search and pagination for both the authenticated and
the public views, plus the write paths a participant owns (self-update and
first sign-in).  Read-only from the matcher's point of view.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any

from supabase import Client

from app.core.constants import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_SEARCH_LIMIT,
    PROFILE_LIST_COLUMNS,
    PROFILE_SUMMARY_COLUMNS,
    PUBLIC_PARTICIPANT_COLUMNS,
)
from app.core.errors import DependencyFailure, NotFoundError
from app.db.supabase import first_row
from app.models.profile import DiscordUser, Profile, ProfileUpdate

logger = logging.getLogger(__name__)

# Characters with meaning inside a PostgREST or=(...) filter or ilike pattern
_SEARCH_UNSAFE = re.compile(r"[,()%*\\:\"]")


def sanitize_search_term(term: str) -> str:
    return _SEARCH_UNSAFE.sub(" ", term).strip()


def _search_filter(term: str, columns: tuple[str, ...]) -> str:
    return ",".join(f"{column}.ilike.%{term}%" for column in columns)


class ProfileDirectory:
    """Queries and owner updates over participant profiles."""

    def __init__(self, client: Client) -> None:
        self._client = client

    # -- single-profile lookups ------------------------------------------------

    def get_by_id(self, profile_id: str) -> Profile:
        try:
            result = (
                self._client.table("profiles")
                .select("*")
                .eq("id", profile_id)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure("Failed to load profile") from exc
        row = first_row(result)
        if row is None:
            raise NotFoundError("Profile not found")
        return Profile.from_row(row)

    def find_by_discord_id(self, discord_id: str) -> Profile | None:
        try:
            result = (
                self._client.table("profiles")
                .select("*")
                .eq("discord_id", discord_id)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure("Failed to load profile") from exc
        row = first_row(result)
        return Profile.from_row(row) if row else None

    def get_by_discord_id(self, discord_id: str) -> Profile:
        profile = self.find_by_discord_id(discord_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    # -- listings ----------------------------------------------------------------

    def list_profiles(
        self,
        skills: list[str] | None = None,
        experience_level: str | None = None,
        team_size_preference: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> tuple[list[dict[str, Any]], int]:
        """Newest-first page of profiles and the total matching count."""
        query = (
            self._client.table("profiles")
            .select(PROFILE_LIST_COLUMNS, count="exact")
            .order("created_at", desc=True)
        )
        if skills:
            query = query.overlaps("skills", skills)
        if experience_level:
            query = query.eq("experience_level", experience_level)
        if team_size_preference:
            query = query.eq("team_size_preference", team_size_preference)
        return self._page(query, limit, offset)

    def list_public(
        self,
        skills: list[str] | None = None,
        experience_level: str | None = None,
        industry: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> tuple[list[dict[str, Any]], int]:
        """Public directory page: no ids, emails or Discord identities."""
        query = (
            self._client.table("profiles")
            .select(PUBLIC_PARTICIPANT_COLUMNS, count="exact")
            .order("created_at", desc=True)
        )
        if skills:
            query = query.overlaps("skills", skills)
        if experience_level:
            query = query.eq("experience_level", experience_level)
        if industry:
            query = query.eq("linkedin_industry", industry)
        return self._page(query, limit, offset)

    def _page(self, query: Any, limit: int, offset: int) -> tuple[list[dict[str, Any]], int]:
        try:
            result = query.range(offset, offset + limit - 1).execute()
        except Exception as exc:
            logger.error("profile_listing_failed", extra={"error_message": str(exc)})
            raise DependencyFailure("Failed to list profiles") from exc
        rows = result.data or []
        total = getattr(result, "count", None)
        return rows, total if isinstance(total, int) else len(rows)

    def search(
        self, term: str, limit: int = DEFAULT_SEARCH_LIMIT, public: bool = False
    ) -> list[dict[str, Any]]:
        """Case-insensitive substring search over name and bio fields."""
        clean = sanitize_search_term(term)
        if not clean:
            return []
        if public:
            columns = ("username", "full_name", "bio", "linkedin_headline")
            select = PUBLIC_PARTICIPANT_COLUMNS
        else:
            columns = ("username", "full_name", "bio")
            select = PROFILE_SUMMARY_COLUMNS
        try:
            result = (
                self._client.table("profiles")
                .select(select)
                .or_(_search_filter(clean, columns))
                .limit(limit)
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure("Search failed") from exc
        return result.data or []

    def by_skill(
        self, skill: str, limit: int = DEFAULT_SEARCH_LIMIT, public: bool = False
    ) -> list[dict[str, Any]]:
        select = PUBLIC_PARTICIPANT_COLUMNS if public else PROFILE_SUMMARY_COLUMNS
        try:
            result = (
                self._client.table("profiles")
                .select(select)
                .contains("skills", [skill])
                .limit(limit)
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure("Failed to get profiles by skill") from exc
        return result.data or []

    def by_industry(self, industry: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[dict[str, Any]]:
        try:
            result = (
                self._client.table("profiles")
                .select(PUBLIC_PARTICIPANT_COLUMNS)
                .eq("linkedin_industry", industry)
                .limit(limit)
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure("Failed to get profiles by industry") from exc
        return result.data or []

    def list_candidates(
        self, exclude_id: str, experience_level: str | None = None
    ) -> list[Profile]:
        """Every profile except ``exclude_id``, optionally one experience level."""
        query = self._client.table("profiles").select("*").neq("id", exclude_id)
        if experience_level:
            query = query.eq("experience_level", experience_level)
        try:
            result = query.execute()
        except Exception as exc:
            logger.error(
                "candidate_listing_failed",
                extra={"requester_id": exclude_id, "error_message": str(exc)},
            )
            raise DependencyFailure("Failed to list candidate profiles") from exc
        return [Profile.from_row(row) for row in (result.data or [])]

    # -- writes ----------------------------------------------------------------

    def update_own(self, discord_id: str, update: ProfileUpdate) -> Profile:
        changes = update.model_dump(mode="json", exclude_unset=True)
        changes["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = (
                self._client.table("profiles")
                .update(changes)
                .eq("discord_id", discord_id)
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure("Failed to update profile") from exc
        row = first_row(result)
        if row is None:
            raise NotFoundError("Profile not found")
        return Profile.from_row(row)

    def upsert_from_discord(self, user: DiscordUser) -> tuple[Profile, bool]:
        """Return the profile for a Discord identity, creating it on first sign-in.

        The second element is True when the profile was just created.
        """
        existing = self.find_by_discord_id(user.id)
        if existing is not None:
            return existing, False

        try:
            result = (
                self._client.table("profiles")
                .insert({
                    "discord_id": user.id,
                    "username": user.username,
                    "email": user.email,
                    "avatar_url": user.avatar_url,
                    "full_name": user.global_name or user.username,
                })
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure("Failed to create profile") from exc
        row = first_row(result)
        if row is None:
            raise DependencyFailure("Profile insert returned no row")
        logger.info("profile_created", extra={"discord_id": user.id})
        return Profile.from_row(row), True
