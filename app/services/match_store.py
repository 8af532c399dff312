"""Persistence for computed matches (``matches`` table).

Rows are unique on (profile_id, matched_profile_id); recomputing a match
upserts in place.  Ownership-scoped lookups return ``NotFoundError`` for
rows that belong to somebody else, exactly as for rows that do not exist.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from supabase import Client

from app.core.errors import DependencyFailure, NotFoundError
from app.db.supabase import first_row
from app.models.enums import MatchStatus
from app.models.match import Match, MatchUpsert

logger = logging.getLogger(__name__)

MATCH_CONFLICT_COLUMNS = "profile_id,matched_profile_id"

_HISTORY_SELECT = (
    "*, matched_profile:profiles!matches_matched_profile_id_fkey("
    "id, username, full_name, avatar_url, bio, skills, experience_level)"
)
_ACCEPTED_SELECT = (
    "*, profile:profiles!matches_profile_id_fkey(discord_id, username), "
    "matched_profile:profiles!matches_matched_profile_id_fkey(discord_id, username)"
)


class MatchStore:
    """Match rows keyed by the ordered (requester, candidate) pair."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def upsert(
        self,
        requester_id: str,
        candidate_id: str,
        score: float,
        reason: str,
        status: MatchStatus | None = None,
    ) -> Match:
        """Insert or overwrite the match for this pair.

        When ``status`` is None the column is left out of the payload, so a
        new row gets the ``pending`` default and an existing row keeps the
        decision its owner already made.
        """
        payload = MatchUpsert(
            profile_id=requester_id,
            matched_profile_id=candidate_id,
            match_score=score,
            match_reason=reason,
            status=status,
            created_at=datetime.now(timezone.utc),
        ).model_dump(mode="json", exclude_none=True)

        try:
            result = (
                self._client.table("matches")
                .upsert(payload, on_conflict=MATCH_CONFLICT_COLUMNS)
                .execute()
            )
        except Exception as exc:
            logger.error(
                "match_upsert_failed",
                extra={
                    "profile_id": requester_id,
                    "matched_profile_id": candidate_id,
                    "error_message": str(exc),
                },
            )
            raise DependencyFailure("Failed to persist match") from exc

        row = first_row(result)
        if row is None:
            raise DependencyFailure("Match upsert returned no row")
        return Match(**row)

    def list_for_requester(self, requester_id: str) -> list[dict[str, Any]]:
        """Return the requester's matches, newest first, with candidate summary."""
        try:
            result = (
                self._client.table("matches")
                .select(_HISTORY_SELECT)
                .eq("profile_id", requester_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure("Failed to load match history") from exc
        return result.data or []

    def set_status(
        self, match_id: str, requester_id: str, status: MatchStatus
    ) -> Match:
        """Record the requester's accept/reject decision."""
        if status not in (MatchStatus.accepted, MatchStatus.rejected):
            raise ValueError(f"Cannot set match status to {status.value!r}")

        try:
            result = (
                self._client.table("matches")
                .update({"status": status.value})
                .eq("id", match_id)
                .eq("profile_id", requester_id)
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure("Failed to update match") from exc

        row = first_row(result)
        if row is None:
            raise NotFoundError("Match not found")
        return Match(**row)

    def list_accepted(self) -> list[dict[str, Any]]:
        """Accepted matches with both participants' Discord identities."""
        try:
            result = (
                self._client.table("matches")
                .select(_ACCEPTED_SELECT)
                .eq("status", MatchStatus.accepted.value)
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure("Failed to load accepted matches") from exc
        return result.data or []
