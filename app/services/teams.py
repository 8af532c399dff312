"""Teams and team membership (``teams`` / ``team_members``).

A profile joins a team at most once (UNIQUE(team_id, profile_id)).  Joins go
through the ``join_team`` database function, which flips the team to ``full``
when ``current_members`` reaches ``max_members``.
"""

from __future__ import annotations

import logging

from postgrest.exceptions import APIError
from supabase import Client

from app.core.errors import ConflictError, DependencyFailure, NotFoundError
from app.db.supabase import first_row
from app.models.enums import TeamStatus
from app.models.team import Team, TeamCreate, TeamDetail, TeamMember

logger = logging.getLogger(__name__)

OWNER_ROLE = "owner"

# SQLSTATE codes raised by the join_team function
UNIQUE_VIOLATION = "23505"
CHECK_VIOLATION = "23514"
NO_DATA_FOUND = "P0002"


class TeamRegistry:
    def __init__(self, client: Client) -> None:
        self._client = client

    def create_team(self, owner_id: str, payload: TeamCreate) -> TeamDetail:
        try:
            result = (
                self._client.table("teams")
                .insert({
                    **payload.model_dump(mode="json"),
                    "created_by": owner_id,
                    "current_members": 0,
                    "status": TeamStatus.open.value,
                })
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure("Failed to create team") from exc
        row = first_row(result)
        if row is None:
            raise DependencyFailure("Team insert returned no row")

        team = Team(**row)
        self.join_team(team.id, owner_id, role=OWNER_ROLE)
        return self.get_team(team.id)

    def get_team(self, team_id: str) -> TeamDetail:
        try:
            team_result = self._client.table("teams").select("*").eq("id", team_id).limit(1).execute()
            row = first_row(team_result)
            if row is None:
                raise NotFoundError("Team not found")
            members_result = (
                self._client.table("team_members")
                .select("*")
                .eq("team_id", team_id)
                .order("joined_at")
                .execute()
            )
        except NotFoundError:
            raise
        except Exception as exc:
            raise DependencyFailure("Failed to load team") from exc
        return TeamDetail(
            team=Team(**row),
            members=[TeamMember(**m) for m in (members_result.data or [])],
        )

    def list_open_teams(self) -> list[Team]:
        try:
            result = (
                self._client.table("teams")
                .select("*")
                .eq("status", TeamStatus.open.value)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure("Failed to list teams") from exc
        return [Team(**row) for row in (result.data or [])]

    def join_team(self, team_id: str, profile_id: str, role: str | None = None) -> TeamMember:
        """Add a member through the ``join_team`` database function.

        The function locks the team row, so the capacity check, membership
        insert and counter update commit together or not at all.
        """
        try:
            result = self._client.rpc(
                "join_team",
                {"p_team_id": team_id, "p_profile_id": profile_id, "p_role": role},
            ).execute()
        except APIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise ConflictError("Already a member of this team") from exc
            if exc.code == CHECK_VIOLATION:
                raise ConflictError("Team is not accepting members") from exc
            if exc.code == NO_DATA_FOUND:
                raise NotFoundError("Team not found") from exc
            raise DependencyFailure("Failed to join team") from exc
        except Exception as exc:
            raise DependencyFailure("Failed to join team") from exc

        row = first_row(result)
        if row is None:
            raise DependencyFailure("Team membership insert returned no row")
        logger.info("team_joined", extra={"team_id": team_id, "profile_id": profile_id})
        return TeamMember(**row)
