"""AI match finding and team recommendations.

``MatchFinder.find_matches`` scores every candidate, keeps those at or
above ``min_score``, explains each kept candidate once, then ranks by
score (ties keep candidate order) and truncates to ``max_matches``.
Scoring calls run concurrently but never more than ``max_concurrency`` at
a time; the ranking depends only on scores, not on completion order.

``MatchFinder.run`` wraps that with the directory read and the match
upserts.  Datastore errors abort the request; upserts that already
happened stay in place.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence

from app.core.config import settings
from app.core.constants import (
    DEFAULT_TEAM_REASON,
    NOT_SPECIFIED,
    REASON_TEMPERATURE,
    TEAM_PICK_MAX_TOKENS,
    TEAM_REASON_MAX_TOKENS,
)
from app.core.errors import ExternalServiceError
from app.models.enums import MatchStatus
from app.models.match import MatchCandidate, MatchOptions
from app.models.profile import Profile
from app.services.llm import CompletionClient, strip_code_fence
from app.services.match_store import MatchStore
from app.services.profiles import ProfileDirectory
from app.services.scoring import (
    ReasonGenerator,
    ScoreEstimator,
    calculate_fallback_score,
)

logger = logging.getLogger(__name__)


class MatchFinder:
    """Ranks candidates for a requester and records the results."""

    def __init__(
        self,
        estimator: ScoreEstimator,
        reasoner: ReasonGenerator,
        store: MatchStore | None = None,
        directory: ProfileDirectory | None = None,
        max_concurrency: int | None = None,
        reset_status_on_recompute: bool | None = None,
    ) -> None:
        self._estimator = estimator
        self._reasoner = reasoner
        self._store = store
        self._directory = directory
        self._max_concurrency = max(1, max_concurrency or settings.MATCHING_MAX_CONCURRENCY)
        if reset_status_on_recompute is None:
            reset_status_on_recompute = settings.MATCH_RECOMPUTE_RESETS_STATUS
        self._reset_status = reset_status_on_recompute

    async def find_matches(
        self,
        requester: Profile,
        candidates: Sequence[Profile],
        options: MatchOptions | None = None,
    ) -> list[MatchCandidate]:
        options = options or MatchOptions()
        pool = [c for c in candidates if c.id != requester.id]
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _evaluate(candidate: Profile) -> MatchCandidate | None:
            async with semaphore:
                score = await self._estimator.estimate(
                    requester, candidate, options.skills_focus
                )
                if score < options.min_score:
                    return None
                reasons = await self._reasoner.explain(requester, candidate)
            return MatchCandidate(profile=candidate, score=score, reasons=reasons)

        # gather preserves input order, so sorted() keeps ties stable
        evaluated = await asyncio.gather(*(_evaluate(c) for c in pool))
        passing = [m for m in evaluated if m is not None]
        ranked = sorted(passing, key=lambda m: m.score, reverse=True)

        logger.info(
            "find_matches_completed",
            extra={
                "requester_id": requester.id,
                "candidates_scored": len(pool),
                "above_threshold": len(passing),
                "returned": min(len(ranked), options.max_matches),
            },
        )
        return ranked[: options.max_matches]

    async def run(
        self, requester: Profile, options: MatchOptions | None = None
    ) -> list[MatchCandidate]:
        """List candidates, find matches and upsert them for the requester."""
        if self._store is None or self._directory is None:
            raise RuntimeError("MatchFinder.run needs a store and a directory")
        options = options or MatchOptions()

        level = options.experience_level.value if options.experience_level else None
        candidates = self._directory.list_candidates(requester.id, experience_level=level)
        matches = await self.find_matches(requester, candidates, options)

        status = MatchStatus.pending if self._reset_status else None
        for match in matches:
            self._store.upsert(
                requester.id,
                match.profile.id,
                match.score,
                match.reasons,
                status=status,
            )
        return matches


# ---------------------------------------------------------------------------
# Team recommendations
# ---------------------------------------------------------------------------


def _participant_line(profile: Profile) -> str:
    skills = ", ".join(profile.skills) or "No skills specified"
    return f"{profile.username}: {skills} - {profile.bio or 'No bio'}"


def _skill_coverage(profile: Profile, required: set[str]) -> int:
    return len(required & {s.lower() for s in profile.skills})


def _heuristic_team(
    requester: Profile,
    candidates: Sequence[Profile],
    required_skills: Sequence[str],
    team_size: int,
) -> list[Profile]:
    required = {s.lower() for s in required_skills}
    ranked = sorted(
        candidates,
        key=lambda p: (
            _skill_coverage(p, required),
            calculate_fallback_score(requester, p),
        ),
        reverse=True,
    )
    return ranked[:team_size]


class TeamRecommender:
    """Suggests a team for a project idea from the participant pool."""

    def __init__(self, llm: CompletionClient, directory: ProfileDirectory) -> None:
        self._llm = llm
        self._directory = directory

    async def recommend(
        self,
        requester: Profile,
        project_idea: str,
        required_skills: Sequence[str],
        team_size: int,
    ) -> tuple[list[Profile], str]:
        candidates = self._directory.list_candidates(requester.id)
        try:
            team = await self._pick_with_llm(
                candidates, project_idea, required_skills, team_size
            )
        except ExternalServiceError as exc:
            logger.warning(
                "team_recommendation_fallback",
                extra={"requester_id": requester.id, "error_message": str(exc)},
            )
            team = _heuristic_team(requester, candidates, required_skills, team_size)

        reasoning = await self._team_reasoning(project_idea, team)
        return team, reasoning

    async def _pick_with_llm(
        self,
        candidates: Sequence[Profile],
        project_idea: str,
        required_skills: Sequence[str],
        team_size: int,
    ) -> list[Profile]:
        if not candidates:
            return []
        prompt = (
            "Given this hackathon project idea and required skills, recommend the "
            "best team composition from these participants.\n\n"
            f"Project Idea: {project_idea}\n"
            f"Required Skills: {', '.join(required_skills) or NOT_SPECIFIED}\n"
            f"Team Size: {team_size} people\n\n"
            "Available Participants:\n"
            + "\n".join(_participant_line(p) for p in candidates)
            + f"\n\nReturn a JSON array of {team_size} participant usernames that "
            "would work best together for this project. Consider skill "
            "complementarity, experience levels, and team dynamics."
        )
        reply = await self._llm.complete(
            prompt, temperature=REASON_TEMPERATURE, max_tokens=TEAM_PICK_MAX_TOKENS
        )
        try:
            usernames = json.loads(strip_code_fence(reply))
        except json.JSONDecodeError as exc:
            raise ExternalServiceError("Team pick was not valid JSON") from exc
        if not isinstance(usernames, list):
            raise ExternalServiceError("Team pick was not a JSON array")

        wanted = {str(u) for u in usernames}
        team = [p for p in candidates if p.username in wanted][:team_size]
        if not team:
            raise ExternalServiceError("Team pick named no known participants")
        return team

    async def _team_reasoning(self, project_idea: str, team: Sequence[Profile]) -> str:
        if not team:
            return DEFAULT_TEAM_REASON
        prompt = (
            "Explain why this team composition would be excellent for this "
            "hackathon project.\n\n"
            f"Project: {project_idea}\n\n"
            "Team Members:\n"
            + "\n".join(_participant_line(p) for p in team)
            + "\n\nProvide 2-3 sentences explaining the team's strengths and how "
            "they complement each other."
        )
        try:
            reply = await self._llm.complete(
                prompt, temperature=REASON_TEMPERATURE, max_tokens=TEAM_REASON_MAX_TOKENS
            )
        except ExternalServiceError:
            return DEFAULT_TEAM_REASON
        return reply or DEFAULT_TEAM_REASON
