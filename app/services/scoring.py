"""Pairwise compatibility scoring and match explanations.

``ScoreEstimator`` asks the LLM for a single number and falls back to
``calculate_fallback_score`` (a pure heuristic) whenever the call fails,
times out, or returns something that is not a number.  ``ReasonGenerator``
asks for a short justification and falls back to a fixed sentence.
Neither component retries, and neither lets an LLM failure escape.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Iterable

from app.core.constants import (
    DEFAULT_MATCH_REASON,
    EXPERIENCE_LEVELS,
    FALLBACK_BASE_SCORE,
    FALLBACK_EXPERIENCE_WEIGHT,
    FALLBACK_SKILL_WEIGHT,
    FALLBACK_TEAM_SIZE_WEIGHT,
    NOT_SPECIFIED,
    REASON_MAX_TOKENS,
    REASON_TEMPERATURE,
    SCORE_MAX_TOKENS,
    SCORE_TEMPERATURE,
)
from app.core.errors import ExternalServiceError
from app.models.profile import Profile
from app.services.llm import CompletionClient

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.\d*|\.\d+|\d+)")


def clamp_score(value: float) -> float:
    return max(0.0, min(1.0, value))


def _enum_value(value: object) -> str | None:
    if value is None:
        return None
    return getattr(value, "value", value)  # type: ignore[return-value]


def calculate_fallback_score(profile1: Profile, profile2: Profile) -> float:
    """Deterministic compatibility score in [0, 1].

    base 0.5
      + 0.2  * |skills1 & skills2| / max(|skills1|, |skills2|, 1)
      + 0.15 * (1 - level_distance / 3)   (only when both levels are known)
      + 0.15 if team-size preferences are equal
    """
    score = FALLBACK_BASE_SCORE

    skills1 = set(profile1.skills)
    skills2 = set(profile2.skills)
    overlap = len(skills1 & skills2)
    overlap_ratio = min(overlap / max(len(skills1), len(skills2), 1), 1.0)
    score += overlap_ratio * FALLBACK_SKILL_WEIGHT

    level1 = _enum_value(profile1.experience_level)
    level2 = _enum_value(profile2.experience_level)
    if level1 in EXPERIENCE_LEVELS and level2 in EXPERIENCE_LEVELS:
        distance = abs(EXPERIENCE_LEVELS.index(level1) - EXPERIENCE_LEVELS.index(level2))
        max_distance = len(EXPERIENCE_LEVELS) - 1
        score += (1 - distance / max_distance) * FALLBACK_EXPERIENCE_WEIGHT

    if profile1.team_size_preference == profile2.team_size_preference:
        score += FALLBACK_TEAM_SIZE_WEIGHT

    return clamp_score(score)


def parse_score(text: str) -> float:
    """Extract the first number in an LLM reply and clamp it into [0, 1].

    Raises ``ExternalServiceError`` when there is no number at all.
    """
    found = _NUMBER_RE.search(text or "")
    if found is None:
        raise ExternalServiceError(f"Non-numeric score response: {text!r}")
    return clamp_score(float(found.group(0)))


def _join(values: Iterable[str] | None) -> str:
    joined = ", ".join(values or [])
    return joined or NOT_SPECIFIED


def _describe(profile: Profile) -> str:
    return (
        f"- Skills: {_join(profile.skills)}\n"
        f"- Interests: {_join(profile.interests)}\n"
        f"- Experience Level: {_enum_value(profile.experience_level) or NOT_SPECIFIED}\n"
        f"- Bio: {profile.bio or NOT_SPECIFIED}\n"
        f"- Team Size Preference: {_enum_value(profile.team_size_preference) or NOT_SPECIFIED}"
    )


def build_score_prompt(
    profile1: Profile, profile2: Profile, focus_skills: Iterable[str]
) -> str:
    return (
        "Analyze the compatibility between two hackathon participants and "
        "provide a match score from 0.0 to 1.0.\n\n"
        f"Participant 1:\n{_describe(profile1)}\n\n"
        f"Participant 2:\n{_describe(profile2)}\n\n"
        f"Skills Focus Areas: {_join(list(focus_skills))}\n\n"
        "Consider:\n"
        "1. Skill complementarity (different but complementary skills)\n"
        "2. Shared interests and project alignment\n"
        "3. Experience level compatibility\n"
        "4. Team size preferences\n"
        "5. Communication style compatibility\n\n"
        "Return only a number between 0.0 and 1.0 representing the match score."
    )


def build_reason_prompt(profile1: Profile, profile2: Profile) -> str:
    return (
        "Explain why these two hackathon participants would make a great team "
        "in 2-3 concise sentences.\n\n"
        f"Participant 1: {profile1.username}\n"
        f"- Skills: {_join(profile1.skills)}\n"
        f"- Bio: {profile1.bio or NOT_SPECIFIED}\n\n"
        f"Participant 2: {profile2.username}\n"
        f"- Skills: {_join(profile2.skills)}\n"
        f"- Bio: {profile2.bio or NOT_SPECIFIED}\n\n"
        "Focus on skill complementarity, shared interests, and potential "
        "project synergies."
    )


class ScoreEstimator:
    """LLM-backed compatibility score with a heuristic fallback."""

    def __init__(self, llm: CompletionClient, timeout: float | None = None) -> None:
        self._llm = llm
        self._timeout = timeout

    async def estimate(
        self,
        requester: Profile,
        candidate: Profile,
        focus_skills: Iterable[str] = (),
    ) -> float:
        prompt = build_score_prompt(requester, candidate, focus_skills)
        try:
            reply = await asyncio.wait_for(
                self._llm.complete(
                    prompt,
                    temperature=SCORE_TEMPERATURE,
                    max_tokens=SCORE_MAX_TOKENS,
                ),
                timeout=self._timeout,
            )
            return parse_score(reply)
        except (ExternalServiceError, asyncio.TimeoutError) as exc:
            score = calculate_fallback_score(requester, candidate)
            logger.warning(
                "score_estimate_fallback",
                extra={
                    "requester_id": requester.id,
                    "candidate_id": candidate.id,
                    "error_type": type(exc).__name__,
                    "fallback_score": score,
                },
            )
            return score


class ReasonGenerator:
    """Short natural-language justification for a match."""

    def __init__(self, llm: CompletionClient, timeout: float | None = None) -> None:
        self._llm = llm
        self._timeout = timeout

    async def explain(self, requester: Profile, candidate: Profile) -> str:
        try:
            reply = await asyncio.wait_for(
                self._llm.complete(
                    build_reason_prompt(requester, candidate),
                    temperature=REASON_TEMPERATURE,
                    max_tokens=REASON_MAX_TOKENS,
                ),
                timeout=self._timeout,
            )
        except (ExternalServiceError, asyncio.TimeoutError) as exc:
            logger.warning(
                "match_reason_fallback",
                extra={
                    "requester_id": requester.id,
                    "candidate_id": candidate.id,
                    "error_type": type(exc).__name__,
                },
            )
            return DEFAULT_MATCH_REASON
        return reply or DEFAULT_MATCH_REASON
