"""Directory aggregates for the stats endpoints.

PostgREST has no GROUP BY, so the distributions are counted in Python over
single-column selects.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any

from supabase import Client

from app.core.constants import RECENT_JOINERS_LIMIT, TOP_SKILLS_LIMIT
from app.core.errors import DependencyFailure

logger = logging.getLogger(__name__)

NOT_SPECIFIED_KEY = "not_specified"


def _column(client: Client, column: str) -> list[dict[str, Any]]:
    try:
        result = client.table("profiles").select(column).execute()
    except Exception as exc:
        logger.error("stats_query_failed", extra={"column": column, "error_message": str(exc)})
        raise DependencyFailure("Failed to get statistics") from exc
    return result.data or []


def distribution(rows: list[dict[str, Any]], column: str) -> dict[str, int]:
    """Count values of ``column``; missing values are counted as ``not_specified``."""
    return dict(Counter(row.get(column) or NOT_SPECIFIED_KEY for row in rows))


def skill_counts(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    counts: Counter[str] = Counter()
    for row in rows:
        counts.update(row.get("skills") or [])
    return [{"skill": skill, "count": count} for skill, count in counts.most_common()]


def get_skills(client: Client) -> list[dict[str, Any]]:
    return skill_counts(_column(client, "skills"))


def get_industries(client: Client) -> list[dict[str, Any]]:
    counts = Counter(
        row["linkedin_industry"]
        for row in _column(client, "linkedin_industry")
        if row.get("linkedin_industry")
    )
    return [{"industry": name, "count": count} for name, count in counts.most_common()]


def get_experience_levels(client: Client) -> list[dict[str, Any]]:
    counts = distribution(_column(client, "experience_level"), "experience_level")
    levels = [{"level": level, "count": count} for level, count in counts.items()]
    return sorted(levels, key=lambda item: item["count"], reverse=True)


def get_profile_overview(client: Client) -> dict[str, Any]:
    """Totals, experience distribution and top skills."""
    rows = _column(client, "experience_level, skills")
    return {
        "total_profiles": len(rows),
        "experience_distribution": distribution(rows, "experience_level"),
        "top_skills": skill_counts(rows)[:TOP_SKILLS_LIMIT],
    }


def get_public_stats(client: Client) -> dict[str, Any]:
    rows = _column(client, "experience_level, skills, team_size_preference, linkedin_industry")
    try:
        recent = (
            client.table("profiles")
            .select("username, created_at")
            .order("created_at", desc=True)
            .limit(RECENT_JOINERS_LIMIT)
            .execute()
        )
    except Exception as exc:
        raise DependencyFailure("Failed to get statistics") from exc

    return {
        "hackathon_stats": {
            "total_participants": len(rows),
            "experience_distribution": distribution(rows, "experience_level"),
            "top_skills": skill_counts(rows)[:TOP_SKILLS_LIMIT],
            "team_size_preferences": distribution(rows, "team_size_preference"),
            "industry_distribution": distribution(rows, "linkedin_industry"),
            "recent_joiners": recent.data or [],
        },
        "last_updated": datetime.now(timezone.utc).isoformat(),
    }
