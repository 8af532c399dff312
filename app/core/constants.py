"""Application constants.

Contains the experience scale, fallback-heuristic weights, default limits
and the static sentences used when the LLM is unavailable.
"""

# ---------------------------------------------------------------------------
# Experience scale (ordered, lowest first)
# ---------------------------------------------------------------------------
EXPERIENCE_LEVELS: list[str] = ["beginner", "intermediate", "advanced", "expert"]

# ---------------------------------------------------------------------------
# Fallback heuristic weights
# ---------------------------------------------------------------------------
FALLBACK_BASE_SCORE: float = 0.5
FALLBACK_SKILL_WEIGHT: float = 0.2
FALLBACK_EXPERIENCE_WEIGHT: float = 0.15
FALLBACK_TEAM_SIZE_WEIGHT: float = 0.15

# ---------------------------------------------------------------------------
# Matching defaults
# ---------------------------------------------------------------------------
DEFAULT_MAX_MATCHES: int = 5
MAX_MATCHES_LIMIT: int = 10
DEFAULT_MIN_SCORE: float = 0.7
DEFAULT_TEAM_SIZE: int = 4

# LLM generation parameters
SCORE_TEMPERATURE: float = 0.3
SCORE_MAX_TOKENS: int = 10
REASON_TEMPERATURE: float = 0.7
REASON_MAX_TOKENS: int = 150
TEAM_PICK_MAX_TOKENS: int = 500
TEAM_REASON_MAX_TOKENS: int = 200

NOT_SPECIFIED: str = "Not specified"

DEFAULT_MATCH_REASON: str = (
    "Great potential for collaboration based on complementary skills and interests."
)
DEFAULT_TEAM_REASON: str = (
    "This team has complementary skills that would work well together for the project."
)

# ---------------------------------------------------------------------------
# Directory pagination
# ---------------------------------------------------------------------------
DEFAULT_PAGE_SIZE: int = 50
DEFAULT_SEARCH_LIMIT: int = 20
MAX_PAGE_SIZE: int = 100
TOP_SKILLS_LIMIT: int = 10
RECENT_JOINERS_LIMIT: int = 5

# Column sets returned by directory queries
PROFILE_SUMMARY_COLUMNS: str = (
    "id, username, full_name, avatar_url, bio, skills, experience_level"
)
PROFILE_LIST_COLUMNS: str = (
    "id, username, full_name, avatar_url, bio, skills, experience_level, "
    "team_size_preference, created_at"
)
PUBLIC_PARTICIPANT_COLUMNS: str = (
    "username, full_name, avatar_url, bio, skills, experience_level, "
    "team_size_preference, linkedin_headline, linkedin_industry, created_at"
)

# ---------------------------------------------------------------------------
# Discord
# ---------------------------------------------------------------------------
NOTIFICATION_STYLES: dict[str, tuple[int, str]] = {
    "info": (0x0099FF, "ℹ️ Information"),
    "success": (0x00FF00, "✅ Success"),
    "warning": (0xFFAA00, "⚠️ Warning"),
    "error": (0xFF0000, "❌ Error"),
}
NOTIFICATION_FOOTER: str = "Hackathon Matching API"
