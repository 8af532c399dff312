"""Enum types mirroring the column domains in sql/schema.sql."""

from enum import Enum


class ExperienceLevel(str, Enum):
    """Self-reported experience, ordered lowest first."""
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"
    expert = "expert"


class TeamSizePreference(str, Enum):
    """Preferred team size bucket."""
    small = "2-3"
    medium = "4-5"
    large = "6+"


class MatchStatus(str, Enum):
    """Requester's decision on a match."""
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


class MatchAction(str, Enum):
    """Action accepted by POST /matching/{id}/respond."""
    accept = "accept"
    reject = "reject"


class ApiKeyPermission(str, Enum):
    """API key scope. ``admin`` implies every other scope."""
    read = "read"
    write = "write"
    admin = "admin"


class TeamStatus(str, Enum):
    """Team recruitment status."""
    open = "open"
    full = "full"
    closed = "closed"


class ChannelKind(str, Enum):
    """Purpose of a provisioned Discord channel."""
    team = "team"
    match = "match"


class NotificationType(str, Enum):
    """Styling of a direct-message notification."""
    info = "info"
    success = "success"
    warning = "warning"
    error = "error"
