"""Domain exception hierarchy.

Services raise these; routers translate them into ``HTTPException`` with
the matching status code. ``NotFoundError`` is also used for resources
that exist but belong to another participant, so callers cannot probe for
other people's rows.
"""


class AppError(Exception):
    """Base class for all application errors."""


class NotFoundError(AppError):
    """Resource missing, or not visible to the caller."""


class UnauthorizedError(AppError):
    """Missing, invalid, revoked or expired credential."""


class TokenExpiredError(UnauthorizedError):
    """Session token signature is valid but its expiry has passed."""


class MalformedTokenError(UnauthorizedError):
    """Session token could not be decoded or verified."""


class PermissionDeniedError(AppError):
    """Credential is valid but lacks the required scope."""


class ConflictError(AppError):
    """Write rejected because of a uniqueness or capacity rule."""


class DependencyFailure(AppError):
    """Datastore or Discord call failed; the request must be aborted."""


class ExternalServiceError(AppError):
    """LLM call failed or returned something unusable.

    Never surfaced to API callers: scoring and reasoning substitute a
    fallback when they see it.
    """
