"""FastAPI dependency providers.

Service objects are built per request from the process-wide clients so
routes receive them explicitly and tests can override them through
``app.dependency_overrides``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import Depends, Header, HTTPException
from supabase import Client

from app.core.config import settings
from app.core.errors import DependencyFailure, PermissionDeniedError, UnauthorizedError
from app.db.supabase import get_supabase
from app.models.api_key import ApiKeyContext
from app.models.auth import AuthUser
from app.models.enums import ApiKeyPermission
from app.services.api_keys import ApiKeyAuthority, ensure_permission
from app.services.discord_gateway import DiscordGateway
from app.services.discord_oauth import DiscordOAuthClient
from app.services.llm import CompletionClient
from app.services.match_store import MatchStore
from app.services.matching import MatchFinder, TeamRecommender
from app.services.profiles import ProfileDirectory
from app.services.scoring import ReasonGenerator, ScoreEstimator
from app.services.sessions import SessionAuthority
from app.services.team_channels import TeamChannelProvisioner
from app.services.teams import TeamRegistry

logger = logging.getLogger(__name__)


def get_db() -> Client:
    return get_supabase()


def get_directory(db: Client = Depends(get_db)) -> ProfileDirectory:
    return ProfileDirectory(db)


def get_match_store(db: Client = Depends(get_db)) -> MatchStore:
    return MatchStore(db)


def get_llm() -> CompletionClient:
    return CompletionClient()


def get_match_finder(
    llm: CompletionClient = Depends(get_llm),
    store: MatchStore = Depends(get_match_store),
    directory: ProfileDirectory = Depends(get_directory),
) -> MatchFinder:
    timeout = settings.LLM_TIMEOUT_SECONDS
    return MatchFinder(
        estimator=ScoreEstimator(llm, timeout=timeout),
        reasoner=ReasonGenerator(llm, timeout=timeout),
        store=store,
        directory=directory,
    )


def get_team_recommender(
    llm: CompletionClient = Depends(get_llm),
    directory: ProfileDirectory = Depends(get_directory),
) -> TeamRecommender:
    return TeamRecommender(llm, directory)


def get_api_key_authority(db: Client = Depends(get_db)) -> ApiKeyAuthority:
    return ApiKeyAuthority(db)


def get_session_authority() -> SessionAuthority:
    return SessionAuthority()


def get_oauth_client() -> DiscordOAuthClient:
    return DiscordOAuthClient()


def get_provisioner(
    db: Client = Depends(get_db),
    store: MatchStore = Depends(get_match_store),
) -> TeamChannelProvisioner:
    return TeamChannelProvisioner(DiscordGateway(), db, store)


def get_team_registry(db: Client = Depends(get_db)) -> TeamRegistry:
    return TeamRegistry(db)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


def _bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def get_current_user(
    authorization: str | None = Header(default=None),
    sessions: SessionAuthority = Depends(get_session_authority),
    directory: ProfileDirectory = Depends(get_directory),
) -> AuthUser:
    """Session-token auth for participant-scoped routes."""
    token = _bearer(authorization)
    if token is None:
        raise HTTPException(status_code=401, detail="Access token required")
    try:
        return sessions.authenticate(token, directory)
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except DependencyFailure as exc:
        logger.error("session_auth_failed", extra={"error_message": str(exc)})
        raise HTTPException(status_code=500, detail="Authentication error") from exc


def require_api_key(
    x_api_key: str | None = Header(default=None),
    authorization: str | None = Header(default=None),
    authority: ApiKeyAuthority = Depends(get_api_key_authority),
) -> ApiKeyContext:
    """API-key auth via ``X-API-Key`` or ``Authorization: Bearer``."""
    secret = x_api_key or _bearer(authorization)
    if not secret:
        raise HTTPException(status_code=401, detail="API key required")
    try:
        return authority.authenticate(secret)
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except DependencyFailure as exc:
        logger.error("api_key_auth_failed", extra={"error_message": str(exc)})
        raise HTTPException(status_code=500, detail="Authentication error") from exc


def require_permission(scope: ApiKeyPermission) -> Callable[..., ApiKeyContext]:
    """Dependency factory: 403 unless the key holds ``scope`` or ``admin``."""

    def _check(key: ApiKeyContext = Depends(require_api_key)) -> ApiKeyContext:
        try:
            ensure_permission(key, scope)
        except PermissionDeniedError as exc:
            raise HTTPException(status_code=403, detail=str(exc)) from exc
        return key

    return _check
