"""Discord sign-in and session endpoints.

POST /discord/callback -- exchange an OAuth code, create the profile on
                          first sign-in, return a session token.
GET  /me               -- the signed-in participant's profile.
POST /refresh          -- new token for a holder of a still-valid token.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.core.errors import DependencyFailure, ExternalServiceError, NotFoundError
from app.dependencies import (
    get_current_user,
    get_directory,
    get_oauth_client,
    get_session_authority,
)
from app.models.auth import AuthUser, LoginResponse, OAuthCallbackRequest, SessionUser, TokenResponse
from app.models.profile import Profile
from app.services.discord_oauth import DiscordOAuthClient
from app.services.profiles import ProfileDirectory
from app.services.sessions import SessionAuthority

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/discord/callback", response_model=LoginResponse)
async def discord_callback(
    body: OAuthCallbackRequest,
    oauth: DiscordOAuthClient = Depends(get_oauth_client),
    directory: ProfileDirectory = Depends(get_directory),
    sessions: SessionAuthority = Depends(get_session_authority),
) -> LoginResponse:
    if not body.code:
        raise HTTPException(status_code=400, detail="Authorization code required")

    try:
        access_token = await oauth.exchange_code(body.code)
        discord_user = await oauth.fetch_user(access_token)
    except ExternalServiceError as exc:
        logger.warning("discord_oauth_failed", extra={"error_message": str(exc)})
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        profile, _created = directory.upsert_from_discord(discord_user)
    except DependencyFailure as exc:
        logger.error("discord_login_profile_failed", extra={"error_message": str(exc)})
        raise HTTPException(status_code=500, detail="Authentication failed") from exc

    return LoginResponse(
        token=sessions.issue(discord_user.id),
        user=SessionUser(
            id=profile.id,
            discord_id=profile.discord_id,
            username=profile.username,
            email=profile.email,
            avatar_url=profile.avatar_url,
            full_name=profile.full_name,
            is_new_user=not profile.bio,
        ),
    )


@router.get("/me")
async def me(
    user: AuthUser = Depends(get_current_user),
    directory: ProfileDirectory = Depends(get_directory),
) -> dict[str, Profile]:
    try:
        return {"user": directory.get_by_discord_id(user.discord_id)}
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="Profile not found") from exc
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to get profile") from exc


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    user: AuthUser = Depends(get_current_user),
    sessions: SessionAuthority = Depends(get_session_authority),
) -> TokenResponse:
    return TokenResponse(token=sessions.issue(user.discord_id))
