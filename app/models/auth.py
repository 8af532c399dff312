"""Pydantic models for session authentication."""

from pydantic import BaseModel


class OAuthCallbackRequest(BaseModel):
    code: str


class AuthUser(BaseModel):
    """Identity attached to a request authenticated by session token."""
    id: str
    discord_id: str
    username: str


class SessionUser(BaseModel):
    id: str
    discord_id: str | None = None
    username: str
    email: str | None = None
    avatar_url: str | None = None
    full_name: str | None = None
    is_new_user: bool = False


class LoginResponse(BaseModel):
    token: str
    user: SessionUser


class TokenResponse(BaseModel):
    token: str
