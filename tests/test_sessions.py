"""Unit tests for session token issuance and validation."""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from jose import jwt

from app.core.errors import MalformedTokenError, NotFoundError, TokenExpiredError, UnauthorizedError
from app.models.profile import Profile
from app.services.sessions import SessionAuthority

SECRET = "unit-test-secret"


class TestIssueAndValidate:
    def test_round_trip(self) -> None:
        sessions = SessionAuthority(secret=SECRET)

        token = sessions.issue("discord-42")

        assert sessions.validate(token) == "discord-42"

    def test_claims_carry_expiry(self) -> None:
        sessions = SessionAuthority(secret=SECRET, expires_in=timedelta(hours=24))

        claims = jwt.decode(sessions.issue("discord-42"), SECRET, algorithms=["HS256"])

        assert claims["exp"] - claims["iat"] == 24 * 3600

    def test_expired_token(self) -> None:
        sessions = SessionAuthority(secret=SECRET, expires_in=timedelta(seconds=-10))

        with pytest.raises(TokenExpiredError):
            sessions.validate(sessions.issue("discord-42"))

    def test_wrong_secret(self) -> None:
        token = SessionAuthority(secret="other").issue("discord-42")

        with pytest.raises(MalformedTokenError):
            SessionAuthority(secret=SECRET).validate(token)

    def test_garbage_token(self) -> None:
        with pytest.raises(MalformedTokenError):
            SessionAuthority(secret=SECRET).validate("not-a-jwt")

    def test_missing_discord_id(self) -> None:
        token = jwt.encode({"sub": "x"}, SECRET, algorithm="HS256")

        with pytest.raises(MalformedTokenError):
            SessionAuthority(secret=SECRET).validate(token)


class TestAuthenticate:
    def test_resolves_profile(self, make_profile: Callable[..., Profile]) -> None:
        sessions = SessionAuthority(secret=SECRET)
        directory = MagicMock()
        directory.get_by_discord_id.return_value = make_profile("p-9", discord_id="discord-42", username="ada")

        user = sessions.authenticate(sessions.issue("discord-42"), directory)

        assert user.id == "p-9"
        assert user.username == "ada"

    def test_deleted_profile_is_unauthorized(self) -> None:
        sessions = SessionAuthority(secret=SECRET)
        directory = MagicMock()
        directory.get_by_discord_id.side_effect = NotFoundError("gone")

        with pytest.raises(UnauthorizedError, match="user not found"):
            sessions.authenticate(sessions.issue("discord-42"), directory)
