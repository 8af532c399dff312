"""Short-lived signed session tokens keyed to a Discord identity.

Tokens are HS256 JWTs carrying ``discord_id``, ``iat`` and ``exp``.  There
is no server-side session list, so a token stays usable until it expires;
``authenticate`` does re-check that the profile still exists.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from app.core.config import settings
from app.core.errors import MalformedTokenError, NotFoundError, TokenExpiredError, UnauthorizedError
from app.models.auth import AuthUser
from app.services.profiles import ProfileDirectory

logger = logging.getLogger(__name__)


class SessionAuthority:
    def __init__(
        self,
        secret: str | None = None,
        algorithm: str | None = None,
        expires_in: timedelta | None = None,
    ) -> None:
        self._secret = secret or settings.JWT_SECRET
        self._algorithm = algorithm or settings.JWT_ALGORITHM
        self._expires_in = expires_in or timedelta(hours=settings.JWT_EXPIRES_HOURS)

    def issue(self, discord_id: str) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "discord_id": discord_id,
            "iat": int(now.timestamp()),
            "exp": int((now + self._expires_in).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def validate(self, token: str) -> str:
        """Return the token's Discord id or raise an ``UnauthorizedError`` subclass."""
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as exc:
            raise TokenExpiredError("Token expired") from exc
        except JWTError as exc:
            raise MalformedTokenError("Invalid token") from exc

        discord_id = claims.get("discord_id")
        if not isinstance(discord_id, str) or not discord_id:
            raise MalformedTokenError("Invalid token")
        return discord_id

    def authenticate(self, token: str, directory: ProfileDirectory) -> AuthUser:
        discord_id = self.validate(token)
        try:
            profile = directory.get_by_discord_id(discord_id)
        except NotFoundError as exc:
            logger.info("session_profile_missing", extra={"discord_id": discord_id})
            raise UnauthorizedError("Invalid token - user not found") from exc
        return AuthUser(id=profile.id, discord_id=discord_id, username=profile.username)
