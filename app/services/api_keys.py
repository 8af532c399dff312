"""API key issuance, validation and lifecycle (``api_keys`` table).

Secrets are ``API_KEY_PREFIX`` + 64 hex chars.  Only the SHA-256 hex
digest is stored; lookups hash the presented secret and match on
``key_hash``.  Revocation is a soft delete so usage history survives.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from collections.abc import Iterable
from datetime import datetime, timezone

from supabase import Client

from app.core.config import settings
from app.core.errors import DependencyFailure, NotFoundError, PermissionDeniedError, UnauthorizedError
from app.db.supabase import first_row
from app.models.api_key import (
    ApiKey,
    ApiKeyContext,
    ApiKeyCreate,
    ApiKeyStats,
    ApiKeyUpdate,
)
from app.models.enums import ApiKeyPermission

logger = logging.getLogger(__name__)

_LIST_COLUMNS = (
    "id, name, description, permissions, created_at, expires_at, "
    "is_active, last_used_at, usage_count"
)


def hash_api_key(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def has_permission(permissions: Iterable[ApiKeyPermission | str], scope: ApiKeyPermission | str) -> bool:
    """True when ``scope`` is granted directly or through ``admin``."""
    granted = {getattr(p, "value", p) for p in permissions}
    wanted = getattr(scope, "value", scope)
    return wanted in granted or ApiKeyPermission.admin.value in granted


def ensure_permission(key: ApiKeyContext, scope: ApiKeyPermission) -> None:
    if not has_permission(key.permissions, scope):
        raise PermissionDeniedError(f"Permission '{scope.value}' required")


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class ApiKeyAuthority:
    """Generates, authenticates and manages API keys."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def generate(self, owner_id: str | None, payload: ApiKeyCreate) -> tuple[str, ApiKey]:
        """Create a key and return ``(plaintext, record)``; plaintext is never stored."""
        if payload.expires_at is not None and _as_utc(payload.expires_at) <= datetime.now(timezone.utc):
            raise ValueError("expires_at must be in the future")

        secret = f"{settings.API_KEY_PREFIX}{secrets.token_hex(32)}"
        row = {
            "key_hash": hash_api_key(secret),
            "name": payload.name,
            "description": payload.description,
            "permissions": [p.value for p in payload.permissions],
            "expires_at": payload.expires_at.isoformat() if payload.expires_at else None,
            "created_by": owner_id,
            "is_active": True,
        }
        try:
            result = self._client.table("api_keys").insert(row).execute()
        except Exception as exc:
            logger.error("api_key_insert_failed", extra={"error_message": str(exc)})
            raise DependencyFailure("Failed to generate API key") from exc

        record = first_row(result)
        if record is None:
            raise DependencyFailure("API key insert returned no row")
        logger.info("api_key_generated", extra={"key_id": record.get("id"), "owner_id": owner_id})
        return secret, ApiKey(**record)

    def authenticate(self, secret: str) -> ApiKeyContext:
        """Validate a presented secret and record the use.

        Raises ``UnauthorizedError`` for unknown, inactive or expired keys.
        """
        if not secret:
            raise UnauthorizedError("API key required")
        try:
            result = (
                self._client.table("api_keys")
                .select("*")
                .eq("key_hash", hash_api_key(secret))
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure("API key lookup failed") from exc

        row = first_row(result)
        if row is None:
            raise UnauthorizedError("Invalid API key")
        key = ApiKey(**row)
        if not key.is_active:
            raise UnauthorizedError("Invalid API key")
        if key.expires_at is not None and datetime.now(timezone.utc) > _as_utc(key.expires_at):
            raise UnauthorizedError("API key expired")

        self._record_use(key.id)
        return ApiKeyContext(
            id=key.id,
            name=key.name,
            permissions=key.permissions,
            created_by=key.created_by,
        )

    def _record_use(self, key_id: str) -> None:
        # Single UPDATE inside the database: usage_count + 1, last_used_at = now()
        try:
            self._client.rpc("increment_api_key_usage", {"key_id": key_id}).execute()
        except Exception as exc:
            raise DependencyFailure("Failed to record API key usage") from exc

    def list_for_owner(self, owner_id: str) -> list[dict]:
        try:
            result = (
                self._client.table("api_keys")
                .select(_LIST_COLUMNS)
                .eq("created_by", owner_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure("Failed to list API keys") from exc
        return result.data or []

    def update(self, key_id: str, owner_id: str, changes: ApiKeyUpdate) -> ApiKey:
        values = changes.model_dump(mode="json", exclude_unset=True)
        values["updated_at"] = datetime.now(timezone.utc).isoformat()
        return self._owned_update(key_id, owner_id, values, "Failed to update API key")

    def revoke(self, key_id: str, owner_id: str) -> ApiKey:
        now = datetime.now(timezone.utc).isoformat()
        key = self._owned_update(
            key_id,
            owner_id,
            {"is_active": False, "revoked_at": now, "updated_at": now},
            "Failed to revoke API key",
        )
        logger.info("api_key_revoked", extra={"key_id": key_id, "owner_id": owner_id})
        return key

    def stats(self, key_id: str, owner_id: str) -> ApiKeyStats:
        try:
            result = (
                self._client.table("api_keys")
                .select("id, name, created_at, last_used_at, usage_count")
                .eq("id", key_id)
                .eq("created_by", owner_id)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure("Failed to get API key stats") from exc
        row = first_row(result)
        if row is None:
            raise NotFoundError("API key not found")
        return ApiKeyStats(**row)

    def _owned_update(self, key_id: str, owner_id: str, values: dict, failure: str) -> ApiKey:
        try:
            result = (
                self._client.table("api_keys")
                .update(values)
                .eq("id", key_id)
                .eq("created_by", owner_id)
                .execute()
            )
        except Exception as exc:
            raise DependencyFailure(failure) from exc
        row = first_row(result)
        if row is None:
            raise NotFoundError("API key not found")
        return ApiKey(**row)
