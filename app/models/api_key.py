"""Pydantic models for the ``api_keys`` table.

Only ``key_hash`` (SHA-256 of the secret) is persisted; the plaintext is
returned once by the generate endpoint.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import ApiKeyPermission


class ApiKeyCreate(BaseModel):
    """Request body for POST /api/keys/generate."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    permissions: list[ApiKeyPermission] = Field(
        default_factory=lambda: [ApiKeyPermission.read]
    )
    expires_at: datetime | None = None


class ApiKeyUpdate(BaseModel):
    """Request body for PUT /api/keys/{key_id}."""
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    permissions: list[ApiKeyPermission] | None = None
    is_active: bool | None = None

    @field_validator("name", "permissions", "is_active")
    @classmethod
    def _not_null(cls, value: object) -> object:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class ApiKey(BaseModel):
    """API key record as stored (hash included, never serialized out)."""
    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    key_hash: str | None = Field(default=None, exclude=True)
    name: str
    description: str | None = None
    permissions: list[ApiKeyPermission] = Field(default_factory=list)
    created_by: str | None = None
    is_active: bool = True
    expires_at: datetime | None = None
    revoked_at: datetime | None = None
    last_used_at: datetime | None = None
    usage_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ApiKeyInfo(BaseModel):
    """Public description of a key returned right after generation."""
    id: str
    name: str
    description: str | None = None
    permissions: list[ApiKeyPermission]
    created_at: datetime | None = None
    expires_at: datetime | None = None


class ApiKeyGenerated(BaseModel):
    success: bool = True
    api_key: str
    key_info: ApiKeyInfo
    message: str = (
        "API key generated successfully. Store it securely - it won't be shown again!"
    )


class ApiKeyStats(BaseModel):
    id: str
    name: str
    created_at: datetime | None = None
    last_used_at: datetime | None = None
    usage_count: int = 0


class ApiKeyContext(BaseModel):
    """Identity attached to a request authenticated by API key."""
    id: str
    name: str
    permissions: list[ApiKeyPermission]
    created_by: str | None = None
