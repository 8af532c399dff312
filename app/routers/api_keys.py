"""API key management for the signed-in participant.

The plaintext key is returned once by /generate; every other endpoint only
ever sees the stored metadata.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from app.core.errors import DependencyFailure, NotFoundError
from app.dependencies import get_api_key_authority, get_current_user
from app.models.api_key import ApiKey, ApiKeyCreate, ApiKeyGenerated, ApiKeyInfo, ApiKeyStats, ApiKeyUpdate
from app.models.auth import AuthUser
from app.services.api_keys import ApiKeyAuthority

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate", response_model=ApiKeyGenerated, status_code=201)
async def generate_key(
    body: ApiKeyCreate,
    user: AuthUser = Depends(get_current_user),
    authority: ApiKeyAuthority = Depends(get_api_key_authority),
) -> ApiKeyGenerated:
    try:
        secret, key = authority.generate(user.id, body)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except DependencyFailure as exc:
        logger.error("api_key_generate_failed", extra={"owner_id": user.id, "error_message": str(exc)})
        raise HTTPException(status_code=500, detail="Failed to generate API key") from exc

    return ApiKeyGenerated(
        api_key=secret,
        key_info=ApiKeyInfo(
            id=key.id,
            name=key.name,
            description=key.description,
            permissions=key.permissions,
            created_at=key.created_at,
            expires_at=key.expires_at,
        ),
    )


@router.get("/list")
async def list_keys(
    user: AuthUser = Depends(get_current_user),
    authority: ApiKeyAuthority = Depends(get_api_key_authority),
) -> dict[str, Any]:
    try:
        return {"api_keys": authority.list_for_owner(user.id)}
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to list API keys") from exc


@router.put("/{key_id}")
async def update_key(
    key_id: str,
    body: ApiKeyUpdate,
    user: AuthUser = Depends(get_current_user),
    authority: ApiKeyAuthority = Depends(get_api_key_authority),
) -> dict[str, Any]:
    try:
        key: ApiKey = authority.update(key_id, user.id, body)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="API key not found") from exc
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to update API key") from exc
    return {"api_key": key, "message": "API key updated successfully"}


@router.delete("/{key_id}")
async def revoke_key(
    key_id: str,
    user: AuthUser = Depends(get_current_user),
    authority: ApiKeyAuthority = Depends(get_api_key_authority),
) -> dict[str, str]:
    try:
        authority.revoke(key_id, user.id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="API key not found") from exc
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to revoke API key") from exc
    return {"message": "API key revoked successfully"}


@router.get("/{key_id}/stats")
async def key_stats(
    key_id: str,
    user: AuthUser = Depends(get_current_user),
    authority: ApiKeyAuthority = Depends(get_api_key_authority),
) -> dict[str, ApiKeyStats]:
    try:
        return {"stats": authority.stats(key_id, user.id)}
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail="API key not found") from exc
    except DependencyFailure as exc:
        raise HTTPException(status_code=500, detail="Failed to get API key stats") from exc
