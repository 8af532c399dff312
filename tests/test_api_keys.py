"""Unit tests for API key issuance, authentication and lifecycle."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from app.core.errors import DependencyFailure, NotFoundError, PermissionDeniedError, UnauthorizedError
from app.models.api_key import ApiKeyContext, ApiKeyCreate, ApiKeyUpdate
from app.models.enums import ApiKeyPermission
from app.services.api_keys import ApiKeyAuthority, ensure_permission, has_permission, hash_api_key


def _chainable_table_mock() -> MagicMock:
    m = MagicMock()
    for method in ("select", "insert", "update", "eq", "order", "limit"):
        getattr(m, method).return_value = m
    return m


def _client(table: MagicMock) -> MagicMock:
    sb = MagicMock()
    sb.table.return_value = table
    return sb


def _key_row(**overrides: object) -> dict:
    row = {
        "id": "k-1",
        "key_hash": "abc",
        "name": "ci",
        "permissions": ["read"],
        "created_by": "owner-1",
        "is_active": True,
        "expires_at": None,
        "usage_count": 3,
    }
    row.update(overrides)
    return row


class TestPermissions:
    @pytest.mark.parametrize(
        ("granted", "scope", "expected"),
        [
            (["read"], ApiKeyPermission.read, True),
            (["read"], ApiKeyPermission.write, False),
            (["admin"], ApiKeyPermission.write, True),
            (["admin"], ApiKeyPermission.read, True),
            ([], ApiKeyPermission.read, False),
        ],
    )
    def test_has_permission(self, granted: list[str], scope: ApiKeyPermission, expected: bool) -> None:
        assert has_permission(granted, scope) is expected

    def test_ensure_permission_raises_for_missing_scope(self) -> None:
        key = ApiKeyContext(id="k", name="n", permissions=[ApiKeyPermission.read])

        with pytest.raises(PermissionDeniedError, match="write"):
            ensure_permission(key, ApiKeyPermission.write)


class TestGenerate:
    def test_stores_only_hash(self) -> None:
        table = _chainable_table_mock()
        table.execute.return_value = MagicMock(data=[_key_row()])
        authority = ApiKeyAuthority(_client(table))

        secret, key = authority.generate("owner-1", ApiKeyCreate(name="ci"))

        inserted = table.insert.call_args.args[0]
        assert secret.startswith("hack_")
        assert len(secret) == len("hack_") + 64
        assert inserted["key_hash"] == hash_api_key(secret)
        assert secret not in inserted.values()
        assert inserted["permissions"] == ["read"]
        assert inserted["created_by"] == "owner-1"
        assert "key_hash" not in key.model_dump()

    def test_secrets_are_unique(self) -> None:
        table = _chainable_table_mock()
        table.execute.return_value = MagicMock(data=[_key_row()])
        authority = ApiKeyAuthority(_client(table))

        first, _ = authority.generate("owner-1", ApiKeyCreate(name="a"))
        second, _ = authority.generate("owner-1", ApiKeyCreate(name="b"))

        assert first != second

    def test_past_expiry_rejected(self) -> None:
        authority = ApiKeyAuthority(_client(_chainable_table_mock()))
        payload = ApiKeyCreate(name="old", expires_at=datetime.now(timezone.utc) - timedelta(days=1))

        with pytest.raises(ValueError):
            authority.generate("owner-1", payload)


class TestAuthenticate:
    def test_valid_key_records_usage(self) -> None:
        table = _chainable_table_mock()
        table.execute.return_value = MagicMock(data=[_key_row(permissions=["read", "write"])])
        sb = _client(table)
        authority = ApiKeyAuthority(sb)

        ctx = authority.authenticate("hack_secret")

        assert ctx.id == "k-1"
        assert ApiKeyPermission.write in ctx.permissions
        table.eq.assert_any_call("key_hash", hash_api_key("hack_secret"))
        sb.rpc.assert_called_once_with("increment_api_key_usage", {"key_id": "k-1"})

    def test_unknown_key(self) -> None:
        table = _chainable_table_mock()
        table.execute.return_value = MagicMock(data=[])
        authority = ApiKeyAuthority(_client(table))

        with pytest.raises(UnauthorizedError, match="Invalid API key"):
            authority.authenticate("hack_nope")

    def test_revoked_key(self) -> None:
        table = _chainable_table_mock()
        table.execute.return_value = MagicMock(data=[_key_row(is_active=False)])
        sb = _client(table)
        authority = ApiKeyAuthority(sb)

        with pytest.raises(UnauthorizedError, match="Invalid API key"):
            authority.authenticate("hack_revoked")
        sb.rpc.assert_not_called()

    def test_expired_key(self) -> None:
        expired = (datetime.now(timezone.utc) - timedelta(minutes=1)).isoformat()
        table = _chainable_table_mock()
        table.execute.return_value = MagicMock(data=[_key_row(expires_at=expired)])
        authority = ApiKeyAuthority(_client(table))

        with pytest.raises(UnauthorizedError, match="expired"):
            authority.authenticate("hack_old")

    def test_lookup_failure(self) -> None:
        table = _chainable_table_mock()
        table.execute.side_effect = Exception("timeout")
        authority = ApiKeyAuthority(_client(table))

        with pytest.raises(DependencyFailure):
            authority.authenticate("hack_any")


class TestLifecycle:
    def test_revoke_is_soft_and_owner_scoped(self) -> None:
        table = _chainable_table_mock()
        table.execute.return_value = MagicMock(data=[_key_row(is_active=False)])
        authority = ApiKeyAuthority(_client(table))

        key = authority.revoke("k-1", "owner-1")

        values = table.update.call_args.args[0]
        assert values["is_active"] is False
        assert values["revoked_at"]
        table.eq.assert_any_call("created_by", "owner-1")
        assert key.is_active is False

    def test_update_other_owner_not_found(self) -> None:
        table = _chainable_table_mock()
        table.execute.return_value = MagicMock(data=[])
        authority = ApiKeyAuthority(_client(table))

        with pytest.raises(NotFoundError):
            authority.update("k-1", "someone-else", ApiKeyUpdate(name="renamed"))

    def test_update_sends_only_set_fields(self) -> None:
        table = _chainable_table_mock()
        table.execute.return_value = MagicMock(data=[_key_row(name="renamed")])
        authority = ApiKeyAuthority(_client(table))

        authority.update("k-1", "owner-1", ApiKeyUpdate(name="renamed"))

        values = table.update.call_args.args[0]
        assert values["name"] == "renamed"
        assert "permissions" not in values

    @pytest.mark.parametrize("field", ["name", "permissions", "is_active"])
    def test_update_rejects_explicit_null(self, field: str) -> None:
        with pytest.raises(ValueError):
            ApiKeyUpdate.model_validate({field: None})

    def test_update_allows_clearing_description(self) -> None:
        table = _chainable_table_mock()
        table.execute.return_value = MagicMock(data=[_key_row()])
        authority = ApiKeyAuthority(_client(table))

        authority.update("k-1", "owner-1", ApiKeyUpdate.model_validate({"description": None}))

        assert table.update.call_args.args[0]["description"] is None

    def test_stats(self) -> None:
        table = _chainable_table_mock()
        table.execute.return_value = MagicMock(data=[{"id": "k-1", "name": "ci", "usage_count": 7}])
        authority = ApiKeyAuthority(_client(table))

        stats = authority.stats("k-1", "owner-1")

        assert stats.usage_count == 7
