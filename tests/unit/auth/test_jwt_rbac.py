from __future__ import annotations

import pytest

from factory_portal.auth.caller_context import SYSTEM_CONTEXT, CallerContext, from_claims
from factory_portal.auth.jwt import create_access_token, decode_jwt
from factory_portal.auth.rbac import has_scopes, require_scopes
from factory_portal.core.config import get_config
from factory_portal.core.dependencies import get_current_caller
from factory_portal.core.exceptions import AuthenticationError, AuthorizationError


def test_jwt_roundtrip_contains_required_claims():
    token = create_access_token("staff-1", "staff", secret="test-secret", display_name="Sam Staff")
    claims = decode_jwt(token, secret="test-secret")
    assert claims["sub"] == "staff-1"
    assert claims["role"] == "staff"
    assert claims["name"] == "Sam Staff"
    assert "exp" in claims
    assert "iat" in claims
    assert "jti" in claims


def test_jwt_rejects_wrong_secret_and_expired_token():
    token = create_access_token("staff-1", "staff", secret="test-secret")
    with pytest.raises(AuthenticationError):
        decode_jwt(token, secret="other-secret")

    expired = create_access_token("staff-1", "staff", secret="test-secret", ttl_minutes=-1)
    with pytest.raises(AuthenticationError, match="expired"):
        decode_jwt(expired, secret="test-secret")


def test_caller_context_from_claims_normalizes_role():
    caller = from_claims({"sub": "user-9", "role": "ADMIN", "name": "Ada"})
    assert caller == CallerContext(user_id="user-9", role="admin", display_name="Ada")

    with pytest.raises(AuthenticationError):
        from_claims({"role": "staff"})


def test_current_caller_resolves_from_token():
    token = create_access_token("client-1", "client", secret=get_config().JWT_SECRET)
    caller = get_current_caller(token)
    assert caller.user_id == "client-1"
    assert caller.author_name == "Unknown"


def test_rbac_blocks_missing_scope():
    require_scopes("client", ["comments.create"])
    with pytest.raises(AuthorizationError):
        require_scopes("client", ["guitars.move"])
    with pytest.raises(AuthorizationError):
        require_scopes(None, ["board.read"])


def test_admin_wildcard_and_system_context():
    assert has_scopes("admin", ["anything.at.all"])
    SYSTEM_CONTEXT.require("guitars.move", "runs.manage")
    with pytest.raises(AuthorizationError):
        CallerContext(user_id="f-1", role="factory").require("runs.manage")
