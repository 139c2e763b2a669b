"""Tests for token-based owner resolution."""

import pytest
from datetime import timedelta

import jwt

from finance_tracker.auth import JWTOwnerResolver
from finance_tracker.config import AuthSettings
from finance_tracker.exceptions import UnauthorizedError


class TestResolve:
    """Tests for JWTOwnerResolver.resolve."""

    def test_issued_token_resolves(self, resolver):
        assert resolver.resolve(resolver.issue_token("user-42")) == "user-42"

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token(self, resolver, token):
        with pytest.raises(UnauthorizedError, match="Missing"):
            resolver.resolve(token)

    def test_garbage_token(self, resolver):
        with pytest.raises(UnauthorizedError, match="Invalid"):
            resolver.resolve("not-a-jwt")

    def test_wrong_secret(self, resolver):
        other = JWTOwnerResolver(AuthSettings(jwt_secret="a-different-secret"))
        with pytest.raises(UnauthorizedError, match="Invalid"):
            resolver.resolve(other.issue_token("user-1"))

    def test_expired_token(self, resolver):
        token = resolver.issue_token("user-1", ttl=timedelta(seconds=-1))
        with pytest.raises(UnauthorizedError, match="expired"):
            resolver.resolve(token)

    def test_token_without_owner_claim(self, resolver, auth_settings):
        token = jwt.encode({"sub": "user-1"}, auth_settings.jwt_secret, algorithm="HS256")
        with pytest.raises(UnauthorizedError, match="userId"):
            resolver.resolve(token)

    def test_blank_owner_claim(self, resolver, auth_settings):
        token = jwt.encode({"userId": "  "}, auth_settings.jwt_secret, algorithm="HS256")
        with pytest.raises(UnauthorizedError):
            resolver.resolve(token)

    def test_numeric_owner_is_stringified(self, resolver, auth_settings):
        token = jwt.encode({"userId": 17}, auth_settings.jwt_secret, algorithm="HS256")
        assert resolver.resolve(token) == "17"

    def test_custom_owner_claim(self):
        resolver = JWTOwnerResolver(AuthSettings(jwt_secret="test-secret-key", owner_claim="sub"))
        token = resolver.issue_token("user-9")

        assert jwt.decode(token, "test-secret-key", algorithms=["HS256"])["sub"] == "user-9"
        assert resolver.resolve(token) == "user-9"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
