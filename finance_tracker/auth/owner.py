"""
Owner Resolution

Every request carries a signed token; the owner id inside it scopes
everything the request may read or write.

DESIGN DECISION: This is the only place an owner id enters the core.
Managers never accept an owner id from request payloads.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from finance_tracker.config import AuthSettings, get_settings
from finance_tracker.exceptions import UnauthorizedError


class JWTOwnerResolver:
    """
    Verifies auth tokens and extracts the owner id.

    Tokens are HS256 JWTs whose owner claim (default "userId") holds
    the owner id. Expired tokens are rejected.
    """

    def __init__(self, settings: Optional[AuthSettings] = None):
        self._settings = settings or get_settings().auth

    def resolve(self, token: Optional[str]) -> str:
        """
        Resolve the owner id from a token.

        Args:
            token: Encoded JWT, typically from the "auth-token" cookie

        Returns:
            The owner id as a string

        Raises:
            UnauthorizedError: Token missing, malformed, expired or without
                an owner claim
        """
        if not token:
            raise UnauthorizedError("Missing auth token")

        try:
            payload = jwt.decode(
                token,
                self._settings.jwt_secret,
                algorithms=[self._settings.jwt_algorithm],
            )
        except jwt.ExpiredSignatureError as e:
            raise UnauthorizedError("Auth token expired") from e
        except jwt.InvalidTokenError as e:
            raise UnauthorizedError(f"Invalid auth token: {e}") from e

        owner = payload.get(self._settings.owner_claim)
        if owner is None or str(owner).strip() == "":
            raise UnauthorizedError(f"Auth token has no {self._settings.owner_claim} claim")

        return str(owner)

    def issue_token(self, owner_id: str, ttl: Optional[timedelta] = None) -> str:
        """Create a signed token for an owner."""
        ttl = ttl if ttl is not None else timedelta(minutes=self._settings.token_ttl_minutes)
        now = datetime.now(timezone.utc)
        payload = {
            self._settings.owner_claim: owner_id,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, self._settings.jwt_secret, algorithm=self._settings.jwt_algorithm)
