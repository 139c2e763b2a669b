"""Owner resolution package."""

from finance_tracker.auth.owner import JWTOwnerResolver

__all__ = ["JWTOwnerResolver"]
