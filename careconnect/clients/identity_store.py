"""Dependency provider for the identity store service."""

from functools import lru_cache

from careconnect.services.identity_store_service import IdentityStoreService


@lru_cache(maxsize=1)
def get_identity_store_service() -> IdentityStoreService:
    """Get singleton IdentityStoreService instance."""
    return IdentityStoreService()
