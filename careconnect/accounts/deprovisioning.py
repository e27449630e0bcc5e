"""
Account removal.

Only the identity is deleted. The role binding follows it through the
store's cascade; the profile record is left alone so clinical data
survives credential revocation.
"""

import logging

from careconnect.exceptions import SelfDeletionError, ValidationError
from careconnect.services.identity_store_service import IdentityStoreService

logger = logging.getLogger(__name__)


class DeprovisioningService:
    """Removes identities while preserving their profiles."""

    def __init__(self, identity_store: IdentityStoreService):
        self.identity_store = identity_store

    async def deprovision(
        self, caller_identity_id: str, target_identity_id: str | None
    ) -> None:
        """
        Delete the target identity.

        Raises:
            ValidationError: If no target is given
            SelfDeletionError: If the caller targets their own identity
            NotFoundError: If the identity store has no such identity
        """
        if not target_identity_id:
            raise ValidationError("userId is required")
        if target_identity_id == caller_identity_id:
            raise SelfDeletionError("Cannot delete your own account")

        await self.identity_store.delete_identity(target_identity_id)
        logger.info(
            "Identity %s deprovisioned by %s", target_identity_id, caller_identity_id
        )
