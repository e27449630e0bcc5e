"""
Credential recovery and staff account seeding.

- issue_reset: mint a recovery link for an existing identity
- bootstrap_staff: seed the single configured bootstrap staff account
- reset_staff_password: staff-driven secret rotation for staff accounts

Out-of-domain addresses are rejected before any lookup so that probing
with foreign addresses reveals nothing about the identity store.
"""

import logging

from careconnect.accounts.codec import is_allowed_address, local_part
from careconnect.accounts.models import AccountPolicy, Role
from careconnect.accounts.provisioning import ProvisioningService, ProvisionResult
from careconnect.exceptions import AuthorizationError, NotFoundError, ValidationError
from careconnect.services.identity_store_service import (
    IdentityStoreService,
    RecoveryArtifact,
)
from careconnect.services.record_store_service import RecordStoreService

logger = logging.getLogger(__name__)


class RecoveryService:
    """Password reset issuance and staff account credential management."""

    def __init__(
        self,
        identity_store: IdentityStoreService,
        record_store: RecordStoreService,
        provisioning: ProvisioningService,
        policy: AccountPolicy,
    ):
        self.identity_store = identity_store
        self.record_store = record_store
        self.provisioning = provisioning
        self.policy = policy

    def _require_allowed_address(self, address: str | None) -> str:
        if not address or not is_allowed_address(address, self.policy.organization_domain):
            raise ValidationError(
                "Invalid email format. Must be a valid CareConnect email."
            )
        return address.strip()

    async def issue_reset(
        self,
        caller_identity_id: str,
        address: str | None,
        redirect_target: str | None = None,
    ) -> RecoveryArtifact:
        """
        Mint a recovery artifact for the identity at an address.

        Args:
            caller_identity_id: Staff identity requesting the reset
            address: Login address in the organization domain
            redirect_target: Where the recovery link lands; policy default if None

        Returns:
            RecoveryArtifact, to be delivered out of band

        Raises:
            ValidationError: If the address is outside the allow-list
            NotFoundError: If no identity has the address
        """
        address = self._require_allowed_address(address)

        identity = await self.identity_store.find_identity_by_address(address)
        if identity is None:
            raise NotFoundError("User not found with this email")

        artifact = await self.identity_store.generate_recovery_link(
            identity, redirect_target or self.policy.reset_redirect_url
        )
        logger.info(
            "Recovery link issued for identity %s by %s", identity.id, caller_identity_id
        )
        return artifact

    async def bootstrap_staff(
        self, address: str | None, secret: str | None
    ) -> ProvisionResult:
        """
        Seed the bootstrap staff account.

        Only the configured bootstrap address is accepted; this is not a
        general account creation path.

        Raises:
            AuthorizationError: For any other address
            ValidationError: If the configured address is outside the
                organization domain, since provisioning could not create it
        """
        if (address or "").strip().lower() != self.policy.bootstrap_staff_address:
            raise AuthorizationError("Only the bootstrap staff account can be created here")
        address = self._require_allowed_address(address)
        return await self._provision_staff(address, secret)

    async def reset_staff_password(
        self, address: str | None, secret: str | None
    ) -> ProvisionResult:
        """
        Set the secret of a staff account, creating the account if needed.

        Raises:
            ValidationError: On a foreign address, short secret, or an address
                belonging to a non-staff account
        """
        address = self._require_allowed_address(address)
        self.policy.validate_secret(secret)

        identity = await self.identity_store.find_identity_by_address(address)
        if identity is not None:
            binding = await self.record_store.get_binding(identity.id)
            if binding is not None and binding.role != Role.STAFF:
                raise ValidationError(
                    f"{address} belongs to a {binding.role.value} account, not staff"
                )
        return await self._provision_staff(address, secret)

    async def _provision_staff(
        self, address: str, secret: str | None
    ) -> ProvisionResult:
        account_number = local_part(address.strip())
        return await self.provisioning.provision(
            Role.STAFF, account_number, account_number, secret
        )
