"""Account holders changing their own password."""

import logging

from careconnect.accounts.models import (
    PROFILE_TABLES,
    SHADOW_PASSWORD_COLUMN,
    AccountPolicy,
    ProfileKind,
    profile_kind_for,
)
from careconnect.exceptions import NotFoundError, ValidationError
from careconnect.services.identity_store_service import IdentityStoreService
from careconnect.services.record_store_service import RecordStoreService

logger = logging.getLogger(__name__)


class SelfServiceService:
    """Password changes initiated by the account holder."""

    def __init__(
        self,
        identity_store: IdentityStoreService,
        record_store: RecordStoreService,
        policy: AccountPolicy,
    ):
        self.identity_store = identity_store
        self.record_store = record_store
        self.policy = policy

    async def change_own_password(
        self,
        identity_id: str,
        new_secret: str | None,
        confirmation: str | None,
    ) -> None:
        """
        Change the caller's identity secret.

        Holders of roles that use the shadow channel also get the shadow
        password on their profile updated first, so administrators keep
        handing out the current value. A patient without a linked profile is
        matched through the patient number on their binding.

        Raises:
            ValidationError: On a short secret or a confirmation mismatch
            NotFoundError: If the caller has no role binding
        """
        if not new_secret or not confirmation:
            raise ValidationError("Please fill in all fields")
        if new_secret != confirmation:
            raise ValidationError("New passwords do not match")
        self.policy.validate_secret(new_secret)

        binding = await self.record_store.get_binding(identity_id)
        if binding is None:
            raise NotFoundError("No account is bound to this identity")

        kind = profile_kind_for(binding.role)
        if kind is not None and PROFILE_TABLES[kind].has_shadow_password:
            profile = await self.record_store.find_profile_by_identity(kind, identity_id)
            if profile is None and kind == ProfileKind.PATIENT and binding.patient_number:
                # Patient profiles are usually unlinked; the binding names them
                profile = await self.record_store.find_profile_by_account_number(
                    kind, binding.patient_number
                )
            if profile is not None:
                await self.record_store.update_profile(
                    kind, profile.id, {SHADOW_PASSWORD_COLUMN: new_secret}
                )

        await self.identity_store.update_secret(identity_id, new_secret)
        logger.info("Identity %s changed its own password", identity_id)
