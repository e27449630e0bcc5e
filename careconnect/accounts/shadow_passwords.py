"""
Shadow password channel.

Some role holders (lab and imaging technologists, patients) do not use
self-service recovery, so administrators hand them a password kept in
plaintext on their profile record. This is a second, weaker credential
surface: writing it never changes the identity store secret, and the two
may drift apart.
"""

import logging
import secrets
import string

from careconnect.accounts.models import (
    PROFILE_TABLES,
    SHADOW_PASSWORD_COLUMN,
    AccountPolicy,
    ProfileKind,
    ProfileRecord,
)
from careconnect.exceptions import NotFoundError, ValidationError
from careconnect.services.record_store_service import RecordStoreService

logger = logging.getLogger(__name__)

SHADOW_PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*"


def generate_shadow_password(length: int = 12) -> str:
    """Random password for manual distribution."""
    return "".join(secrets.choice(SHADOW_PASSWORD_ALPHABET) for _ in range(length))


class ShadowPasswordService:
    """Reads and writes shadow passwords on profile records."""

    def __init__(self, record_store: RecordStoreService, policy: AccountPolicy):
        self.record_store = record_store
        self.policy = policy

    def _kind(self, kind: ProfileKind | str) -> ProfileKind:
        try:
            resolved = ProfileKind(kind)
        except ValueError as e:
            raise ValidationError(f"Unknown profile kind: {kind}") from e
        if not PROFILE_TABLES[resolved].has_shadow_password:
            raise ValidationError(
                f"{resolved.value} profiles do not carry shadow passwords"
            )
        return resolved

    def generate(self) -> str:
        return generate_shadow_password(self.policy.shadow_password_length)

    async def list_shadow_passwords(self, kind: ProfileKind | str) -> list[ProfileRecord]:
        """Profiles of a kind, ordered by name, with their shadow passwords."""
        return await self.record_store.list_profiles(self._kind(kind))

    async def set_shadow_password(
        self, profile_id: str, kind: ProfileKind | str, plaintext: str | None
    ) -> None:
        """
        Assign a shadow password to a profile.

        Raises:
            ValidationError: On an empty password or a kind without the channel
            NotFoundError: If the profile does not exist
        """
        resolved = self._kind(kind)
        if not profile_id or not plaintext:
            raise ValidationError("Please select a profile and enter a password")
        await self._write(resolved, profile_id, plaintext)
        logger.info("Shadow password assigned to %s profile %s", resolved.value, profile_id)

    async def reset_shadow_password(
        self, profile_id: str, kind: ProfileKind | str, original_plaintext: str | None
    ) -> None:
        """Rewrite a profile's shadow password back to its original value."""
        resolved = self._kind(kind)
        if not original_plaintext:
            raise ValidationError("No original password found")
        await self._write(resolved, profile_id, original_plaintext)
        logger.info("Shadow password reset on %s profile %s", resolved.value, profile_id)

    async def _write(self, kind: ProfileKind, profile_id: str, plaintext: str) -> None:
        updated = await self.record_store.update_profile(
            kind, profile_id, {SHADOW_PASSWORD_COLUMN: plaintext}
        )
        if updated is None:
            raise NotFoundError(f"No {kind.value} profile with id {profile_id}")
