"""
Account provisioning.

Creates or updates an identity, upserts its role binding and links (or
creates) the role's profile record. The three stores share no transaction,
so the work runs as a saga:

0. check_linked_profile - the profile to link must exist (read-only)
1. resolve_identity     - rotate the secret of the identity at the derived
                          address, or create it
2. bind_role            - upsert the role binding keyed on the identity
3. link_profile         - point the profile at the identity, or create one

A failure aborts the remaining steps and leaves earlier ones applied.
Re-invoking with the same arguments is safe and converges.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from careconnect.accounts.codec import derive_address, normalize_account_number
from careconnect.accounts.models import (
    IDENTITY_COLUMN,
    PROFILE_TABLES,
    AccountPolicy,
    ProfileTable,
    Role,
    RoleBinding,
    profile_kind_for,
)
from careconnect.accounts.saga import Saga, SagaStep
from careconnect.exceptions import NotFoundError, ValidationError
from careconnect.services.identity_store_service import IdentityStoreService
from careconnect.services.record_store_service import RecordStoreService

logger = logging.getLogger(__name__)


@dataclass
class ProvisionResult:
    """Outcome of a provisioning run."""

    identity_id: str
    created: bool
    profile_id: str | None = None


@dataclass
class ProvisionContext:
    """State threaded through the provisioning saga."""

    role: Role
    name: str
    account_number: str
    secret: str
    linked_profile_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    address: str = ""
    identity_id: str | None = None
    created: bool = False
    profile_id: str | None = None


class ProvisioningService:
    """Create-or-update accounts across identity, binding and profile stores."""

    def __init__(
        self,
        identity_store: IdentityStoreService,
        record_store: RecordStoreService,
        policy: AccountPolicy,
    ):
        self.identity_store = identity_store
        self.record_store = record_store
        self.policy = policy

    async def provision(
        self,
        role: Role | str | None,
        name: str | None,
        account_number: str | None,
        secret: str | None,
        linked_profile_id: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> ProvisionResult:
        """
        Provision an account.

        Args:
            role: Role to bind
            name: Display name, used for newly created profiles
            account_number: Human-assigned account number
            secret: Identity secret
            linked_profile_id: Existing profile to link instead of creating one
            extra: Role-specific profile fields (e.g. doctor specialty)

        Returns:
            ProvisionResult with the identity id and whether it was created

        Raises:
            ValidationError: On missing or malformed input, before any store call
            NotFoundError: If linked_profile_id does not exist
            PartialFailureError: If a store call fails mid-pipeline
        """
        context = self._validate(
            role, name, account_number, secret, linked_profile_id, extra
        )

        saga: Saga[ProvisionContext] = Saga(
            "provision",
            [
                SagaStep("check_linked_profile", self._check_linked_profile),
                SagaStep("resolve_identity", self._resolve_identity),
                SagaStep("bind_role", self._bind_role),
                SagaStep("link_profile", self._link_profile),
            ],
        )
        await saga.run(context)
        assert context.identity_id is not None

        logger.info(
            "Provisioned %s account %s: identity=%s created=%s profile=%s",
            context.role.value,
            context.address,
            context.identity_id,
            context.created,
            context.profile_id,
        )
        return ProvisionResult(
            identity_id=context.identity_id,
            created=context.created,
            profile_id=context.profile_id,
        )

    def _validate(
        self,
        role: Role | str | None,
        name: str | None,
        account_number: str | None,
        secret: str | None,
        linked_profile_id: str | None,
        extra: dict[str, Any] | None,
    ) -> ProvisionContext:
        if not role or not (name or "").strip() or not (account_number or "").strip() or not secret:
            raise ValidationError(
                "Missing required fields: role, name, accountNumber, password"
            )
        try:
            resolved_role = Role(role)
        except ValueError as e:
            raise ValidationError(f"Unknown role: {role}") from e
        self.policy.validate_secret(secret)

        assert name is not None and account_number is not None
        return ProvisionContext(
            role=resolved_role,
            name=name.strip(),
            account_number=account_number.strip(),
            secret=secret,
            linked_profile_id=linked_profile_id or None,
            extra=dict(extra or {}),
        )

    async def _check_linked_profile(self, context: ProvisionContext) -> None:
        kind = profile_kind_for(context.role)
        if not context.linked_profile_id or kind is None:
            return
        profile = await self.record_store.get_profile(kind, context.linked_profile_id)
        if profile is None:
            raise NotFoundError(
                f"No {kind.value} profile with id {context.linked_profile_id}"
            )

    async def _resolve_identity(self, context: ProvisionContext) -> None:
        context.address = derive_address(
            context.account_number, self.policy.organization_domain
        )
        existing = await self.identity_store.find_identity_by_address(context.address)
        if existing is not None:
            await self.identity_store.update_secret(existing.id, context.secret)
            context.identity_id = existing.id
            context.created = False
            return

        identity = await self.identity_store.create_identity(
            context.address,
            context.secret,
            metadata={
                "account_number": normalize_account_number(context.account_number),
                "role": context.role.value,
            },
        )
        context.identity_id = identity.id
        context.created = True

    async def _bind_role(self, context: ProvisionContext) -> None:
        assert context.identity_id is not None
        await self.record_store.upsert_binding(
            RoleBinding.for_account(
                context.identity_id, context.role, context.account_number
            )
        )

    async def _link_profile(self, context: ProvisionContext) -> None:
        kind = profile_kind_for(context.role)
        if kind is None:
            return
        assert context.identity_id is not None
        table = PROFILE_TABLES[kind]
        account_number = normalize_account_number(context.account_number)
        current = await self.record_store.find_profile_by_identity(
            kind, context.identity_id
        )

        if context.linked_profile_id:
            if current is not None and current.id != context.linked_profile_id:
                # One profile per identity per kind
                await self.record_store.update_profile(
                    kind, current.id, {IDENTITY_COLUMN: None}
                )
                logger.warning(
                    "Detached %s profile %s from identity %s",
                    kind.value,
                    current.id,
                    context.identity_id,
                )
            values: dict[str, Any] = {IDENTITY_COLUMN: context.identity_id}
            if table.relinks_account_number:
                values[table.account_number_column] = account_number
            values.update(self._role_values(table, context.extra, with_defaults=False))
            updated = await self.record_store.update_profile(
                kind, context.linked_profile_id, values
            )
            if updated is None:
                raise NotFoundError(
                    f"No {kind.value} profile with id {context.linked_profile_id}"
                )
            context.profile_id = updated.id
            return

        if current is not None:
            context.profile_id = current.id
            return

        if not table.created_on_provision:
            logger.info(
                "No %s profile created for identity %s; link one separately",
                kind.value,
                context.identity_id,
            )
            return

        profile = await self.record_store.insert_profile(
            kind,
            {
                "name": context.name,
                table.account_number_column: account_number,
                IDENTITY_COLUMN: context.identity_id,
                **self._role_values(table, context.extra, with_defaults=True),
            },
        )
        context.profile_id = profile.id

    def _role_values(
        self, table: ProfileTable, extra: dict[str, Any], with_defaults: bool
    ) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for column in table.role_fields:
            value = extra.get(column)
            if not value and with_defaults:
                value = self.policy.field_defaults.get(column)
            if value:
                values[column] = value
        return values
