"""
Account directory: enriched listings and batch reconciliation.

Listing joins each role binding with the display name of its linked
profile. Batch reconciliation walks profiles that have no identity link
(legacy records) and infers one with the reconciliation engine.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from careconnect.accounts.models import (
    IDENTITY_COLUMN,
    ProfileKind,
    Role,
    RoleBinding,
    profile_kind_for,
)
from careconnect.accounts.reconciliation import Match, MatchSource, reconcile
from careconnect.services.identity_store_service import IdentityStoreService
from careconnect.services.record_store_service import RecordStoreService

logger = logging.getLogger(__name__)


@dataclass
class AccountSummary:
    """A role binding with a human-readable name."""

    binding: RoleBinding
    display_name: str


@dataclass
class ProfileReconciliation:
    """Reconciliation outcome for one unlinked profile."""

    profile_id: str
    name: str
    account_number: str | None
    match: Match | None = None
    applied: bool = False
    note: str | None = None


@dataclass
class ReconciliationReport:
    """Outcome of reconciling every unlinked profile of a kind."""

    kind: ProfileKind
    applied: bool
    results: list[ProfileReconciliation] = field(default_factory=list)

    @property
    def matched(self) -> int:
        return sum(1 for r in self.results if r.match is not None)

    @property
    def linked(self) -> int:
        return sum(1 for r in self.results if r.applied)


class AccountDirectory:
    """Read-mostly views across identities, bindings and profiles."""

    def __init__(
        self,
        identity_store: IdentityStoreService,
        record_store: RecordStoreService,
    ):
        self.identity_store = identity_store
        self.record_store = record_store

    async def list_accounts(self, role: Role | None = None) -> list[AccountSummary]:
        """List role bindings, each joined with its profile's display name."""
        bindings = await self.record_store.list_bindings(role)
        names = await asyncio.gather(*(self._display_name(b) for b in bindings))
        return [
            AccountSummary(binding=binding, display_name=name)
            for binding, name in zip(bindings, names)
        ]

    async def _display_name(self, binding: RoleBinding) -> str:
        fallback = binding.account_number or "Unknown"
        kind = profile_kind_for(binding.role)
        if kind is None:
            return fallback
        profile = await self.record_store.find_profile_by_identity(
            kind, binding.identity_id
        )
        if profile is None or not profile.name:
            logger.debug(
                "No %s profile for identity %s, using account number",
                kind.value,
                binding.identity_id,
            )
            return fallback
        return profile.name

    async def reconcile_profiles(
        self, kind: ProfileKind, apply: bool = False
    ) -> ReconciliationReport:
        """
        Infer identity links for profiles of a kind that have none.

        Args:
            kind: Profile kind to reconcile
            apply: Write direct and suffix matches back to the profiles

        Returns:
            ReconciliationReport with one entry per unlinked profile
        """
        profiles, identities, bindings, linked = await asyncio.gather(
            self.record_store.list_profiles(kind, unlinked_only=True),
            self.identity_store.list_all_identities(),
            self.record_store.list_bindings(Role(kind.value)),
            self.record_store.list_profiles(kind),
        )
        # Account numbers are only unique within a role
        bindings = [b for b in bindings if b.role.value == kind.value]
        taken = {p.identity_id for p in linked if p.identity_id}

        report = ReconciliationReport(kind=kind, applied=apply)
        for profile in profiles:
            if profile.identity_id:
                continue
            match = reconcile(profile, identities, bindings)
            result = ProfileReconciliation(
                profile_id=profile.id,
                name=profile.name,
                account_number=profile.account_number,
                match=match,
            )
            report.results.append(result)
            if match is None:
                continue
            if match.identity_id in taken:
                result.note = "identity already linked to another profile"
                continue
            if match.source == MatchSource.NAME:
                result.note = "low-confidence name match, review manually"
                continue
            if apply:
                await self.record_store.update_profile(
                    kind, profile.id, {IDENTITY_COLUMN: match.identity_id}
                )
                taken.add(match.identity_id)
                result.applied = True
                logger.info(
                    "Linked %s profile %s to identity %s (%s match)",
                    kind.value,
                    profile.id,
                    match.identity_id,
                    match.source.value,
                )

        logger.info(
            "Reconciled %d unlinked %s profiles: %d matched, %d linked",
            len(report.results),
            kind.value,
            report.matched,
            report.linked,
        )
        return report
