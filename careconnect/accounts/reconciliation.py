"""
Identity reconciliation for profile records without a stored identity link.

Legacy profiles were often created before any login account existed, so
the link has to be inferred. Matching strategy, first hit wins:
1. direct: identity metadata carries the account number, or the identity's
   address local part equals it
2. suffix: digits of the account number equal the digits of a role
   binding's account number (tolerates renamed alphabetic prefixes)
3. name: a role binding's account or patient number equals the profile
   name (low confidence, data-entry fallback)
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from careconnect.accounts.codec import local_part, normalize_account_number
from careconnect.accounts.models import Identity, ProfileRecord, RoleBinding

METADATA_ACCOUNT_KEYS = ("account_number", "patient_number")


class MatchSource(str, Enum):
    """Tier that produced a reconciliation match."""

    DIRECT = "direct"
    SUFFIX = "suffix"
    NAME = "name"


@dataclass(frozen=True)
class Match:
    """Result of reconciling one profile."""

    source: MatchSource
    identity_id: str
    binding: RoleBinding | None = None

    @property
    def low_confidence(self) -> bool:
        return self.source == MatchSource.NAME


def reconcile(
    profile: ProfileRecord,
    candidate_identities: Sequence[Identity],
    candidate_bindings: Sequence[RoleBinding],
) -> Match | None:
    """
    Find the identity most likely to own a profile record.

    Args:
        profile: Profile lacking a stored identity link
        candidate_identities: Identities to consider for the direct tier
        candidate_bindings: Role bindings for the suffix and name tiers

    Returns:
        Match from the highest-priority tier that hits, or None
    """
    account_number = (profile.account_number or "").strip()

    if account_number:
        identity = _match_direct(profile.account_number or "", candidate_identities)
        if identity is not None:
            return Match(source=MatchSource.DIRECT, identity_id=identity.id)

        binding = _match_suffix(account_number, candidate_bindings)
        if binding is not None:
            return Match(
                source=MatchSource.SUFFIX,
                identity_id=binding.identity_id,
                binding=binding,
            )

    if profile.name:
        binding = _match_name(profile.name, candidate_bindings)
        if binding is not None:
            return Match(
                source=MatchSource.NAME,
                identity_id=binding.identity_id,
                binding=binding,
            )

    return None


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value)


def _match_direct(
    account_number: str, identities: Sequence[Identity]
) -> Identity | None:
    # Metadata must carry the number exactly as stored; local parts ignore case
    wanted = normalize_account_number(account_number)
    for identity in identities:
        if any(
            identity.metadata.get(key) == account_number
            for key in METADATA_ACCOUNT_KEYS
        ):
            return identity
        if identity.address and local_part(identity.address).upper() == wanted:
            return identity
    return None


def _match_suffix(
    account_number: str, bindings: Sequence[RoleBinding]
) -> RoleBinding | None:
    wanted = _digits(account_number)
    if not wanted:
        return None
    for binding in bindings:
        if binding.account_number and _digits(binding.account_number) == wanted:
            return binding
    return None


def _match_name(name: str, bindings: Sequence[RoleBinding]) -> RoleBinding | None:
    for binding in bindings:
        if binding.account_number == name or binding.patient_number == name:
            return binding
    return None
