"""
Account provisioning and identity reconciliation.

This package handles:
- Deriving login addresses from account numbers
- Matching legacy profile records to identities
- Provisioning and removing accounts across the identity, role-binding
  and profile stores
- Password reset issuance and the shadow password channel
"""

from careconnect.accounts.codec import derive_address, is_allowed_address
from careconnect.accounts.models import (
    AccountPolicy,
    Identity,
    ProfileKind,
    ProfileRecord,
    Role,
    RoleBinding,
)
from careconnect.accounts.reconciliation import Match, MatchSource, reconcile

__all__ = [
    "AccountPolicy",
    "Identity",
    "Match",
    "MatchSource",
    "ProfileKind",
    "ProfileRecord",
    "Role",
    "RoleBinding",
    "derive_address",
    "is_allowed_address",
    "reconcile",
]
