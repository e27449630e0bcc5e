"""Batch reconciliation of legacy profiles against identities."""

from fastapi import APIRouter

from careconnect.accounts.models import ProfileKind
from careconnect.routers.deps import AccountDirectoryDep, StaffUserDep
from careconnect.schemas.reconciliation import ReconciliationResponse

router = APIRouter(prefix="/reconciliation", tags=["Reconciliation"])


@router.get("/{kind}", response_model=ReconciliationResponse)
async def preview_reconciliation(
    kind: ProfileKind,
    directory: AccountDirectoryDep,
    current_user: StaffUserDep,
) -> ReconciliationResponse:
    """Dry run: report inferred links for unlinked profiles without writing."""
    report = await directory.reconcile_profiles(kind, apply=False)
    return ReconciliationResponse.from_report(report)


@router.post("/{kind}", response_model=ReconciliationResponse)
async def apply_reconciliation(
    kind: ProfileKind,
    directory: AccountDirectoryDep,
    current_user: StaffUserDep,
) -> ReconciliationResponse:
    """
    Link unlinked profiles to their inferred identities.

    Only direct and account-number-suffix matches are written; name
    matches are reported for manual review.
    """
    report = await directory.reconcile_profiles(kind, apply=True)
    return ReconciliationResponse.from_report(report)
