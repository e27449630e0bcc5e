"""Schemas for batch reconciliation endpoints."""

from careconnect.accounts.directory import ProfileReconciliation, ReconciliationReport
from careconnect.accounts.models import ProfileKind
from careconnect.accounts.reconciliation import MatchSource
from careconnect.schemas.base import CamelModel


class ProfileReconciliationResult(CamelModel):
    """Reconciliation outcome for a single unlinked profile."""

    profile_id: str
    name: str
    account_number: str | None = None
    matched_user_id: str | None = None
    source: MatchSource | None = None
    low_confidence: bool = False
    applied: bool = False
    note: str | None = None

    @classmethod
    def from_result(cls, result: ProfileReconciliation) -> "ProfileReconciliationResult":
        match = result.match
        return cls(
            profile_id=result.profile_id,
            name=result.name,
            account_number=result.account_number,
            matched_user_id=match.identity_id if match else None,
            source=match.source if match else None,
            low_confidence=match.low_confidence if match else False,
            applied=result.applied,
            note=result.note,
        )


class ReconciliationResponse(CamelModel):
    """Response model for a reconciliation run."""

    kind: ProfileKind
    applied: bool
    total: int
    matched: int
    linked: int
    results: list[ProfileReconciliationResult]

    @classmethod
    def from_report(cls, report: ReconciliationReport) -> "ReconciliationResponse":
        return cls(
            kind=report.kind,
            applied=report.applied,
            total=len(report.results),
            matched=report.matched,
            linked=report.linked,
            results=[ProfileReconciliationResult.from_result(r) for r in report.results],
        )
