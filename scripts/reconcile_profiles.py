#!/usr/bin/env python3
"""
Link legacy profile records to identities.

Profiles created before login accounts existed have no stored identity
link. This script infers one for every unlinked profile of a kind and, with
--apply, writes the confident (direct and account-number-suffix) matches
back. Name matches are only ever reported.

Usage:
    python scripts/reconcile_profiles.py patient
    python scripts/reconcile_profiles.py medtech --apply

Requirements:
    - IDENTITY_STORE_URL pointing at the target project
    - IDENTITY_STORE_SERVICE_KEY set, or GCP_PROJECT_ID with access to
      the service key secret in Secret Manager
"""

import argparse
import asyncio
import sys

from careconnect.accounts.directory import AccountDirectory, ReconciliationReport
from careconnect.accounts.models import ProfileKind
from careconnect.services.identity_store_service import IdentityStoreService
from careconnect.services.record_store_service import RecordStoreService


async def run(kind: ProfileKind, apply: bool) -> ReconciliationReport:
    identity_store = IdentityStoreService()
    record_store = RecordStoreService()
    try:
        directory = AccountDirectory(identity_store, record_store)
        return await directory.reconcile_profiles(kind, apply=apply)
    finally:
        await identity_store.close()
        await record_store.close()


def print_report(report: ReconciliationReport) -> None:
    if not report.results:
        print("No unlinked profiles found.")
        return

    print(f"{len(report.results)} unlinked {report.kind.value} profile(s):")
    for result in report.results:
        label = f"{result.name or '?'} ({result.account_number or 'no account number'})"
        if result.match is None:
            print(f"  - {label}: no match")
            continue
        status = "linked" if result.applied else "match"
        line = (
            f"  - {label}: {status} -> {result.match.identity_id} "
            f"[{result.match.source.value}]"
        )
        if result.note:
            line += f" ({result.note})"
        print(line)

    print(f"\nMatched: {report.matched}  Linked: {report.linked}")
    if not report.applied and report.matched:
        print("[DRY RUN] Re-run with --apply to write direct and suffix matches.")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Infer identity links for legacy profile records"
    )
    parser.add_argument(
        "kind",
        choices=[kind.value for kind in ProfileKind],
        help="Profile kind to reconcile",
    )
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Write confident matches instead of only reporting them",
    )
    args = parser.parse_args()

    try:
        report = asyncio.run(run(ProfileKind(args.kind), args.apply))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print_report(report)


if __name__ == "__main__":
    main()
