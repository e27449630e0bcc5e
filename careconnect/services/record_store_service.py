"""
Record store client for role bindings and profile relations.

The record store is PostgREST-compatible: one resource per relation under
``/rest/v1``, filters as ``column=op.value`` query parameters.
"""

import logging
from typing import Any

from careconnect.accounts.models import (
    IDENTITY_COLUMN,
    PROFILE_TABLES,
    ProfileKind,
    ProfileRecord,
    Role,
    RoleBinding,
)
from careconnect.services.store_client import StoreClient

logger = logging.getLogger(__name__)

ROLE_BINDINGS_RELATION = "user_roles"


class RecordStoreService:
    """HTTP client for the role-binding and profile relations."""

    def __init__(self, store: StoreClient | None = None):
        self._store = store or StoreClient()
        self._store.store_name = "Record store"

    async def close(self) -> None:
        await self._store.close()

    async def _select(
        self,
        relation: str,
        filters: dict[str, str] | None = None,
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        client = await self._store._get_client()
        params = {"select": "*", **(filters or {})}
        if order:
            params["order"] = order
        response = await client.get(
            f"/rest/v1/{relation}",
            headers=self._store._headers(),
            params=params,
        )
        self._store._check(response)
        rows: list[dict[str, Any]] = response.json()
        return rows

    async def _write(
        self,
        method: str,
        relation: str,
        values: dict[str, Any],
        params: dict[str, str] | None = None,
        prefer: str = "return=representation",
    ) -> list[dict[str, Any]]:
        client = await self._store._get_client()
        response = await client.request(
            method,
            f"/rest/v1/{relation}",
            headers=self._store._headers(Prefer=prefer),
            params=params,
            json=values,
        )
        self._store._check(response)
        if not response.content:
            return []
        rows: list[dict[str, Any]] = response.json()
        return rows

    # Role bindings

    async def list_bindings(self, role: Role | None = None) -> list[RoleBinding]:
        """List role bindings, optionally restricted to one role."""
        filters = {"role": f"eq.{role.value}"} if role else None
        rows = await self._select(ROLE_BINDINGS_RELATION, filters)
        return [RoleBinding.from_row(row) for row in rows]

    async def get_binding(self, identity_id: str) -> RoleBinding | None:
        """Get the binding of an identity, if it has one."""
        rows = await self._select(
            ROLE_BINDINGS_RELATION, {IDENTITY_COLUMN: f"eq.{identity_id}"}
        )
        return RoleBinding.from_row(rows[0]) if rows else None

    async def upsert_binding(self, binding: RoleBinding) -> RoleBinding:
        """Create or overwrite the binding keyed on its identity."""
        rows = await self._write(
            "POST",
            ROLE_BINDINGS_RELATION,
            binding.to_row(),
            params={"on_conflict": IDENTITY_COLUMN},
            prefer="resolution=merge-duplicates,return=representation",
        )
        logger.info(
            "Upserted %s binding for identity %s", binding.role.value, binding.identity_id
        )
        return RoleBinding.from_row(rows[0]) if rows else binding

    # Profiles

    async def get_profile(
        self, kind: ProfileKind, profile_id: str
    ) -> ProfileRecord | None:
        rows = await self._select(
            PROFILE_TABLES[kind].relation, {"id": f"eq.{profile_id}"}
        )
        return ProfileRecord.from_row(kind, rows[0]) if rows else None

    async def find_profile_by_identity(
        self, kind: ProfileKind, identity_id: str
    ) -> ProfileRecord | None:
        """Profile of a kind linked to an identity, if any."""
        rows = await self._select(
            PROFILE_TABLES[kind].relation, {IDENTITY_COLUMN: f"eq.{identity_id}"}
        )
        return ProfileRecord.from_row(kind, rows[0]) if rows else None

    async def find_profile_by_account_number(
        self, kind: ProfileKind, account_number: str
    ) -> ProfileRecord | None:
        """Profile of a kind carrying an account (or patient) number, if any."""
        table = PROFILE_TABLES[kind]
        rows = await self._select(
            table.relation, {table.account_number_column: f"eq.{account_number}"}
        )
        return ProfileRecord.from_row(kind, rows[0]) if rows else None

    async def list_profiles(
        self, kind: ProfileKind, unlinked_only: bool = False
    ) -> list[ProfileRecord]:
        """List profiles of a kind ordered by name."""
        filters = {IDENTITY_COLUMN: "is.null"} if unlinked_only else None
        rows = await self._select(PROFILE_TABLES[kind].relation, filters, order="name")
        return [ProfileRecord.from_row(kind, row) for row in rows]

    async def insert_profile(
        self, kind: ProfileKind, values: dict[str, Any]
    ) -> ProfileRecord:
        rows = await self._write("POST", PROFILE_TABLES[kind].relation, values)
        profile = ProfileRecord.from_row(kind, rows[0])
        logger.info("Created %s profile %s", kind.value, profile.id)
        return profile

    async def update_profile(
        self, kind: ProfileKind, profile_id: str, values: dict[str, Any]
    ) -> ProfileRecord | None:
        """Update one profile; None when no row has that id."""
        rows = await self._write(
            "PATCH",
            PROFILE_TABLES[kind].relation,
            values,
            params={"id": f"eq.{profile_id}"},
        )
        return ProfileRecord.from_row(kind, rows[0]) if rows else None
