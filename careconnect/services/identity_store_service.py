"""
Identity store admin client.

Talks to a GoTrue-compatible admin API: the identity store owns login
addresses and secrets. Secrets are write-only from this service's point of
view; nothing here ever reads one back.
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from careconnect.accounts.models import Identity
from careconnect.exceptions import AuthenticationError, NotFoundError
from careconnect.services.store_client import StoreClient, error_message
from careconnect.settings import settings

logger = logging.getLogger(__name__)


class RecoveryArtifact(BaseModel):
    """Credential-recovery link minted by the identity store."""

    identity_id: str
    address: str
    action_link: str | None = None
    redirect_to: str | None = None


class IdentityStoreService:
    """HTTP client for the identity store admin API."""

    def __init__(self, store: StoreClient | None = None, page_size: int | None = None):
        self._store = store or StoreClient()
        self._store.store_name = "Identity store"
        self.page_size = page_size or settings.identity_list_page_size

    async def close(self) -> None:
        await self._store.close()

    def _check(self, response: httpx.Response) -> None:
        if response.status_code == 404:
            raise NotFoundError(f"Identity not found: {error_message(response)}")
        self._store._check(response)

    async def list_identities(self, page: int = 1) -> list[Identity]:
        """List one page of identities."""
        client = await self._store._get_client()
        response = await client.get(
            "/auth/v1/admin/users",
            headers=self._store._headers(),
            params={"page": page, "per_page": self.page_size},
        )
        self._check(response)
        data = response.json()
        users = data.get("users", []) if isinstance(data, dict) else data
        return [Identity.from_user(user) for user in users]

    async def list_all_identities(self) -> list[Identity]:
        """List every identity, following pages until a short page."""
        identities: list[Identity] = []
        page = 1
        while True:
            batch = await self.list_identities(page=page)
            identities.extend(batch)
            if len(batch) < self.page_size:
                return identities
            page += 1

    async def find_identity_by_address(self, address: str) -> Identity | None:
        """Find an identity by login address (case-insensitive)."""
        wanted = address.strip().lower()
        for identity in await self.list_all_identities():
            if identity.address and identity.address.lower() == wanted:
                return identity
        return None

    async def create_identity(
        self,
        address: str,
        secret: str,
        metadata: dict[str, Any] | None = None,
    ) -> Identity:
        """
        Create a confirmed identity.

        Args:
            address: Login address, unique across identities
            secret: Initial secret
            metadata: Optional user metadata

        Returns:
            The created Identity
        """
        client = await self._store._get_client()
        payload: dict[str, Any] = {
            "email": address,
            "password": secret,
            "email_confirm": True,
        }
        if metadata:
            payload["user_metadata"] = metadata
        response = await client.post(
            "/auth/v1/admin/users",
            headers=self._store._headers(),
            json=payload,
        )
        self._check(response)
        identity = Identity.from_user(response.json())
        logger.info("Created identity %s (%s)", identity.id, address)
        return identity

    async def update_secret(self, identity_id: str, secret: str) -> None:
        """Rotate an identity's secret."""
        client = await self._store._get_client()
        response = await client.put(
            f"/auth/v1/admin/users/{identity_id}",
            headers=self._store._headers(),
            json={"password": secret},
        )
        self._check(response)
        logger.info("Rotated secret for identity %s", identity_id)

    async def delete_identity(self, identity_id: str) -> None:
        """Delete an identity. Its role binding goes with it by store cascade."""
        client = await self._store._get_client()
        response = await client.delete(
            f"/auth/v1/admin/users/{identity_id}",
            headers=self._store._headers(),
        )
        self._check(response)
        logger.info("Deleted identity %s", identity_id)

    async def generate_recovery_link(
        self,
        identity: Identity,
        redirect_to: str | None = None,
    ) -> RecoveryArtifact:
        """Ask the identity store to mint a recovery link for an identity."""
        if not identity.address:
            raise NotFoundError(f"Identity {identity.id} has no address")
        client = await self._store._get_client()
        payload: dict[str, Any] = {"type": "recovery", "email": identity.address}
        if redirect_to:
            payload["redirect_to"] = redirect_to
        response = await client.post(
            "/auth/v1/admin/generate_link",
            headers=self._store._headers(),
            json=payload,
        )
        self._check(response)
        data = response.json()
        properties = data.get("properties") or {}
        return RecoveryArtifact(
            identity_id=identity.id,
            address=identity.address,
            action_link=properties.get("action_link") or data.get("action_link"),
            redirect_to=properties.get("redirect_to") or redirect_to,
        )

    async def get_identity_for_token(self, token: str) -> Identity:
        """
        Resolve the identity a bearer token was issued to.

        Raises:
            AuthenticationError: If the store rejects the token
        """
        client = await self._store._get_client()
        response = await client.get(
            "/auth/v1/user",
            headers={"apikey": self._store.service_key, "Authorization": f"Bearer {token}"},
        )
        if response.status_code in (401, 403):
            raise AuthenticationError("Invalid authentication")
        self._check(response)
        return Identity.from_user(response.json())

    async def health_check(self) -> bool:
        """Check if the identity store is reachable and healthy."""
        try:
            client = await self._store._get_client()
            response = await client.get(
                "/auth/v1/health", headers={"apikey": self._store.service_key}
            )
            return response.status_code == 200
        except Exception:
            return False
