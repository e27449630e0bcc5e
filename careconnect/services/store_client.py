"""
Shared HTTP plumbing for the identity and record stores.

Both stores live behind the same project URL and accept the same service
key, sent as ``apikey`` and as a bearer token.
"""

from typing import Any

import httpx

from careconnect.exceptions import StoreError
from careconnect.settings import settings
from careconnect.utils.secret_manager import get_identity_store_service_key


def error_message(response: httpx.Response) -> str:
    """Extract the most specific error message a store sent back."""
    try:
        body: Any = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            value = body.get(key)
            if value:
                return str(value)
    return f"HTTP {response.status_code}"


class StoreClient:
    """Lazily-created httpx client authenticated with the service key."""

    store_name = "store"

    def __init__(
        self,
        base_url: str | None = None,
        service_key: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.identity_store_url).rstrip("/")
        self.timeout = timeout or settings.identity_store_timeout
        self._service_key = service_key
        self._client = client

    @property
    def service_key(self) -> str:
        if self._service_key is None:
            self._service_key = get_identity_store_service_key()
        return self._service_key

    def _headers(self, **extra: str) -> dict[str, str]:
        headers = {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
        }
        headers.update(extra)
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _check(self, response: httpx.Response) -> None:
        """Raise StoreError carrying the store's own message on failure."""
        if response.is_success:
            return
        raise StoreError(
            f"{self.store_name} error: {error_message(response)}",
            status_code=response.status_code,
        )
