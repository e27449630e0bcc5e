"""
Service key resolution.

The identity and record stores are administered with one service key. It
is read from settings when present (local development, tests) and from
Google Secret Manager otherwise (deployed environments).
"""

from functools import lru_cache

from google.cloud import secretmanager

from careconnect.settings import settings


class SecretManagerClient:
    """Reads secret versions from one GCP project."""

    def __init__(self, project_id: str | None = None) -> None:
        self.project_id = project_id or settings.gcp_project_id
        if not self.project_id:
            raise ValueError(
                "GCP project ID is required to read secrets. "
                "Set GCP_PROJECT_ID or IDENTITY_STORE_SERVICE_KEY."
            )
        self.client = secretmanager.SecretManagerServiceClient()

    def access(self, secret_id: str, version: str = "latest") -> str:
        """Return the payload of a secret version as text."""
        name = self.client.secret_version_path(self.project_id, secret_id, version)
        try:
            response = self.client.access_secret_version(request={"name": name})
        except Exception as e:
            raise RuntimeError(f"Failed to access secret {secret_id}: {e}") from e
        return response.payload.data.decode("UTF-8")


@lru_cache(maxsize=8)
def get_secret(secret_id: str, version: str = "latest") -> str:
    """Read a secret once per process."""
    return SecretManagerClient().access(secret_id, version)


def get_identity_store_service_key() -> str:
    """Service key for admin calls: explicit setting first, then Secret Manager."""
    if settings.identity_store_service_key:
        return settings.identity_store_service_key
    return get_secret(settings.service_key_secret_id)
