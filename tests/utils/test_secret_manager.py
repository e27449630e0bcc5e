"""Tests for service key resolution."""

import pytest

from careconnect.settings import settings
from careconnect.utils import secret_manager


class TestServiceKey:
    """Tests for get_identity_store_service_key."""

    def test_explicit_setting_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "identity_store_service_key", "from-env")

        def fail(secret_id: str, version: str = "latest") -> str:
            raise AssertionError("Secret Manager should not be called")

        monkeypatch.setattr(secret_manager, "get_secret", fail)

        assert secret_manager.get_identity_store_service_key() == "from-env"

    def test_falls_back_to_secret_manager(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "identity_store_service_key", None)
        requested: list[str] = []

        def fake_get_secret(secret_id: str, version: str = "latest") -> str:
            requested.append(secret_id)
            return "from-secret-manager"

        monkeypatch.setattr(secret_manager, "get_secret", fake_get_secret)

        assert secret_manager.get_identity_store_service_key() == "from-secret-manager"
        assert requested == ["identity-store-service-key"]

    def test_missing_project_id(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "gcp_project_id", None)

        with pytest.raises(ValueError, match="GCP project ID is required"):
            secret_manager.SecretManagerClient()
