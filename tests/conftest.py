"""Test configuration and fixtures."""

from typing import Any, Callable, Generator, Protocol
from unittest.mock import AsyncMock

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from careconnect.accounts.models import (
    AccountPolicy,
    Identity,
    ProfileKind,
    ProfileRecord,
    Role,
)
from careconnect.clients.identity_store import get_identity_store_service
from careconnect.clients.record_store import get_record_store_service
from careconnect.core.auth import AuthenticatedUser, get_current_user
from careconnect.main import app
from careconnect.services.identity_store_service import (
    IdentityStoreService,
    RecoveryArtifact,
)
from careconnect.services.record_store_service import RecordStoreService
from careconnect.services.store_client import StoreClient

TEST_STAFF_ID = "00000000-0000-0000-0000-000000000001"
TEST_IDENTITY_ID = "00000000-0000-0000-0000-000000000002"
TEST_BASE_URL = "http://stores.test"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Configure pytest-anyio to use asyncio."""
    return "asyncio"


@pytest.fixture
def policy() -> AccountPolicy:
    """Account policy with the organization defaults."""
    return AccountPolicy(reset_redirect_url="http://localhost:3000/reset-password")


@pytest.fixture
def mock_identity_store() -> AsyncMock:
    """Mock identity store with no identities."""
    mock = AsyncMock(spec=IdentityStoreService)
    mock.list_all_identities.return_value = []
    mock.find_identity_by_address.return_value = None
    mock.create_identity.side_effect = lambda address, secret, metadata=None: Identity(
        id=TEST_IDENTITY_ID, address=address, metadata=metadata or {}
    )
    mock.generate_recovery_link.side_effect = (
        lambda identity, redirect_to=None: RecoveryArtifact(
            identity_id=identity.id,
            address=identity.address or "",
            action_link="http://stores.test/auth/v1/verify?token=abc",
            redirect_to=redirect_to,
        )
    )
    mock.health_check.return_value = True
    return mock


@pytest.fixture
def mock_record_store() -> AsyncMock:
    """Mock record store with empty relations."""
    mock = AsyncMock(spec=RecordStoreService)
    mock.list_bindings.return_value = []
    mock.get_binding.return_value = None
    mock.upsert_binding.side_effect = lambda binding: binding
    mock.get_profile.return_value = None
    mock.find_profile_by_identity.return_value = None
    mock.find_profile_by_account_number.return_value = None
    mock.list_profiles.return_value = []
    mock.insert_profile.side_effect = lambda kind, values: make_profile(
        kind, "new-profile", **values
    )
    mock.update_profile.side_effect = lambda kind, profile_id, values: make_profile(
        kind, profile_id, **values
    )
    return mock


def make_profile(kind: ProfileKind, profile_id: str, **row: Any) -> ProfileRecord:
    """Build a profile record from column values."""
    return ProfileRecord.from_row(kind, {"id": profile_id, **row})


@pytest.fixture
def mock_authenticated_user() -> AuthenticatedUser:
    """Mock authenticated staff user for testing."""
    return AuthenticatedUser(
        identity_id=TEST_STAFF_ID,
        email="staff001@careconnect.com",
        role=Role.STAFF,
        raw_token="test-access-token",
    )


class ClientFactory(Protocol):
    """Protocol for client factory fixture."""

    def __call__(self) -> AsyncClient: ...


@pytest.fixture
def client_factory(
    mock_identity_store: AsyncMock,
    mock_record_store: AsyncMock,
    mock_authenticated_user: AuthenticatedUser,
) -> Generator[ClientFactory, None, None]:
    """Factory for creating test clients with mocked dependencies."""

    def _create_client() -> AsyncClient:
        app.dependency_overrides[get_identity_store_service] = (
            lambda: mock_identity_store
        )
        app.dependency_overrides[get_record_store_service] = lambda: mock_record_store
        app.dependency_overrides[get_current_user] = lambda: mock_authenticated_user

        transport = ASGITransport(app=app)
        return AsyncClient(transport=transport, base_url="http://testserver")

    yield _create_client

    app.dependency_overrides.clear()


Handler = Callable[[httpx.Request], httpx.Response]


def store_client(handler: Handler) -> StoreClient:
    """StoreClient whose HTTP traffic is answered by a handler function."""
    return StoreClient(
        base_url=TEST_BASE_URL,
        service_key="test-service-key",
        client=httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url=TEST_BASE_URL
        ),
    )
