"""Tests for account endpoints."""

from unittest.mock import AsyncMock

import httpx
import pytest

from careconnect.accounts.models import Identity, ProfileKind, Role, RoleBinding
from careconnect.core.auth import AuthenticatedUser
from careconnect.exceptions import StoreError
from tests.conftest import TEST_IDENTITY_ID, TEST_STAFF_ID, ClientFactory, make_profile


class TestListAccounts:
    """Tests for GET /accounts."""

    @pytest.mark.anyio
    async def test_lists_bindings_with_display_names(
        self,
        client_factory: ClientFactory,
        mock_record_store: AsyncMock,
    ) -> None:
        mock_record_store.list_bindings.return_value = [
            RoleBinding(identity_id="u-1", role=Role.DOCTOR, account_number="DOC001"),
        ]
        mock_record_store.find_profile_by_identity.return_value = make_profile(
            ProfileKind.DOCTOR, "d-1", name="Dr. Cruz", user_id="u-1"
        )

        async with client_factory() as client:
            response = await client.get("/accounts", params={"role": "doctor"})

        assert response.status_code == 200
        assert response.json() == {
            "users": [
                {
                    "userId": "u-1",
                    "role": "doctor",
                    "accountNumber": "DOC001",
                    "patientNumber": None,
                    "displayName": "Dr. Cruz",
                }
            ]
        }
        mock_record_store.list_bindings.assert_awaited_once_with(Role.DOCTOR)

    @pytest.mark.anyio
    async def test_all_means_no_filter(
        self,
        client_factory: ClientFactory,
        mock_record_store: AsyncMock,
    ) -> None:
        async with client_factory() as client:
            response = await client.get("/accounts", params={"role": "all"})

        assert response.status_code == 200
        mock_record_store.list_bindings.assert_awaited_once_with(None)

    @pytest.mark.anyio
    async def test_unknown_role_filter(self, client_factory: ClientFactory) -> None:
        async with client_factory() as client:
            response = await client.get("/accounts", params={"role": "janitor"})

        assert response.status_code == 400


class TestProvisionAccount:
    """Tests for POST /accounts."""

    @pytest.mark.anyio
    async def test_creates_account(
        self,
        client_factory: ClientFactory,
        mock_identity_store: AsyncMock,
    ) -> None:
        async with client_factory() as client:
            response = await client.post(
                "/accounts",
                json={
                    "role": "medtech",
                    "name": "Ann Lee",
                    "accountNumber": "MED001",
                    "password": "secret123",
                },
            )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "User created",
            "userId": TEST_IDENTITY_ID,
        }
        assert (
            mock_identity_store.create_identity.await_args.args[0]
            == "med001@careconnect.com"
        )

    @pytest.mark.anyio
    async def test_existing_account_is_updated(
        self,
        client_factory: ClientFactory,
        mock_identity_store: AsyncMock,
    ) -> None:
        mock_identity_store.find_identity_by_address.return_value = Identity(
            id="existing", address="med001@careconnect.com"
        )

        async with client_factory() as client:
            response = await client.post(
                "/accounts",
                json={
                    "role": "medtech",
                    "name": "Ann Lee",
                    "accountNumber": "MED001",
                    "password": "secret123",
                },
            )

        assert response.status_code == 200
        assert response.json()["message"] == "User updated"
        assert response.json()["userId"] == "existing"

    @pytest.mark.anyio
    async def test_doctor_with_linked_profile_and_specialty(
        self,
        client_factory: ClientFactory,
        mock_record_store: AsyncMock,
    ) -> None:
        mock_record_store.get_profile.return_value = make_profile(
            ProfileKind.DOCTOR, "d-7"
        )

        async with client_factory() as client:
            response = await client.post(
                "/accounts",
                json={
                    "role": "doctor",
                    "name": "Dr. Cruz",
                    "accountNumber": "DOC007",
                    "password": "secret123",
                    "linkedId": "d-7",
                    "specialty": "Cardiology",
                },
            )

        assert response.status_code == 200
        kind, profile_id, values = mock_record_store.update_profile.await_args.args
        assert (kind, profile_id) == (ProfileKind.DOCTOR, "d-7")
        assert values["specialty"] == "Cardiology"

    @pytest.mark.anyio
    async def test_missing_fields(
        self,
        client_factory: ClientFactory,
        mock_identity_store: AsyncMock,
    ) -> None:
        async with client_factory() as client:
            response = await client.post("/accounts", json={"role": "doctor"})

        assert response.status_code == 400
        assert response.json()["detail"] == (
            "Missing required fields: role, name, accountNumber, password"
        )
        mock_identity_store.find_identity_by_address.assert_not_called()

    @pytest.mark.anyio
    async def test_short_password(self, client_factory: ClientFactory) -> None:
        async with client_factory() as client:
            response = await client.post(
                "/accounts",
                json={
                    "role": "medtech",
                    "name": "Ann",
                    "accountNumber": "MED001",
                    "password": "short",
                },
            )

        assert response.status_code == 400
        assert response.json()["detail"] == "Password must be at least 8 characters long."

    @pytest.mark.anyio
    async def test_linked_profile_not_found(self, client_factory: ClientFactory) -> None:
        async with client_factory() as client:
            response = await client.post(
                "/accounts",
                json={
                    "role": "radtech",
                    "name": "Rae",
                    "accountNumber": "RAD001",
                    "password": "secret123",
                    "linkedId": "missing",
                },
            )

        assert response.status_code == 404

    @pytest.mark.anyio
    async def test_store_failure_returns_store_message(
        self,
        client_factory: ClientFactory,
        mock_record_store: AsyncMock,
    ) -> None:
        mock_record_store.upsert_binding.side_effect = StoreError(
            "Record store error: permission denied for table user_roles", 403
        )

        async with client_factory() as client:
            response = await client.post(
                "/accounts",
                json={
                    "role": "staff",
                    "name": "staff002",
                    "accountNumber": "staff002",
                    "password": "secret123",
                },
            )

        assert response.status_code == 500
        assert "permission denied" in response.json()["detail"]

    @pytest.mark.anyio
    async def test_non_staff_caller_is_forbidden(
        self,
        client_factory: ClientFactory,
        mock_authenticated_user: AuthenticatedUser,
        mock_identity_store: AsyncMock,
    ) -> None:
        mock_authenticated_user.role = Role.DOCTOR

        async with client_factory() as client:
            response = await client.post(
                "/accounts",
                json={
                    "role": "staff",
                    "name": "x",
                    "accountNumber": "x",
                    "password": "secret123",
                },
            )

        assert response.status_code == 403
        mock_identity_store.find_identity_by_address.assert_not_called()


class TestDeprovisionAccount:
    """Tests for DELETE /accounts."""

    @pytest.mark.anyio
    async def test_deletes_identity(
        self,
        client_factory: ClientFactory,
        mock_identity_store: AsyncMock,
        mock_record_store: AsyncMock,
    ) -> None:
        async with client_factory() as client:
            response = await client.request("DELETE", "/accounts", json={"userId": "u-2"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "User deleted successfully"}
        mock_identity_store.delete_identity.assert_awaited_once_with("u-2")
        mock_record_store.update_profile.assert_not_called()

    @pytest.mark.anyio
    async def test_self_deletion(
        self,
        client_factory: ClientFactory,
        mock_identity_store: AsyncMock,
    ) -> None:
        async with client_factory() as client:
            response = await client.request(
                "DELETE", "/accounts", json={"userId": TEST_STAFF_ID}
            )

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot delete your own account"
        mock_identity_store.delete_identity.assert_not_called()

    @pytest.mark.anyio
    async def test_identity_store_unreachable(
        self,
        client_factory: ClientFactory,
        mock_identity_store: AsyncMock,
    ) -> None:
        mock_identity_store.delete_identity.side_effect = httpx.ConnectError("refused")

        async with client_factory() as client:
            response = await client.request("DELETE", "/accounts", json={"userId": "u-2"})

        assert response.status_code == 503


class TestChangeOwnPassword:
    """Tests for POST /accounts/me/password."""

    @pytest.mark.anyio
    async def test_any_role_can_change_own_password(
        self,
        client_factory: ClientFactory,
        mock_authenticated_user: AuthenticatedUser,
        mock_identity_store: AsyncMock,
        mock_record_store: AsyncMock,
    ) -> None:
        mock_authenticated_user.role = Role.PATIENT
        mock_record_store.get_binding.return_value = RoleBinding.for_account(
            TEST_STAFF_ID, Role.PATIENT, "PAT001"
        )

        async with client_factory() as client:
            response = await client.post(
                "/accounts/me/password",
                json={"newPassword": "newsecret1", "confirmPassword": "newsecret1"},
            )

        assert response.status_code == 200
        mock_identity_store.update_secret.assert_awaited_once_with(
            TEST_STAFF_ID, "newsecret1"
        )

    @pytest.mark.anyio
    async def test_mismatch(self, client_factory: ClientFactory) -> None:
        async with client_factory() as client:
            response = await client.post(
                "/accounts/me/password",
                json={"newPassword": "newsecret1", "confirmPassword": "other"},
            )

        assert response.status_code == 400
        assert response.json()["detail"] == "New passwords do not match"
