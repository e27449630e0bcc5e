"""Tests for the record store client."""

import json

import httpx
import pytest

from careconnect.accounts.models import ProfileKind, Role, RoleBinding
from careconnect.exceptions import StoreError
from careconnect.services.record_store_service import RecordStoreService
from tests.conftest import store_client


class TestBindings:
    """Tests for role binding access."""

    @pytest.mark.anyio
    async def test_list_bindings_filters_by_role(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/rest/v1/user_roles"
            assert request.url.params["role"] == "eq.doctor"
            return httpx.Response(
                200,
                json=[{"user_id": "u-1", "role": "doctor", "account_number": "DOC001"}],
            )

        service = RecordStoreService(store=store_client(handler))

        bindings = await service.list_bindings(Role.DOCTOR)

        assert bindings == [
            RoleBinding(identity_id="u-1", role=Role.DOCTOR, account_number="DOC001")
        ]

    @pytest.mark.anyio
    async def test_get_missing_binding(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["user_id"] == "eq.u-1"
            return httpx.Response(200, json=[])

        service = RecordStoreService(store=store_client(handler))

        assert await service.get_binding("u-1") is None

    @pytest.mark.anyio
    async def test_upsert_merges_on_identity(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert request.url.params["on_conflict"] == "user_id"
            assert "resolution=merge-duplicates" in request.headers["prefer"]
            body = json.loads(request.content)
            assert body == {
                "user_id": "u-1",
                "role": "patient",
                "account_number": "PAT001",
                "patient_number": "PAT001",
            }
            return httpx.Response(201, json=[body])

        service = RecordStoreService(store=store_client(handler))

        binding = await service.upsert_binding(
            RoleBinding.for_account("u-1", Role.PATIENT, "pat001")
        )

        assert binding.patient_number == "PAT001"

    @pytest.mark.anyio
    async def test_store_error_message(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                409, json={"message": "duplicate key value violates unique constraint"}
            )

        service = RecordStoreService(store=store_client(handler))

        with pytest.raises(StoreError, match="Record store error: duplicate key"):
            await service.upsert_binding(
                RoleBinding.for_account("u-1", Role.STAFF, "STAFF001")
            )


class TestProfiles:
    """Tests for profile relation access."""

    @pytest.mark.anyio
    async def test_list_unlinked_patients(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/rest/v1/patients"
            assert request.url.params["user_id"] == "is.null"
            assert request.url.params["order"] == "name"
            return httpx.Response(
                200,
                json=[
                    {
                        "id": 7,
                        "name": "Jo",
                        "patient_number": "N001",
                        "user_id": None,
                        "temp_password": "abc",
                        "birth_date": "1990-01-01",
                    }
                ],
            )

        service = RecordStoreService(store=store_client(handler))

        profiles = await service.list_profiles(ProfileKind.PATIENT, unlinked_only=True)

        assert len(profiles) == 1
        profile = profiles[0]
        assert profile.id == "7"
        assert profile.account_number == "N001"
        assert profile.identity_id is None
        assert profile.shadow_password == "abc"
        assert profile.fields == {"birth_date": "1990-01-01"}

    @pytest.mark.anyio
    async def test_find_patient_by_patient_number(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/rest/v1/patients"
            assert request.url.params["patient_number"] == "eq.PAT001"
            return httpx.Response(
                200, json=[{"id": 3, "name": "Jo", "patient_number": "PAT001"}]
            )

        service = RecordStoreService(store=store_client(handler))

        profile = await service.find_profile_by_account_number(
            ProfileKind.PATIENT, "PAT001"
        )

        assert profile is not None
        assert profile.id == "3"
        assert profile.account_number == "PAT001"

    @pytest.mark.anyio
    async def test_update_missing_profile_returns_none(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "PATCH"
            assert request.url.path == "/rest/v1/medtechs"
            assert request.url.params["id"] == "eq.m-1"
            return httpx.Response(200, json=[])

        service = RecordStoreService(store=store_client(handler))

        assert (
            await service.update_profile(ProfileKind.MEDTECH, "m-1", {"temp_password": "x"})
            is None
        )

    @pytest.mark.anyio
    async def test_insert_doctor(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/rest/v1/doctors"
            assert request.headers["prefer"] == "return=representation"
            return httpx.Response(201, json=[{"id": "d-1", **json.loads(request.content)}])

        service = RecordStoreService(store=store_client(handler))

        profile = await service.insert_profile(
            ProfileKind.DOCTOR,
            {
                "name": "Dr. Cruz",
                "account_number": "DOC001",
                "user_id": "u-1",
                "specialty": "General Practice",
            },
        )

        assert profile.id == "d-1"
        assert profile.identity_id == "u-1"
        assert profile.fields == {"specialty": "General Practice"}
