"""Account listing, provisioning and removal endpoints."""

from fastapi import APIRouter, Query

from careconnect.accounts.models import Role
from careconnect.exceptions import ValidationError
from careconnect.routers.deps import (
    AccountDirectoryDep,
    CurrentUserDep,
    DeprovisioningServiceDep,
    ProvisioningServiceDep,
    SelfServiceServiceDep,
    StaffUserDep,
)
from careconnect.schemas.accounts import (
    AccountListResponse,
    AccountResponse,
    ChangePasswordRequest,
    DeprovisionRequest,
    ProvisionRequest,
    ProvisionResponse,
)
from careconnect.schemas.base import ActionResponse

router = APIRouter(prefix="/accounts", tags=["Accounts"])


def _parse_role_filter(role: str | None) -> Role | None:
    if not role or role == "all":
        return None
    try:
        return Role(role)
    except ValueError as e:
        raise ValidationError(f"Unknown role: {role}") from e


@router.get("", response_model=AccountListResponse)
async def list_accounts(
    directory: AccountDirectoryDep,
    current_user: StaffUserDep,
    role: str | None = Query(default=None, description="Role filter, or 'all'"),
) -> AccountListResponse:
    """List role bindings with the display name of each linked profile."""
    summaries = await directory.list_accounts(_parse_role_filter(role))
    return AccountListResponse(
        users=[
            AccountResponse(
                user_id=s.binding.identity_id,
                role=s.binding.role,
                account_number=s.binding.account_number,
                patient_number=s.binding.patient_number,
                display_name=s.display_name,
            )
            for s in summaries
        ]
    )


@router.post("", response_model=ProvisionResponse)
async def provision_account(
    request: ProvisionRequest,
    provisioning: ProvisioningServiceDep,
    current_user: StaffUserDep,
) -> ProvisionResponse:
    """
    Create or update an account.

    The login address is derived from the account number. Re-submitting
    the same request converges on the same state, so a partially failed
    call can simply be retried.
    """
    extra = {"specialty": request.specialty} if request.specialty else None
    result = await provisioning.provision(
        request.role,
        request.name,
        request.account_number,
        request.password,
        linked_profile_id=request.linked_id,
        extra=extra,
    )
    return ProvisionResponse(
        message="User created" if result.created else "User updated",
        user_id=result.identity_id,
    )


@router.delete("", response_model=ActionResponse)
async def deprovision_account(
    request: DeprovisionRequest,
    deprovisioning: DeprovisioningServiceDep,
    current_user: StaffUserDep,
) -> ActionResponse:
    """Remove an account's identity. Profile records are kept."""
    await deprovisioning.deprovision(current_user.identity_id, request.user_id)
    return ActionResponse(message="User deleted successfully")


@router.post("/me/password", response_model=ActionResponse)
async def change_own_password(
    request: ChangePasswordRequest,
    self_service: SelfServiceServiceDep,
    current_user: CurrentUserDep,
) -> ActionResponse:
    """Change the caller's own password."""
    await self_service.change_own_password(
        current_user.identity_id, request.new_password, request.confirm_password
    )
    return ActionResponse(message="Password updated successfully")
