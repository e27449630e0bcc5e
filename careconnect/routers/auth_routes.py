"""Password reset issuance and staff credential endpoints."""

from fastapi import APIRouter

from careconnect.routers.deps import RecoveryServiceDep, StaffUserDep
from careconnect.schemas.accounts import (
    CredentialRequest,
    PasswordResetRequest,
    ProvisionResponse,
)
from careconnect.schemas.base import ActionResponse

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/bootstrap", response_model=ProvisionResponse)
async def bootstrap_staff(
    request: CredentialRequest,
    recovery: RecoveryServiceDep,
) -> ProvisionResponse:
    """
    Create or repair the bootstrap staff account.

    Unauthenticated, and restricted to the configured bootstrap address.
    """
    result = await recovery.bootstrap_staff(request.email, request.password)
    return ProvisionResponse(
        message="Staff account created" if result.created else "Staff account updated",
        user_id=result.identity_id,
    )


@router.post("/password-reset", response_model=ActionResponse)
async def issue_password_reset(
    request: PasswordResetRequest,
    recovery: RecoveryServiceDep,
    current_user: StaffUserDep,
) -> ActionResponse:
    """
    Issue a password recovery link for an account.

    The link is delivered out of band and never echoed in the response.
    """
    await recovery.issue_reset(
        current_user.identity_id, request.email, request.redirect_to
    )
    return ActionResponse(message="Password reset email sent successfully")


@router.post("/staff-password", response_model=ProvisionResponse)
async def set_staff_password(
    request: CredentialRequest,
    recovery: RecoveryServiceDep,
    current_user: StaffUserDep,
) -> ProvisionResponse:
    """Set a staff account's password, creating the account if needed."""
    result = await recovery.reset_staff_password(request.email, request.password)
    return ProvisionResponse(
        message="Staff password updated successfully",
        user_id=result.identity_id,
    )
