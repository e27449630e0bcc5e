"""Shadow password endpoints for technologist and patient profiles."""

from fastapi import APIRouter

from careconnect.routers.deps import ShadowPasswordServiceDep, StaffUserDep
from careconnect.schemas.base import ActionResponse
from careconnect.schemas.shadow_passwords import (
    GeneratedPasswordResponse,
    ResetShadowPasswordRequest,
    SetShadowPasswordRequest,
    ShadowPasswordEntry,
    ShadowPasswordListResponse,
)

router = APIRouter(prefix="/shadow-passwords", tags=["Shadow passwords"])


@router.post("/generate", response_model=GeneratedPasswordResponse)
async def generate_password(
    shadow: ShadowPasswordServiceDep,
    current_user: StaffUserDep,
) -> GeneratedPasswordResponse:
    """Generate a random password. Nothing is stored."""
    return GeneratedPasswordResponse(password=shadow.generate())


@router.get("/{kind}", response_model=ShadowPasswordListResponse)
async def list_shadow_passwords(
    kind: str,
    shadow: ShadowPasswordServiceDep,
    current_user: StaffUserDep,
) -> ShadowPasswordListResponse:
    """List profiles of a kind with their shadow passwords."""
    profiles = await shadow.list_shadow_passwords(kind)
    return ShadowPasswordListResponse(
        entries=[ShadowPasswordEntry.from_profile(p) for p in profiles]
    )


@router.put("/{kind}/{profile_id}", response_model=ActionResponse)
async def set_shadow_password(
    kind: str,
    profile_id: str,
    request: SetShadowPasswordRequest,
    shadow: ShadowPasswordServiceDep,
    current_user: StaffUserDep,
) -> ActionResponse:
    """Assign a shadow password to a profile."""
    await shadow.set_shadow_password(profile_id, kind, request.password)
    return ActionResponse(message="Password assigned successfully")


@router.post("/{kind}/{profile_id}/reset", response_model=ActionResponse)
async def reset_shadow_password(
    kind: str,
    profile_id: str,
    request: ResetShadowPasswordRequest,
    shadow: ShadowPasswordServiceDep,
    current_user: StaffUserDep,
) -> ActionResponse:
    """Restore a profile's shadow password to its original value."""
    await shadow.reset_shadow_password(profile_id, kind, request.original_password)
    return ActionResponse(message="Password reset to original")
