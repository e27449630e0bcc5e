"""Schemas for shadow password endpoints."""

from careconnect.accounts.models import ProfileRecord
from careconnect.schemas.base import CamelModel


class ShadowPasswordEntry(CamelModel):
    """A profile and its administrator-visible password."""

    profile_id: str
    name: str
    account_number: str | None = None
    has_password: bool
    password: str | None = None

    @classmethod
    def from_profile(cls, profile: ProfileRecord) -> "ShadowPasswordEntry":
        return cls(
            profile_id=profile.id,
            name=profile.name,
            account_number=profile.account_number,
            has_password=bool(profile.shadow_password),
            password=profile.shadow_password,
        )


class ShadowPasswordListResponse(CamelModel):
    entries: list[ShadowPasswordEntry]


class GeneratedPasswordResponse(CamelModel):
    password: str


class SetShadowPasswordRequest(CamelModel):
    password: str | None = None


class ResetShadowPasswordRequest(CamelModel):
    original_password: str | None = None
