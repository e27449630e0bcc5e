"""Schemas for account and credential endpoints.

Request fields are optional at the schema level; required-field checks
happen in the account services so that missing input is reported as a
400 with a domain message rather than a 422.
"""

from pydantic import Field

from careconnect.accounts.models import Role
from careconnect.schemas.base import ActionResponse, CamelModel


class AccountResponse(CamelModel):
    """One role binding with its display name."""

    user_id: str
    role: Role
    account_number: str | None = None
    patient_number: str | None = None
    display_name: str


class AccountListResponse(CamelModel):
    """Response model for account listing."""

    users: list[AccountResponse]


class ProvisionRequest(CamelModel):
    """Request model for creating or updating an account."""

    role: str | None = None
    name: str | None = None
    account_number: str | None = None
    password: str | None = None
    linked_id: str | None = Field(
        default=None,
        description="Existing profile to link instead of creating a new one",
    )
    specialty: str | None = Field(
        default=None,
        description="Doctor specialty; the configured default is used when omitted",
    )


class ProvisionResponse(ActionResponse):
    """Response model for account provisioning."""

    user_id: str


class DeprovisionRequest(CamelModel):
    """Request model for removing an account."""

    user_id: str | None = None


class ChangePasswordRequest(CamelModel):
    """Request model for a caller changing their own password."""

    new_password: str | None = None
    confirm_password: str | None = None


class CredentialRequest(CamelModel):
    """Address and password, used by bootstrap and staff password set."""

    email: str | None = None
    password: str | None = None


class PasswordResetRequest(CamelModel):
    """Request model for issuing a password reset."""

    email: str | None = None
    redirect_to: str | None = None
