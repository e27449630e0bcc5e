"""
Account domain models.

Three stores hold account state:
- Identity: login credentials in the identity store
- RoleBinding: identity -> role + account number
- ProfileRecord: role-specific domain data, one relation per ProfileKind

Profiles exist independently of identities; ``identity_id`` on a profile is
a weak back-reference that may be missing for legacy records.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

from careconnect.accounts.codec import (
    DEFAULT_ORGANIZATION_DOMAIN,
    normalize_account_number,
)
from careconnect.exceptions import ValidationError

IDENTITY_COLUMN = "user_id"
SHADOW_PASSWORD_COLUMN = "temp_password"


class Role(str, Enum):
    """Authorization roles carried by role bindings."""

    STAFF = "staff"
    DOCTOR = "doctor"
    MEDTECH = "medtech"
    RADTECH = "radtech"
    PATIENT = "patient"


class ProfileKind(str, Enum):
    """Kinds of profile record, one relation each."""

    DOCTOR = "doctor"
    MEDTECH = "medtech"
    RADTECH = "radtech"
    PATIENT = "patient"


def profile_kind_for(role: Role) -> ProfileKind | None:
    """Profile kind backing a role, or None for roles without profiles."""
    try:
        return ProfileKind(role.value)
    except ValueError:
        return None


@dataclass(frozen=True)
class ProfileTable:
    """How a profile kind is stored and provisioned."""

    kind: ProfileKind
    relation: str
    account_number_column: str = "account_number"
    has_shadow_password: bool = True
    created_on_provision: bool = True
    # Linking an existing record also rewrites its account number
    relinks_account_number: bool = False
    # Role-specific columns filled from provisioning extras or policy defaults
    role_fields: tuple[str, ...] = ()


PROFILE_TABLES: dict[ProfileKind, ProfileTable] = {
    ProfileKind.DOCTOR: ProfileTable(
        kind=ProfileKind.DOCTOR,
        relation="doctors",
        has_shadow_password=False,
        relinks_account_number=True,
        role_fields=("specialty",),
    ),
    ProfileKind.MEDTECH: ProfileTable(kind=ProfileKind.MEDTECH, relation="medtechs"),
    ProfileKind.RADTECH: ProfileTable(kind=ProfileKind.RADTECH, relation="radtechs"),
    ProfileKind.PATIENT: ProfileTable(
        kind=ProfileKind.PATIENT,
        relation="patients",
        account_number_column="patient_number",
        created_on_provision=False,
    ),
}


class Identity(BaseModel):
    """A login identity as returned by the identity store."""

    model_config = ConfigDict(frozen=True)

    id: str
    address: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_user(cls, data: Mapping[str, Any]) -> "Identity":
        """Build from an identity store user object."""
        return cls(
            id=str(data["id"]),
            address=data.get("email"),
            metadata=data.get("user_metadata") or {},
        )


class RoleBinding(BaseModel):
    """Associates one identity with one role and account number."""

    model_config = ConfigDict(frozen=True)

    identity_id: str
    role: Role
    account_number: str | None = None
    patient_number: str | None = None

    @classmethod
    def for_account(
        cls, identity_id: str, role: Role, account_number: str
    ) -> "RoleBinding":
        """Binding for a provisioned account; patients mirror the account number."""
        normalized = normalize_account_number(account_number)
        return cls(
            identity_id=identity_id,
            role=role,
            account_number=normalized,
            patient_number=normalized if role == Role.PATIENT else None,
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "RoleBinding":
        return cls(
            identity_id=str(row[IDENTITY_COLUMN]),
            role=Role(row["role"]),
            account_number=row.get("account_number"),
            patient_number=row.get("patient_number"),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            IDENTITY_COLUMN: self.identity_id,
            "role": self.role.value,
            "account_number": self.account_number,
            "patient_number": self.patient_number,
        }


class ProfileRecord(BaseModel):
    """Role-specific profile data, linked to an identity at most weakly."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: ProfileKind
    name: str = ""
    account_number: str | None = None
    identity_id: str | None = None
    shadow_password: str | None = None
    fields: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_row(cls, kind: ProfileKind, row: Mapping[str, Any]) -> "ProfileRecord":
        """Build from a record store row of the kind's relation."""
        table = PROFILE_TABLES[kind]
        known = {
            "id",
            "name",
            IDENTITY_COLUMN,
            SHADOW_PASSWORD_COLUMN,
            table.account_number_column,
        }
        identity_id = row.get(IDENTITY_COLUMN)
        return cls(
            id=str(row["id"]),
            kind=kind,
            name=row.get("name") or "",
            account_number=row.get(table.account_number_column),
            identity_id=str(identity_id) if identity_id else None,
            shadow_password=row.get(SHADOW_PASSWORD_COLUMN),
            fields={k: v for k, v in row.items() if k not in known},
        )


@dataclass(frozen=True)
class AccountPolicy:
    """Organization-wide account rules, fixed at service construction."""

    organization_domain: str = DEFAULT_ORGANIZATION_DOMAIN
    bootstrap_staff_address: str = f"staff001@{DEFAULT_ORGANIZATION_DOMAIN}"
    min_password_length: int = 8
    field_defaults: Mapping[str, str] = field(
        default_factory=lambda: {"specialty": "General Practice"}
    )
    reset_redirect_url: str | None = None
    shadow_password_length: int = 12

    @classmethod
    def from_settings(cls, settings: Any) -> "AccountPolicy":
        return cls(
            organization_domain=settings.organization_domain,
            bootstrap_staff_address=settings.bootstrap_staff_address,
            min_password_length=settings.min_password_length,
            field_defaults={"specialty": settings.default_doctor_specialty},
            reset_redirect_url=settings.password_reset_redirect_url,
            shadow_password_length=settings.shadow_password_length,
        )

    def validate_secret(self, secret: str | None) -> str:
        """Return the secret if it is long enough, else raise ValidationError."""
        if not secret or len(secret) < self.min_password_length:
            raise ValidationError(
                f"Password must be at least {self.min_password_length} characters long."
            )
        return secret
