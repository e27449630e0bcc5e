"""Shared dependencies for routers."""

from typing import Annotated

from fastapi import Depends

from careconnect.accounts.deprovisioning import DeprovisioningService
from careconnect.accounts.directory import AccountDirectory
from careconnect.accounts.models import AccountPolicy
from careconnect.accounts.provisioning import ProvisioningService
from careconnect.accounts.recovery import RecoveryService
from careconnect.accounts.self_service import SelfServiceService
from careconnect.accounts.shadow_passwords import ShadowPasswordService
from careconnect.clients.identity_store import get_identity_store_service
from careconnect.clients.record_store import get_record_store_service
from careconnect.core.auth import CurrentUserDep, StaffUserDep
from careconnect.services.identity_store_service import IdentityStoreService
from careconnect.services.record_store_service import RecordStoreService
from careconnect.settings import settings

# Typed dependency aliases for use in endpoint signatures
IdentityStoreServiceDep = Annotated[
    IdentityStoreService, Depends(get_identity_store_service)
]
RecordStoreServiceDep = Annotated[RecordStoreService, Depends(get_record_store_service)]


def get_account_policy() -> AccountPolicy:
    """Account rules from application settings."""
    return AccountPolicy.from_settings(settings)


AccountPolicyDep = Annotated[AccountPolicy, Depends(get_account_policy)]


def get_provisioning_service(
    identity_store: IdentityStoreServiceDep,
    record_store: RecordStoreServiceDep,
    policy: AccountPolicyDep,
) -> ProvisioningService:
    return ProvisioningService(identity_store, record_store, policy)


ProvisioningServiceDep = Annotated[
    ProvisioningService, Depends(get_provisioning_service)
]


def get_deprovisioning_service(
    identity_store: IdentityStoreServiceDep,
) -> DeprovisioningService:
    return DeprovisioningService(identity_store)


def get_recovery_service(
    identity_store: IdentityStoreServiceDep,
    record_store: RecordStoreServiceDep,
    provisioning: ProvisioningServiceDep,
    policy: AccountPolicyDep,
) -> RecoveryService:
    return RecoveryService(identity_store, record_store, provisioning, policy)


def get_shadow_password_service(
    record_store: RecordStoreServiceDep,
    policy: AccountPolicyDep,
) -> ShadowPasswordService:
    return ShadowPasswordService(record_store, policy)


def get_self_service_service(
    identity_store: IdentityStoreServiceDep,
    record_store: RecordStoreServiceDep,
    policy: AccountPolicyDep,
) -> SelfServiceService:
    return SelfServiceService(identity_store, record_store, policy)


def get_account_directory(
    identity_store: IdentityStoreServiceDep,
    record_store: RecordStoreServiceDep,
) -> AccountDirectory:
    return AccountDirectory(identity_store, record_store)


DeprovisioningServiceDep = Annotated[
    DeprovisioningService, Depends(get_deprovisioning_service)
]
RecoveryServiceDep = Annotated[RecoveryService, Depends(get_recovery_service)]
ShadowPasswordServiceDep = Annotated[
    ShadowPasswordService, Depends(get_shadow_password_service)
]
SelfServiceServiceDep = Annotated[SelfServiceService, Depends(get_self_service_service)]
AccountDirectoryDep = Annotated[AccountDirectory, Depends(get_account_directory)]

__all__ = [
    "AccountDirectoryDep",
    "AccountPolicyDep",
    "CurrentUserDep",
    "DeprovisioningServiceDep",
    "IdentityStoreServiceDep",
    "ProvisioningServiceDep",
    "RecordStoreServiceDep",
    "RecoveryServiceDep",
    "SelfServiceServiceDep",
    "ShadowPasswordServiceDep",
    "StaffUserDep",
]
