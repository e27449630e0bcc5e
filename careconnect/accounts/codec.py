"""
Account number codec.

Login addresses are never chosen by hand: they are derived from the
account number an administrator assigns (e.g. ``MED001`` becomes
``med001@careconnect.com``).
"""

import re

DEFAULT_ORGANIZATION_DOMAIN = "careconnect.com"


def normalize_account_number(account_number: str) -> str:
    """Canonical stored form of an account number (trimmed, upper-case)."""
    return account_number.strip().upper()


def derive_address(
    account_number: str, domain: str = DEFAULT_ORGANIZATION_DOMAIN
) -> str:
    """Derive the login address for an account number."""
    return f"{account_number.strip().lower()}@{domain}"


def local_part(address: str) -> str:
    """Return the part of an address before the domain separator."""
    return address.split("@", 1)[0]


def is_allowed_address(
    address: str | None, domain: str = DEFAULT_ORGANIZATION_DOMAIN
) -> bool:
    """Check an address against the organization allow-list pattern."""
    if not address:
        return False
    pattern = rf"[a-z0-9_]+@{re.escape(domain)}"
    return re.fullmatch(pattern, address.strip(), flags=re.IGNORECASE) is not None
