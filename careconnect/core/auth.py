"""
Bearer-token authentication for the accounts API.

Tokens are issued by the identity store. They are verified one of two ways:
1. Locally with PyJWT, when the identity store JWT secret is configured
2. By asking the identity store who the token belongs to, otherwise

The caller's role is read from their role binding; administrative
endpoints additionally require the staff role.

Usage:
    from careconnect.core.auth import StaffUserDep

    @router.post("/endpoint")
    async def endpoint(user: StaffUserDep):
        ...
"""

from typing import Annotated, Any

import jwt
from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel

from careconnect.accounts.models import Role
from careconnect.clients.identity_store import get_identity_store_service
from careconnect.clients.record_store import get_record_store_service
from careconnect.exceptions import AuthenticationError
from careconnect.services.identity_store_service import IdentityStoreService
from careconnect.services.record_store_service import RecordStoreService
from careconnect.settings import settings

TOKEN_AUDIENCE = "authenticated"


class AuthenticatedUser(BaseModel):
    """Represents the caller behind a bearer token."""

    identity_id: str
    email: str | None = None
    role: Role | None = None
    raw_token: str | None = None

    @property
    def is_staff(self) -> bool:
        return self.role == Role.STAFF


def verify_access_token(token: str, secret: str) -> dict[str, Any]:
    """Verify an identity store access token.

    Args:
        token: The JWT to verify
        secret: The identity store JWT secret

    Returns:
        The decoded token payload

    Raises:
        HTTPException: If the token is invalid or expired
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            audience=TOKEN_AUDIENCE,
            options={"verify_exp": True, "require": ["sub", "exp"]},
        )
        return payload
    except jwt.ExpiredSignatureError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token has expired",
        ) from e
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid access token: {e}",
        ) from e


def _get_bearer_token(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None


async def get_current_user(
    request: Request,
    identity_store: Annotated[IdentityStoreService, Depends(get_identity_store_service)],
    record_store: Annotated[RecordStoreService, Depends(get_record_store_service)],
) -> AuthenticatedUser:
    """Get the current authenticated user.

    Raises:
        HTTPException: 401 if no valid token is presented
    """
    token = _get_bearer_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if settings.identity_store_jwt_secret:
        payload = verify_access_token(token, settings.identity_store_jwt_secret)
        identity_id = str(payload["sub"])
        email = payload.get("email")
    else:
        try:
            identity = await identity_store.get_identity_for_token(token)
        except AuthenticationError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication",
                headers={"WWW-Authenticate": "Bearer"},
            ) from e
        identity_id = identity.id
        email = identity.address

    binding = await record_store.get_binding(identity_id)
    return AuthenticatedUser(
        identity_id=identity_id,
        email=email,
        role=binding.role if binding else None,
        raw_token=token,
    )


# Type alias for dependency injection
CurrentUserDep = Annotated[AuthenticatedUser, Depends(get_current_user)]


async def require_staff(user: CurrentUserDep) -> AuthenticatedUser:
    """Reject callers that do not hold the staff role."""
    if not user.is_staff:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions. Staff role required.",
        )
    return user


StaffUserDep = Annotated[AuthenticatedUser, Depends(require_staff)]
