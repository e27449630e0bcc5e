"""Health check endpoint."""

from fastapi import APIRouter

from careconnect.routers.deps import IdentityStoreServiceDep
from careconnect.schemas.health import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    identity_store: IdentityStoreServiceDep,
) -> HealthResponse:
    """Check service health including identity store connectivity."""
    identity_store_healthy = await identity_store.health_check()

    return HealthResponse(
        status="healthy" if identity_store_healthy else "degraded",
        identity_store=identity_store_healthy,
    )
