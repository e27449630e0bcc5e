"""CareConnect - Hospital account provisioning service."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from httpx import HTTPError
from pydantic import ValidationError as PydanticValidationError

from careconnect.clients.identity_store import get_identity_store_service
from careconnect.clients.record_store import get_record_store_service
from careconnect.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    PartialFailureError,
    StoreError,
    ValidationError,
)
from careconnect.routers import (
    accounts,
    auth_routes,
    health,
    reconciliation,
    shadow_passwords,
)
from careconnect.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan management."""
    # Startup
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    yield
    # Shutdown - release store connections
    await get_identity_store_service().close()
    await get_record_store_service().close()


app = FastAPI(
    title="CareConnect Accounts",
    description="Hospital account provisioning, reconciliation and credential management",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=settings.cors_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _detail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message})


@app.exception_handler(ValidationError)
async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    """Missing or malformed input."""
    return _detail(status.HTTP_400_BAD_REQUEST, str(exc))


@app.exception_handler(AuthenticationError)
async def handle_authentication_error(
    request: Request, exc: AuthenticationError
) -> JSONResponse:
    return _detail(status.HTTP_401_UNAUTHORIZED, str(exc))


@app.exception_handler(AuthorizationError)
async def handle_authorization_error(
    request: Request, exc: AuthorizationError
) -> JSONResponse:
    return _detail(status.HTTP_403_FORBIDDEN, str(exc))


@app.exception_handler(NotFoundError)
async def handle_not_found_error(request: Request, exc: NotFoundError) -> JSONResponse:
    return _detail(status.HTTP_404_NOT_FOUND, str(exc))


@app.exception_handler(StoreError)
async def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
    """Store rejections, including partially applied provisioning."""
    if isinstance(exc, PartialFailureError):
        logger.error(
            "Request %s %s left partial state: failed at %s after %s",
            request.method,
            request.url.path,
            exc.step,
            exc.completed_steps,
        )
    return _detail(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


@app.exception_handler(HTTPError)
async def handle_httpx_error(request: Request, exc: HTTPError) -> JSONResponse:
    """Handle network/connection errors from the store clients."""
    logger.warning("Store unreachable on %s %s: %s", request.method, request.url.path, exc)
    return _detail(status.HTTP_503_SERVICE_UNAVAILABLE, "Service temporarily unavailable")


@app.exception_handler(PydanticValidationError)
async def handle_pydantic_validation_error(
    request: Request, exc: PydanticValidationError
) -> JSONResponse:
    """Handle Pydantic ValidationError and return 422."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()},
    )


@app.exception_handler(Exception)
async def handle_unhandled_exceptions(request: Request, exc: Exception) -> JSONResponse:
    """Catch and log all unhandled exceptions."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Register routers
app.include_router(health.router)
app.include_router(accounts.router)
app.include_router(auth_routes.router)
app.include_router(shadow_passwords.router)
app.include_router(reconciliation.router)


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint."""
    return {"service": "careconnect-accounts", "version": "0.1.0"}
