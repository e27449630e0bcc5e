"""
Application settings for the CareConnect accounts service.

- Defaults are intended for development use.
- For testing, override via pyproject.toml [tool.pytest.ini_options].
- For production, set environment variables to override fields.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """CareConnect accounts service configuration."""

    # Identity store (GoTrue-compatible admin API) and record store (PostgREST)
    identity_store_url: str = Field(
        default="http://localhost:54321",
        description="Base URL of the project hosting the identity and record stores",
    )
    identity_store_service_key: str | None = Field(
        default=None,
        description="Service key for admin calls. Loaded from Secret Manager when unset.",
    )
    identity_store_jwt_secret: str | None = Field(
        default=None,
        description="Secret used to verify bearer tokens locally. "
        "When unset, tokens are introspected through the identity store.",
    )
    identity_store_timeout: float = Field(
        default=30.0,
        description="Timeout for identity and record store requests in seconds",
    )
    identity_list_page_size: int = Field(
        default=1000,
        description="Page size used when listing identities",
    )

    # GCP Configuration (Secret Manager only)
    gcp_project_id: str | None = Field(
        default=None,
        description="GCP project ID holding the service key secret",
    )
    service_key_secret_id: str = Field(
        default="identity-store-service-key",
        description="Secret Manager secret holding the identity store service key",
    )

    # Account policy
    organization_domain: str = Field(
        default="careconnect.com",
        description="Domain appended to account numbers to form login addresses",
    )
    bootstrap_staff_address: str = Field(
        default="staff001@careconnect.com",
        description="The only address the bootstrap endpoint will provision",
    )
    min_password_length: int = Field(
        default=8,
        description="Minimum length of identity secrets",
    )
    default_doctor_specialty: str = Field(
        default="General Practice",
        description="Specialty given to doctor profiles created without one",
    )
    password_reset_redirect_url: str | None = Field(
        default=None,
        description="Redirect target used when a reset request does not name one",
    )
    shadow_password_length: int = Field(
        default=12,
        description="Length of generated shadow passwords",
    )

    # HTTP boundary
    cors_origin_regex: str = Field(
        default=r"^(http://(localhost|127\.0\.0\.1)(:\d+)?|https://([a-zA-Z0-9-]+\.)*careconnect\.com)$",
        description="Origins allowed to call the API from a browser",
    )
    log_level: str = Field(default="INFO", description="Root log level")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def model_post_init(self, __context: object) -> None:
        """Initialize derived settings after model construction."""
        self.identity_store_url = self.identity_store_url.rstrip("/")
        self.organization_domain = self.organization_domain.lower().strip()
        self.bootstrap_staff_address = self.bootstrap_staff_address.lower().strip()


settings = Settings()
