from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="APPHUB_",
        env_file=".env",
        extra="ignore",
    )

    # Runtime
    ENVIRONMENT: str = Field(default="dev", description="Environment name")
    HOST: str = Field(default="0.0.0.0", description="Bind host")
    PORT: int = Field(default=7920, description="Bind port")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level for `apphub start`")

    # Database
    DATABASE_URL: str = Field(default="sqlite:///apphub_dev.db")
    TEST_DATABASE_URL: str = Field(default="sqlite:///:memory:")
    SCHEMA_MODE: str = Field(
        default="create_all",
        description="create_all: auto-create tables on startup; external: tables are managed elsewhere",
    )

    # Auth (built-in)
    JWT_SECRET_KEY: str = Field(
        default="apphub-dev-secret-change-me",
        description="HS256 secret for dev; override in production",
    )
    JWT_ACCESS_TOKEN_TTL_SECONDS: int = Field(
        default=3600, description="Access token TTL seconds"
    )
    AUTH_LEEWAY_SECONDS: int = Field(default=0, description="JWT exp leeway seconds")
    PASSWORD_MIN_LENGTH: int = Field(default=6, description="Minimum password length")

    # Invitations
    INVITATION_TTL_DAYS: int = Field(default=7, description="Days before an invitation expires")
    PUBLIC_APP_URL: str = Field(
        default="http://localhost:3000",
        description="Base URL of the front end; used to build registration links",
    )

    # Catalog icon enrichment
    ICON_ENRICHMENT_MODE: str = Field(
        default="favicon", description="off|favicon|scrape"
    )
    FAVICON_SERVICE_URL: str = Field(
        default="https://www.google.com/s2/favicons?domain={host}&sz=64",
        description="Template used to derive an icon from an app URL host",
    )
    METADATA_TIMEOUT_SECONDS: float = Field(
        default=5.0, description="Timeout for page metadata scraping"
    )

    # Outbound email (HTTP mail API)
    MAIL_API_URL: str = Field(default="", description="Mail API endpoint; empty logs emails instead")
    MAIL_API_KEY: str = Field(default="")
    MAIL_FROM_ADDRESS: str = Field(default="no-reply@apphub.local")
    MAIL_TIMEOUT_SECONDS: float = Field(default=10.0)

    # System settings
    DEFAULT_SITE_NAME: str = Field(default="MyAppHub")
    SITE_ICON_MAX_BYTES: int = Field(
        default=512 * 1024, description="Upper bound for an uploaded site icon"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
