"""Centralized application configuration via environment variables."""

from enum import StrEnum
from functools import lru_cache

from pydantic import SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class ScanTokenBackend(StrEnum):
    """Where scan tokens are stored.

    ``memory`` keeps tokens in-process and is only correct for a
    single-instance deployment.
    """

    DATABASE = "database"
    MEMORY = "memory"


class ConsumePolicy(StrEnum):
    """When the scan token is burned relative to the gated write."""

    BEFORE_WRITE = "before_write"
    AFTER_WRITE = "after_write"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Database URL is assembled from individual components to match
    the official PostgreSQL Docker image environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- App ---
    environment: Environment = Environment.DEVELOPMENT
    log_level: str = "DEBUG"
    # --- CORS ---
    cors_allowed_origins: list[str] = []
    cors_allow_credentials: bool = False
    cors_allowed_methods: list[str] = ["GET", "POST"]
    cors_allowed_headers: list[str] = [
        "Content-Type",
        "X-Scan-Token",
        "X-Tenant-Subdomain",
    ]

    # --- PostgreSQL ---
    postgres_user: str = "restaurant_hub"
    postgres_password: SecretStr = SecretStr("secret")
    postgres_db: str = "restaurant_hub"
    postgres_host: str = "localhost"
    postgres_port: int = 5432

    @computed_field(repr=False)  # type: ignore[prop-decorator]
    @property
    def database_url(self) -> str:
        """Assemble database URL from components.

        Uses psycopg v3 driver which supports both sync (create_engine)
        and async (create_async_engine) modes natively.
        """
        password = self.postgres_password.get_secret_value()
        return (
            f"postgresql+psycopg://{self.postgres_user}:{password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # --- Tenancy ---
    # Tenants live at <slug>.<root_domain> in production.
    root_domain: str = ""
    admin_host: str = ""
    # Custom domains, e.g. {"foodie.com": "pasta-house"}.
    tenant_domain_map: dict[str, str] = {}
    # Accept ?slug= when the host carries no tenant (local dev, previews).
    allow_explicit_slug: bool = True

    # --- Scan tokens ---
    scan_token_ttl_seconds: int = 600
    scan_token_backend: ScanTokenBackend = ScanTokenBackend.DATABASE
    scan_token_consume_policy: ConsumePolicy = ConsumePolicy.BEFORE_WRITE
    scan_cookies_enabled: bool = False
    scan_cookie_name: str = "scan_token"
    scan_cookie_domain: str | None = None

    # --- Public rate limit ---
    public_rate_limit_per_minute: int = 120

    # --- Convenience properties ---
    @property
    def is_dev(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_prod(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings singleton.

    Usage::

        from restaurant_hub.config import get_settings
        settings = get_settings()

    Or for dependency injection in FastAPI::

        @app.get("/")
        def root(settings: Settings = Depends(get_settings)):
            ...
    """
    return Settings()


settings = get_settings()
