"""
Application configuration module.

Loads settings from environment variables (or .env file) using pydantic-settings.
Database credentials, resilience tuning and the mock-data fallback switch all
come from the environment so the same image runs in every deployment.
"""

from decimal import Decimal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the Global Edge tokenization API.

    Environment variables are loaded automatically from .env if present.
    """

    PROJECT_NAME: str = "Global Edge Tokenization API"
    API_V1_STR: str = "/api/v1"

    # ── SQLite mode (no external DB required) ──
    USE_SQLITE: bool = False

    # ── PostgreSQL connection parameters ──
    # Empty defaults keep USE_SQLITE=true usable; the validator below still
    # refuses to start in PostgreSQL mode with missing credentials.
    POSTGRES_USER: str = ""
    POSTGRES_PASSWORD: str = ""
    POSTGRES_SERVER: str = ""
    POSTGRES_DB: str = ""
    POSTGRES_PORT: int = 5432

    @model_validator(mode="after")
    def _require_pg_credentials_unless_sqlite(self) -> "Settings":
        """Fail fast if PostgreSQL credentials are missing in production mode."""
        if not self.USE_SQLITE:
            missing = [
                name
                for name in (
                    "POSTGRES_USER",
                    "POSTGRES_PASSWORD",
                    "POSTGRES_SERVER",
                    "POSTGRES_DB",
                )
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(
                    f"PostgreSQL mode requires these environment variables: "
                    f"{', '.join(missing)}. Set them in .env or the environment, "
                    f"or run with USE_SQLITE=true for an in-memory database."
                )
        return self

    # ── Connection pool tuning ──
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30  # seconds to wait for a pooled connection
    DB_POOL_RECYCLE: int = 1800

    # ── CORS ──
    CORS_ORIGINS: str = "*"

    # ── Logging ──
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FILE_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_FILE_BACKUP_COUNT: int = 5

    # ── Resilience ──
    CB_FAILURE_THRESHOLD: int = 5
    CB_RECOVERY_TIMEOUT: float = 30.0
    BACKEND_TIMEOUT_SECONDS: float = 2.0
    READ_RETRY_ATTEMPTS: int = 2
    READ_RETRY_BASE_DELAY: float = 0.1

    # ── Data sources ──
    # When off, reads fail with 503 instead of degrading to mock data.
    MOCK_FALLBACK_ENABLED: bool = True
    MOCK_SEED: int = 2024

    # ── Listing / search ──
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100
    SEARCH_SCAN_LIMIT: int = 1000

    # ── Investment fees ──
    PLATFORM_FEE_RATE: Decimal = Decimal("0.025")
    PROCESSING_FEE_RATE: Decimal = Decimal("0.029")
    PROCESSING_FEE_FIXED: Decimal = Decimal("0.30")
    MANAGEMENT_FEE_RATE: Decimal = Decimal("0")

    @property
    def DATABASE_URL(self) -> str:
        """Construct the async database DSN.

        Returns an in-memory SQLite URL when ``USE_SQLITE`` is enabled,
        otherwise a PostgreSQL DSN for asyncpg.
        """
        if self.USE_SQLITE:
            return "sqlite+aiosqlite://"
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
