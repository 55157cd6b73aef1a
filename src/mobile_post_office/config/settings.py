from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from pathlib import Path
from typing import Literal
from functools import lru_cache
from ..validators.config_validators import blank_to_none, require_positive, to_lowercase, to_uppercase

class Settings(BaseSettings):
    """
    Application settings loaded from environment.
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # Database configuration
    POSTGRES_DRIVER: str = "psycopg"
    POSTGRES_USERNAME: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "mobile_post_office"

    # Any SQLAlchemy async URL (sqlite+aiosqlite://..., mysql+aiomysql://...) wins over POSTGRES_*
    DATABASE_URL_OVERRIDE: str | None = None

    # Test database configuration
    TEST_POSTGRES_DB: str | None = None
    TESTING: bool = False

    # SQLAlchemy
    SQLALCHEMY_ECHO: bool = False

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/mobile-post-office")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False
    LOG_USE_QUEUE: bool = False
    LOG_QUEUE_MAX_SIZE: int = 0
    LOG_QUEUE_BLOCKING: bool = False

    # Batch import
    IMPORT_CHUNK_SIZE: int = 50
    IMPORT_REPORT_PATH: Path = Path("import-report.json")
    IMPORT_HTTP_TIMEOUT_SECONDS: float = 30.0

    # API access; None disables the X-API-Key check
    API_KEY: str | None = None

    # --- Derived settings ---
    @property
    def DATABASE_URL(self) -> str:
        """
        Return the database URL for the current environment.

        - `DATABASE_URL_OVERRIDE` is used verbatim when set.
        - If `TESTING=True` and `TEST_POSTGRES_DB` is provided, the test database name is used
          so tests never touch the regular database.
        - Otherwise the regular `POSTGRES_DB` is used.
        """
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE

        database = self.TEST_POSTGRES_DB if (self.TESTING and self.TEST_POSTGRES_DB) else self.POSTGRES_DB
        return (
            f"postgresql+{self.POSTGRES_DRIVER}://"
            f"{self.POSTGRES_USERNAME}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{database}"
        )

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    def normalize_log_level(cls, v: str | None) -> str | None:
        """
        Normalize LOG_LEVEL to uppercase before Literal validation ("debug" -> "DEBUG").
        """
        return to_uppercase(v)

    @field_validator("LOG_FORMAT", mode="before")
    def normalize_log_format(cls, v: str | None) -> str | None:
        return to_lowercase(v)

    @field_validator("API_KEY", "DATABASE_URL_OVERRIDE", mode="before")
    def empty_means_unset(cls, v: str | None) -> str | None:
        return blank_to_none(v)

    @field_validator("IMPORT_CHUNK_SIZE", "IMPORT_HTTP_TIMEOUT_SECONDS")
    def check_positive(cls, v, info):
        return require_positive(v, info.field_name)

    model_config = SettingsConfigDict(
        # .env lives next to the package root (src/mobile_post_office/.env)
        env_file=str(Path(__file__).parent.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

# Settings are read from the environment once per process.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
