"""Application configuration settings."""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ConsoleLevel = Literal["debug", "info", "warn", "error"]


class ConsoleConfig(BaseModel):
    """Console echo filter for the observability log.

    Passed explicitly into the log at construction; the log never reads the
    process environment itself.
    """

    model_config = ConfigDict(frozen=True)

    console_level: ConsoleLevel = "info"
    debug_mode: bool = False
    quiet_mode: bool = False


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Network budgets (seconds)
    connection_timeout_seconds: float = 15.0
    health_check_timeout_seconds: float = 5.0
    user_agent: str = "ModelGate/0.1"

    # Observability log
    log_capacity: int = 1000
    console_level: ConsoleLevel = "info"
    debug_mode: bool = False
    quiet_mode: bool = False

    # API
    api_title: str = "ModelGate API"
    api_version: str = "0.1.0"
    api_prefix: str = "/api/v1"

    # CORS
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    @field_validator("connection_timeout_seconds", "health_check_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Reject non-positive time budgets."""
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @field_validator("log_capacity")
    @classmethod
    def validate_log_capacity(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("log_capacity must be positive")
        return v

    def console_config(self) -> ConsoleConfig:
        """Build the console filter value object from these settings."""
        return ConsoleConfig(
            console_level=self.console_level,
            debug_mode=self.debug_mode,
            quiet_mode=self.quiet_mode,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Cached Settings instance.
    """
    return Settings()
