"""
Configuration Management for Guarded Wallet

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The quorum shape (guardian cap, vote threshold) and the reserved zero
identity are read once and handed to every AuthorizationState, so test
instances can run with their own settings objects.
"""

from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ZERO_IDENTITY = "0x0000000000000000000000000000000000000000"


class QuorumSettings(BaseSettings):
    """Guardian quorum configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CUSTODY_",
        extra="ignore"
    )

    max_guardians: int = Field(
        default=5,
        ge=1,
        le=5,
        description="Guardian set size required before recovery voting is enabled"
    )
    vote_threshold: int = Field(
        default=3,
        ge=1,
        description="Votes needed for a candidate to replace the owner"
    )
    zero_identity: str = Field(
        default=DEFAULT_ZERO_IDENTITY,
        min_length=1,
        description="Reserved sentinel identity, never a valid participant"
    )

    @field_validator('zero_identity')
    @classmethod
    def strip_zero_identity(cls, v: str) -> str:
        return v.strip()

    @model_validator(mode='after')
    def validate_threshold_is_majority(self) -> 'QuorumSettings':
        """Two candidates must never both reach threshold from one guardian set."""
        if self.vote_threshold > self.max_guardians:
            raise ValueError("vote_threshold cannot exceed max_guardians")
        if self.vote_threshold * 2 <= self.max_guardians:
            raise ValueError("vote_threshold must be a strict majority of max_guardians")
        return self


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    debug_mode: bool = Field(
        default=False,
        description="Force DEBUG logging regardless of log_level"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for local structured logs"
    )

    # Persistence
    persist_snapshots: bool = Field(
        default=True,
        description="Save a state snapshot after every successful mutation"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_mode else self.log_level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def quorum(self) -> QuorumSettings:
        return QuorumSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.quorum
        results["quorum"] = True
    except Exception as e:
        results["quorum"] = False
        results["quorum_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
