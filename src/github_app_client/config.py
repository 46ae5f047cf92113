"""Configuration settings for the GitHub App client.

Environment variables carry the ``GH_`` prefix because GitHub Actions
refuses secrets whose names start with ``GITHUB_``.
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetryPolicy(BaseModel):
    """Retry behaviour for dispatched requests.

    Set once when the client is built and never changed afterwards.
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(
        default=10,
        ge=1,
        description="Total attempts per call, including the first one",
    )
    base_delay: float = Field(
        default=3.0,
        ge=0.0,
        description="Seconds to wait before a retry",
    )
    exponential: bool = Field(
        default=False,
        description="Double the delay after every failed attempt",
    )


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="GH_APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        # GH_APP_ID rather than GH_APP_APP_ID; field names still work as kwargs
        populate_by_name=True,
    )

    # --------------------------------------------------------------------------
    # GitHub App identity
    # --------------------------------------------------------------------------
    app_id: int | None = Field(
        default=None,
        validation_alias="gh_app_id",
        description="App ID from the App's settings page",
    )
    installation_id: int | None = Field(
        default=None,
        description="Installation ID from the organization's installations page",
    )
    app_key: str | None = Field(
        default=None,
        validation_alias="gh_app_key",
        description="PEM private key, inline with escaped newlines or a .pem path",
    )
    app_algo: str = Field(
        default="RS256",
        validation_alias="gh_app_algo",
        description="JWT signing algorithm",
    )

    # --------------------------------------------------------------------------
    # Logging
    # --------------------------------------------------------------------------
    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level for the default logger",
    )

    # --------------------------------------------------------------------------
    # Retries
    # --------------------------------------------------------------------------
    sleep: float = Field(
        default=3,
        ge=0,
        description="Base sleep in seconds between retries",
    )
    retries: int = Field(
        default=10,
        ge=1,
        description="Maximum attempts per request",
    )
    exponential_backoff: bool = Field(
        default=False,
        description="Enable exponential backoff between retries",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @property
    def retry_policy(self) -> RetryPolicy:
        """Build the retry policy from the retry settings."""
        return RetryPolicy(
            max_attempts=self.retries,
            base_delay=self.sleep,
            exponential=self.exponential_backoff,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
