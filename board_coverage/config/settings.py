"""
Configuration settings for the Board Coverage tracker, powered by Pydantic.

This module centralizes all tunable parameters and default values. The poll
interval and rate-limit cooldown are fixed constants of the polling design;
they are exposed as settings only so that deployments (and tests) can override
them through the environment.
"""
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from board_coverage.types import ElapsedTimeMethod

POLL_INTERVAL_S = 10.0
RATE_LIMIT_COOLDOWN_S = 60.0
LICHESS_BASE_URL = "https://lichess.org"

# --- Nested Models for Configuration Schemas ---

class SourceSettings(BaseModel):
    """Groups all settings related to the external game provider and its polling cadence."""
    base_url: str = Field(LICHESS_BASE_URL, description="Root URL of the game export API.")
    poll_interval_s: float = Field(POLL_INTERVAL_S, gt=0, description="Pause between two polls of the provider.")
    rate_limit_cooldown_s: float = Field(RATE_LIMIT_COOLDOWN_S, gt=0, description="Pause after the provider answers HTTP 429.")
    request_timeout_s: float = Field(30.0, gt=0, description="Timeout for a single export request.")
    user_agent: str = Field("board-coverage/0.1.0", description="User-Agent header sent with every request.")

    @model_validator(mode='after')
    def validate_cooldown_exceeds_poll_interval(self) -> 'SourceSettings':
        """A rate-limit cooldown shorter than a normal poll would defeat its purpose."""
        if self.rate_limit_cooldown_s <= self.poll_interval_s:
            raise ValueError("Configuration error: rate_limit_cooldown_s must exceed poll_interval_s.")
        return self

class RetrySettings(BaseModel):
    """Bounded retry applied to `SourceUnavailable` before it is treated as fatal."""
    attempts: int = Field(3, ge=1, description="Maximum tries per fetch, including the first.")
    initial_backoff_s: float = Field(1.0, ge=0, description="Delay before the first retry.")
    max_backoff_s: float = Field(30.0, ge=0, description="Upper bound for any single retry delay.")


class RunConfig(BaseModel):
    """
    Encapsulates all configuration for a single tracking run.

    Constructed at startup from the command line and the main settings.
    """
    user_id: str
    start_timestamp_ms: int = Field(ge=0, description="Cursor the stream starts from (UTC, milliseconds).")
    source: SourceSettings = Field(default_factory=SourceSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    elapsed_time_method: ElapsedTimeMethod = ElapsedTimeMethod.CLOCK_ANNOTATIONS
    log_file: Optional[str] = None

    @field_validator('user_id')
    @classmethod
    def normalize_user_id(cls, value: str) -> str:
        """Provider user ids are case-insensitive; the tracker compares them lower-cased."""
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError("user_id must not be empty.")
        return normalized

# --- Main Application Settings Class ---

class Settings(BaseSettings):
    """
    Main configuration class for the application.

    It loads settings from environment variables with the prefix 'BOARD_COVERAGE_'.
    Nested models can be configured using a double underscore delimiter, e.g.,
    `BOARD_COVERAGE_SOURCE__POLL_INTERVAL_S=5`.
    """
    model_config = SettingsConfigDict(env_prefix='BOARD_COVERAGE_', env_nested_delimiter='__')

    source: SourceSettings = Field(default_factory=SourceSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    elapsed_time_method: ElapsedTimeMethod = ElapsedTimeMethod.CLOCK_ANNOTATIONS
    default_log_level: str = "INFO"

# A singleton instance of the settings, accessible throughout the application.
settings = Settings()
