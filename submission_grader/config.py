"""
Configuration management for the Submission Grader.

Settings come from GRADER_-prefixed environment variables or a .env file
and are validated when first loaded.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """
    Grader settings.

    Every variable is prefixed with ``GRADER_`` (e.g. ``GRADER_PASS_THRESHOLD``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="GRADER_",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Question Lookup Configuration
    # ==========================================================================
    question_batch_size: int = Field(
        default=10,
        ge=1,
        le=10,
        description="Maximum number of question ids per store query (store 'in' limit is 10)",
    )

    lookup_max_workers: int = Field(
        default=1,
        ge=1,
        le=16,
        description="Number of question batches fetched in parallel (1 = sequential)",
    )

    # ==========================================================================
    # Scoring Configuration
    # ==========================================================================
    pass_threshold: Decimal = Field(
        default=Decimal("0.6"),
        ge=0,
        le=1,
        description="Fraction of the maximum score needed to pass",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================
    log_level: LogLevel = Field(
        default="INFO",
        description="Minimum level emitted by the loguru sink",
    )

    # ==========================================================================
    # Output Configuration
    # ==========================================================================
    output_directory: Path = Field(
        default=Path("./output"),
        description="Directory for stored results, reports and audits",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("output_directory")
    @classmethod
    def validate_output_directory(cls, v: Path) -> Path:
        """Ensure output directory exists or can be created."""
        v.mkdir(parents=True, exist_ok=True)
        return v


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    return Settings()
