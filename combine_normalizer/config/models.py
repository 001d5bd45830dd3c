"""Configuration schema models using Pydantic."""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class MatchingConfig(BaseModel):
    """Thresholds and limits for the match resolver."""

    high_threshold: float = Field(
        0.95, gt=0.0, le=1.0, description="Scores at or above this are 'high' confidence"
    )
    medium_threshold: float = Field(
        0.8, gt=0.0, le=1.0, description="Below this a match needs user confirmation"
    )
    low_threshold: float = Field(
        0.6, gt=0.0, le=1.0, description="Fuzzy candidates below this are discarded"
    )
    variant_confidence: float = Field(
        0.98, ge=0.95, le=1.0, description="Fixed confidence for known-variant matches"
    )
    max_results: int = Field(3, ge=1, le=3, description="Maximum candidates returned")
    max_brand_words: int = Field(
        2, ge=1, le=3, description="Leading words inspected when looking for a brand alias"
    )
    min_plausible_year: int = Field(
        1990, ge=1900, le=2100, description="Earliest plausible manufacturing year"
    )

    @model_validator(mode="after")
    def validate_threshold_order(self):
        """Thresholds must be strictly decreasing: high > medium > low."""
        if not (self.high_threshold > self.medium_threshold > self.low_threshold):
            raise ValueError(
                "Thresholds must satisfy high_threshold > medium_threshold > low_threshold, got "
                f"{self.high_threshold} / {self.medium_threshold} / {self.low_threshold}"
            )
        return self


class CacheConfig(BaseModel):
    """Result cache settings."""

    enabled: bool = Field(True, description="Disable to always run full resolution")
    ttl: str = Field("24h", description="Entry lifetime (e.g. '24h', 'PT24H')")
    max_entries: int = Field(10000, ge=1, description="Capacity before LRU eviction")

    # Computed field
    ttl_seconds: Optional[int] = None

    @field_validator("ttl")
    @classmethod
    def validate_ttl(cls, v: str) -> str:
        """Validate the TTL parses and is between 1 minute and 7 days."""
        try:
            validate_duration_range(parse_duration(v), label="Cache TTL")
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def compute_ttl_seconds(self):
        """Store the parsed TTL for easy access."""
        self.ttl_seconds = parse_duration(self.ttl)
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the combine normalizer."""

    reference_data_path: Optional[Path] = Field(
        None, description="YAML reference data file (defaults to the packaged data)"
    )
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("reference_data_path")
    @classmethod
    def validate_reference_path(cls, v: Optional[Path]) -> Optional[Path]:
        """Reject an explicitly configured path that does not exist."""
        if v is not None and not v.exists():
            raise ValueError(f"reference data file not found: {v}")
        return v
