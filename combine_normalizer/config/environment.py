"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.database_url = database_url
        self.log_level = log_level
        self.environment = environment or "local"

    @property
    def persists_corrections(self) -> bool:
        """Corrections go to the database only when DATABASE_URL is set."""
        return bool(self.database_url)


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional:
    - DATABASE_URL: SQLAlchemy URL for the correction store
      (e.g. sqlite:///./data/corrections.db). Unset keeps corrections in memory.
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ENVIRONMENT: Environment label attached to every log record

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If a variable is set to an invalid value
    """
    errors = []

    database_url = (os.getenv("DATABASE_URL") or "").strip() or None
    if database_url and "://" not in database_url:
        errors.append(
            f"DATABASE_URL must be a SQLAlchemy URL such as sqlite:///./data/corrections.db, got '{database_url}'"
        )

    log_level = (os.getenv("LOG_LEVEL") or "").strip().upper() or None
    if log_level and log_level not in VALID_LOG_LEVELS:
        errors.append(f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}, got '{log_level}'")

    environment = (os.getenv("ENVIRONMENT") or "").strip() or None

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and review the values",
                "Unset variables you do not need; all of them are optional",
            ],
        )

    return EnvironmentConfig(
        database_url=database_url,
        log_level=log_level,
        environment=environment,
    )
