"""Command-line entry point for the combine normalizer."""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from combine_normalizer.config.environment import EnvironmentConfig
from combine_normalizer.config.exceptions import ConfigurationError
from combine_normalizer.config.loader import load_config
from combine_normalizer.config.models import AppConfig
from combine_normalizer.engine import CombineNormalizer
from combine_normalizer.errors import NormalizationError, ReferenceDataError
from combine_normalizer.logging import get_logger
from combine_normalizer.logging.config import configure_logging
from combine_normalizer.matching.utils import (
    build_correction_payload,
    build_error_payload,
    build_response_payload,
)
from combine_normalizer.persistence import PersistenceError, close_database

logger = get_logger(__name__, component="cli")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_NORMALIZATION_ERROR = 2


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI flag > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="combine-normalizer",
        description="Normalize free-text combine brand + model input to canonical identifiers",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present, else built-in defaults)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    normalize_parser = subparsers.add_parser("normalize", help="Resolve one input")
    normalize_parser.add_argument("input", help="Brand and model as typed, e.g. 'jd s790'")
    normalize_parser.add_argument("--year", type=int, default=None, help="Manufacturing year")
    normalize_parser.add_argument("--region", default=None, help="Region label")

    correct_parser = subparsers.add_parser("correct", help="Record a user correction")
    correct_parser.add_argument("original", help="Input as the user typed it")
    correct_parser.add_argument("accepted", help="Canonical identifier the user picked")
    correct_parser.add_argument(
        "--rejected", default=None, help="Suggestion the user rejected, if any"
    )
    correct_parser.add_argument("--user-id", default=None, help="User identifier")

    return parser


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def run_normalize(normalizer: CombineNormalizer, args: argparse.Namespace) -> int:
    context = None
    if args.year is not None or args.region is not None:
        context = {"year": args.year, "region": args.region}

    try:
        results = normalizer.normalize(args.input, context=context)
    except NormalizationError as e:
        _print_json(build_error_payload(e))
        return EXIT_NORMALIZATION_ERROR

    _print_json(build_response_payload(args.input, results))
    return EXIT_OK


def run_correct(normalizer: CombineNormalizer, args: argparse.Namespace) -> int:
    try:
        record = normalizer.record_correction(
            args.original, args.rejected, args.accepted, user_id=args.user_id
        )
    except NormalizationError as e:
        _print_json(build_error_payload(e))
        return EXIT_NORMALIZATION_ERROR

    _print_json(build_correction_payload(record))
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        0 on success, 2 when the input could not be normalized or recorded,
        1 on configuration, reference data or other fatal errors
    """
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.debug(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "command": args.command,
                "cache_enabled": app_config.cache.enabled,
                "persists_corrections": env_config.persists_corrections,
            },
        )

        normalizer = CombineNormalizer.from_config(app_config, env_config)

        try:
            if args.command == "normalize":
                return run_normalize(normalizer, args)
            return run_correct(normalizer, args)
        finally:
            close_database()

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e.message}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return EXIT_FATAL
    except ReferenceDataError as e:
        print(f"Reference Data Error: {e}", file=sys.stderr)
        logger.error(
            "Reference data failed to load",
            extra={"event": "reference.error", "error_count": len(e.errors)},
        )
        return EXIT_FATAL
    except PersistenceError as e:
        print(f"Database Error: {e}", file=sys.stderr)
        logger.error(
            f"Database error: {e}",
            extra={"event": "database.error", "error_type": type(e).__name__},
        )
        return EXIT_FATAL


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
