"""Non-fatal configuration checks."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check raw configuration for settings that are valid but probably unintended.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    cache = config_dict.get("cache", {})
    if isinstance(cache, dict):
        if cache.get("enabled") is False:
            warning_messages.append(
                "Result cache is disabled; every lookup will run the full matching pipeline"
            )
        max_entries = cache.get("max_entries")
        if isinstance(max_entries, int) and max_entries > 1_000_000:
            warning_messages.append(
                f"Large cache max_entries ({max_entries}) may use a lot of memory"
            )

    matching = config_dict.get("matching", {})
    if isinstance(matching, dict):
        low = matching.get("low_threshold")
        if isinstance(low, (int, float)) and low < 0.5:
            warning_messages.append(
                f"low_threshold {low} is permissive; fuzzy matching may suggest unrelated models"
            )
        if matching.get("max_brand_words") == 1:
            warning_messages.append(
                "max_brand_words is 1; multi-word brand aliases such as 'new holland' will not match"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """
    Emit warning messages using Python's warnings module.

    Args:
        warning_messages: List of warning messages to emit
    """
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
