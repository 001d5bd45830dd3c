"""Result cache for resolved lookups."""

from .result_cache import DEFAULT_MAX_ENTRIES, DEFAULT_TTL_SECONDS, ResultCache

__all__ = ["ResultCache", "DEFAULT_TTL_SECONDS", "DEFAULT_MAX_ENTRIES"]
