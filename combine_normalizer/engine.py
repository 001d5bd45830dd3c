"""CombineNormalizer: the public entry point of the engine.

Wires the canonicalizer, match resolver, result cache and feedback recorder
around one reference data snapshot::

    normalizer = CombineNormalizer.from_config(app_config, env_config)
    results = normalizer.normalize("jd s790")
    results[0].canonical       # "john_deere_s790"
"""

import logging
import threading
from datetime import datetime
from typing import Callable, List, Mapping, Optional, Union
from uuid import uuid4

from pydantic import ValidationError

from combine_normalizer.cache import ResultCache
from combine_normalizer.config.environment import EnvironmentConfig
from combine_normalizer.config.models import AppConfig, MatchingConfig
from combine_normalizer.domain.models import (
    ConfidenceLevel,
    CorrectionRecord,
    MatchContext,
    MatchResult,
)
from combine_normalizer.errors import InvalidInput, NormalizationFailed
from combine_normalizer.feedback import (
    CorrectionSink,
    DatabaseCorrectionSink,
    FeedbackRecorder,
    InMemoryCorrectionSink,
)
from combine_normalizer.logging import get_logger
from combine_normalizer.logging.context import log_context
from combine_normalizer.matching import MatchResolver
from combine_normalizer.persistence import init_database
from combine_normalizer.reference import ReferenceData, load_reference_data
from combine_normalizer.utils.timestamps import utc_now

logger = get_logger(__name__, component="engine")

ContextInput = Union[MatchContext, Mapping[str, object], None]


class CombineNormalizer:
    """
    Normalizes free-text combine descriptions to canonical identifiers.

    Lookups go through the result cache first; misses run the resolver
    stages and store the primary result. Corrections invalidate the cached
    entry for their input and are appended to the correction sink.
    """

    def __init__(
        self,
        reference_data: ReferenceData,
        matching_config: Optional[MatchingConfig] = None,
        cache: Optional[ResultCache] = None,
        correction_sink: Optional[CorrectionSink] = None,
        clock: Callable[[], datetime] = utc_now,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """
        Initialize the normalizer.

        Args:
            reference_data: Reference data snapshot to resolve against
            matching_config: Thresholds and limits (defaults to MatchingConfig())
            cache: Result cache; None disables caching
            correction_sink: Where corrections go (defaults to in-memory)
            clock: Returns the current UTC time (cache stamps, correction times)
            logger_instance: Logger instance (defaults to module logger)
        """
        self.matching_config = matching_config or MatchingConfig()
        self.cache = cache
        self.clock = clock
        self.logger = logger_instance or logger
        self._swap_lock = threading.Lock()
        self._resolver = MatchResolver(reference_data, self.matching_config)
        self.feedback = FeedbackRecorder(
            canonicalize=self.canonicalize,
            sink=correction_sink if correction_sink is not None else InMemoryCorrectionSink(),
            cache=cache,
            clock=clock,
        )

    @classmethod
    def from_config(
        cls,
        app_config: AppConfig,
        env_config: Optional[EnvironmentConfig] = None,
        correction_sink: Optional[CorrectionSink] = None,
    ) -> "CombineNormalizer":
        """
        Build a normalizer from validated configuration.

        Loads reference data (configured path or packaged default), creates
        the cache if enabled, and uses the database sink when DATABASE_URL
        is set.

        Raises:
            ReferenceDataError: If reference data fails to load
            DatabaseConnectionError: If DATABASE_URL is set but unusable
        """
        reference_data = load_reference_data(app_config.reference_data_path)

        cache = None
        if app_config.cache.enabled:
            cache = ResultCache(
                ttl_seconds=app_config.cache.ttl_seconds,
                max_entries=app_config.cache.max_entries,
            )

        if correction_sink is None and env_config is not None and env_config.persists_corrections:
            init_database(env_config.database_url)
            correction_sink = DatabaseCorrectionSink()

        return cls(
            reference_data,
            matching_config=app_config.matching,
            cache=cache,
            correction_sink=correction_sink,
        )

    # Reference data

    @property
    def reference_data(self) -> ReferenceData:
        return self._resolver.reference_data

    @property
    def correction_sink(self) -> CorrectionSink:
        return self.feedback.sink

    def replace_reference_data(self, reference_data: ReferenceData) -> None:
        """Swap in a new reference snapshot and drop every cached result."""
        resolver = MatchResolver(reference_data, self.matching_config)
        with self._swap_lock:
            self._resolver = resolver
            cleared = self.cache.clear() if self.cache is not None else 0

        self.logger.info(
            "Reference data replaced",
            extra={
                "event": "reference.replaced",
                "cache_entries_cleared": cleared,
                **reference_data.summary(),
            },
        )

    def canonicalize(self, raw: object) -> str:
        """Canonicalize with the active snapshot's typo patterns."""
        return self._resolver.reference_data.canonicalizer.canonicalize(raw)

    # Lookups

    def normalize(self, raw: object, context: ContextInput = None) -> List[MatchResult]:
        """
        Resolve free text to ranked canonical identifiers.

        Args:
            raw: Text as typed by the user, e.g. "jd s790"
            context: Optional MatchContext (or mapping with year / region / user_id)

        Returns:
            One to three results, non-increasing confidence. The first carries
            the others as alternative_matches.

        Raises:
            InvalidInput: If raw is not a string or is empty after canonicalization
            NormalizationFailed: If nothing matched
        """
        resolver = self._resolver

        with log_context(request_id=uuid4().hex):
            try:
                canonical = resolver.canonicalize(raw)
                match_context = self._coerce_context(raw, context)
            except InvalidInput as e:
                self.logger.warning(
                    f"Invalid input: {e.message}",
                    extra={"event": "normalization.invalid_input", "error_code": e.code},
                )
                raise

            with log_context(canonical_input=canonical):
                # Identifiers typed verbatim are answered without the cache
                direct = resolver.match_identifier(raw)
                if direct is not None:
                    self._log_resolved(direct, cached=False)
                    return [direct]

                cache = self.cache
                if cache is not None:
                    cached = cache.get(canonical)
                    if cached is not None:
                        self.logger.debug(
                            f"Cache hit for '{canonical}'",
                            extra={"event": "normalization.cache.hit", "canonical": cached.canonical},
                        )
                        self._log_resolved(cached, cached=True)
                        return list(cached.candidates())

                try:
                    results = resolver.resolve_canonical(raw, canonical, match_context)
                except NormalizationFailed as e:
                    self.logger.info(
                        f"No match for '{canonical}'",
                        extra={"event": "normalization.failed", "error_code": e.code},
                    )
                    raise

                primary = results[0]
                if cache is not None:
                    primary = primary.stamped(self.clock())
                    with self._swap_lock:
                        # Results from a replaced snapshot must not outlive the swap
                        if self._resolver is resolver:
                            cache.put(canonical, primary)

                self._log_resolved(primary, cached=False)
                return list(primary.candidates())

    def find_best_matches(
        self, raw: object, limit: int = 3, context: ContextInput = None
    ) -> List[MatchResult]:
        """Top ``limit`` results for a confirmation UI (see normalize)."""
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        return self.normalize(raw, context)[:limit]

    def confidence_level(self, score: float) -> ConfidenceLevel:
        if score >= self.matching_config.high_threshold:
            return ConfidenceLevel.HIGH
        if score >= self.matching_config.medium_threshold:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW

    def requires_confirmation(self, score: float) -> bool:
        return score < self.matching_config.medium_threshold

    # Feedback

    def record_correction(
        self,
        original_input: str,
        rejected_canonical: Optional[str],
        accepted_canonical: str,
        user_id: Optional[str] = None,
    ) -> CorrectionRecord:
        """
        Record that the user accepted ``accepted_canonical`` for ``original_input``.

        The cached result for the input is invalidated before the record is
        appended. Sink failures are logged and swallowed.

        Raises:
            InvalidInput: If original_input or accepted_canonical is blank
        """
        with log_context(request_id=uuid4().hex):
            return self.feedback.record(
                original_input, rejected_canonical, accepted_canonical, user_id=user_id
            )

    # Helpers

    def _coerce_context(self, raw: object, context: ContextInput) -> Optional[MatchContext]:
        if context is None or isinstance(context, MatchContext):
            return context
        try:
            return MatchContext.model_validate(dict(context))
        except (ValidationError, TypeError, ValueError) as e:
            raise InvalidInput(f"Invalid match context: {e}", input=raw) from e

    def _log_resolved(self, result: MatchResult, cached: bool) -> None:
        self.logger.info(
            f"Resolved to {result.canonical}",
            extra={
                "event": "normalization.resolved",
                "canonical": result.canonical,
                "match_kind": result.match_kind.value,
                "confidence": round(result.confidence, 4),
                "needs_confirmation": result.needs_confirmation,
                "alternative_count": len(result.alternative_matches),
                "cached": cached,
            },
        )
