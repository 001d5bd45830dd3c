"""Recording of user confirmations and corrections."""

import logging
from datetime import datetime
from typing import Callable, Optional

from combine_normalizer.cache import ResultCache
from combine_normalizer.domain.models import CorrectionRecord
from combine_normalizer.errors import InvalidInput
from combine_normalizer.logging import get_logger
from combine_normalizer.persistence import PersistenceError
from combine_normalizer.utils.hashing import compute_correction_id
from combine_normalizer.utils.timestamps import ensure_utc, utc_now

from .sinks import CorrectionSink, InMemoryCorrectionSink

logger = get_logger(__name__, component="feedback")


class FeedbackRecorder:
    """Turns a user's correction into a CorrectionRecord.

    Responsibilities:
    - Validate the correction inputs
    - Invalidate the cached result for the corrected input
    - Append the record to the sink; sink failures are logged, not raised

    Reference data is never modified here.
    """

    def __init__(
        self,
        canonicalize: Callable[[str], str],
        sink: Optional[CorrectionSink] = None,
        cache: Optional[ResultCache] = None,
        clock: Callable[[], datetime] = utc_now,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize FeedbackRecorder.

        Args:
            canonicalize: Canonicalizer of the active reference snapshot
            sink: Where records go (defaults to an in-memory sink)
            cache: Result cache to invalidate, if caching is enabled
            clock: Returns the current UTC time
            logger_instance: Logger instance (defaults to module logger)
        """
        self.canonicalize = canonicalize
        self.sink = sink if sink is not None else InMemoryCorrectionSink()
        self.cache = cache
        self.clock = clock
        self.logger = logger_instance or logger

    def record(
        self,
        original_input: str,
        rejected_canonical: Optional[str],
        accepted_canonical: str,
        user_id: Optional[str] = None,
    ) -> CorrectionRecord:
        """Record a confirmation (rejected is None or equals accepted) or a correction.

        Args:
            original_input: Raw input the user typed
            rejected_canonical: Suggestion the user rejected, if any
            accepted_canonical: Identifier the user picked
            user_id: Optional user identifier

        Returns:
            The CorrectionRecord that was appended (or attempted)

        Raises:
            InvalidInput: If original_input or accepted_canonical is missing or blank
        """
        if not isinstance(original_input, str) or not original_input.strip():
            raise InvalidInput("original_input must be a non-empty string", input=original_input)
        if not isinstance(accepted_canonical, str) or not accepted_canonical.strip():
            raise InvalidInput(
                "accepted_canonical must be a non-empty string", input=accepted_canonical
            )
        if rejected_canonical is not None and not isinstance(rejected_canonical, str):
            raise InvalidInput("rejected_canonical must be a string or None", input=rejected_canonical)

        canonical_input = self.canonicalize(original_input)
        if not canonical_input:
            raise InvalidInput(
                "original_input is empty after removing punctuation and whitespace",
                input=original_input,
            )

        recorded_at = ensure_utc(self.clock())
        record = CorrectionRecord(
            record_id=compute_correction_id(
                original_input, rejected_canonical, accepted_canonical, recorded_at
            ),
            original_input=original_input,
            canonical_input=canonical_input,
            rejected_canonical=rejected_canonical,
            accepted_canonical=accepted_canonical,
            recorded_at=recorded_at,
            user_id=user_id,
        )

        if self.cache is not None:
            self.cache.invalidate(canonical_input)

        try:
            self.sink.append(record)
        except PersistenceError as e:
            self.logger.error(
                f"Failed to store correction for '{canonical_input}': {e}",
                extra={
                    "event": "feedback.sink.failed",
                    "record_id": record.record_id,
                    "error_type": type(e).__name__,
                },
            )
            return record

        self.logger.info(
            f"Recorded correction for '{canonical_input}'",
            extra={
                "event": "feedback.correction.recorded",
                "record_id": record.record_id,
                "canonical_input": canonical_input,
                "rejected_canonical": record.rejected_canonical,
                "accepted_canonical": record.accepted_canonical,
                "was_accepted": record.was_accepted,
            },
        )
        return record
