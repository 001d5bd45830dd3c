"""Utility functions for preparing match results for downstream consumers.

Payloads follow the response envelope of the normalization endpoint:
``{"success": bool, "data": {...}}`` on success and
``{"success": false, "error": {...}}`` on failure.
"""

from typing import Dict, List, Sequence

from combine_normalizer.domain.models import CorrectionRecord, MatchResult
from combine_normalizer.errors import NormalizationError
from combine_normalizer.utils.timestamps import format_timestamp


def build_response_payload(raw_input: str, results: Sequence[MatchResult]) -> Dict:
    """Build a success payload from a resolution.

    Args:
        raw_input: Input as typed by the user
        results: Ranked results, primary first (as returned by normalize)

    Returns:
        Dict with keys:
        - success: Always True
        - data.input: The raw input
        - data.matches: Every result, primary first, without nested alternatives
        - data.best_match: Brand, model and confidence of the primary result
        - data.needs_confirmation: Whether the caller should ask the user
    """
    primary = results[0]
    matches: List[Dict] = []
    for result in results:
        entry = result.to_dict()
        entry.pop("alternative_matches")
        matches.append(entry)

    return {
        "success": True,
        "data": {
            "input": raw_input,
            "matches": matches,
            "best_match": {
                "canonical": primary.canonical,
                "brand": primary.brand,
                "model": primary.model,
                "confidence": round(primary.confidence, 4),
            },
            "needs_confirmation": primary.needs_confirmation,
        },
    }


def build_error_payload(error: NormalizationError) -> Dict:
    """Build a failure payload from a typed engine error."""
    return {"success": False, "error": error.to_dict()}


def build_correction_payload(record: CorrectionRecord) -> Dict:
    """Serialize a recorded correction for CLI / API output."""
    return {
        "success": True,
        "data": {
            "record_id": record.record_id,
            "original_input": record.original_input,
            "canonical_input": record.canonical_input,
            "rejected_canonical": record.rejected_canonical,
            "accepted_canonical": record.accepted_canonical,
            "was_accepted": record.was_accepted,
            "recorded_at": format_timestamp(record.recorded_at),
        },
    }
