"""Staged resolution of canonicalized input to canonical identifiers.

Stages run in order and the first one that yields a result wins:
1. Exact: input is already a canonical identifier
2. Variant: canonicalized input is a known model variant
3. Brand alias: leading words are a brand alias, the rest names a model
4. Fuzzy: edit-distance search over every known spelling, scored
"""

import logging
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

from rapidfuzz.distance import Levenshtein

from combine_normalizer.config.models import MatchingConfig
from combine_normalizer.domain.models import (
    CanonicalIdentifier,
    ConfidenceFactors,
    MatchContext,
    MatchKind,
    MatchResult,
)
from combine_normalizer.errors import InvalidInput, NormalizationFailed
from combine_normalizer.logging import get_logger
from combine_normalizer.normalization import to_identifier
from combine_normalizer.reference import AliasEntry, ReferenceData

from .models import ScoredCandidate
from .scoring import count_context_clues, is_plausible_year, length_similarity, score

logger = get_logger(__name__, component="resolver")

# Fuzzy matches never reach the confidence reserved for exact matches
FUZZY_CONFIDENCE_CEILING = 0.99

Stage = Callable[[str, str, Optional[MatchContext]], List[MatchResult]]


class MatchResolver:
    """Resolves raw input against one reference data snapshot.

    Responsibilities:
    - Reject non-string and empty input
    - Run the exact / variant / brand alias / fuzzy stages in order
    - Build MatchResults with confidence and confirmation flags
    - Count variant usage

    The resolver holds no per-request state and is safe to share.
    """

    def __init__(
        self,
        reference_data: ReferenceData,
        config: Optional[MatchingConfig] = None,
        today: Optional[Callable[[], date]] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize MatchResolver.

        Args:
            reference_data: Snapshot to resolve against
            config: Thresholds and limits (defaults to MatchingConfig())
            today: Date provider for year plausibility (defaults to date.today)
            logger_instance: Logger instance (defaults to module logger)
        """
        self.reference_data = reference_data
        self.config = config or MatchingConfig()
        self.today = today or date.today
        self.logger = logger_instance or logger

    # Public API

    def canonicalize(self, raw: object) -> str:
        """Validate and canonicalize raw input.

        Raises:
            InvalidInput: If raw is not a string or canonicalizes to nothing
        """
        if not isinstance(raw, str):
            raise InvalidInput(
                f"Input must be a string, got {type(raw).__name__}",
                input=raw,
                hints=["Pass the brand and model as text, e.g. 'john deere s790'"],
            )

        canonical = self.reference_data.canonicalizer.canonicalize(raw)
        if not canonical:
            raise InvalidInput(
                "Input is empty after removing punctuation and whitespace",
                input=raw,
                hints=["Enter at least a model number, e.g. 's790'"],
            )
        return canonical

    def resolve(self, raw: object, context: Optional[MatchContext] = None) -> List[MatchResult]:
        """Resolve raw input to at most ``max_results`` ranked results.

        Args:
            raw: Text as typed by the user
            context: Optional year/region context

        Returns:
            Results ordered by non-increasing confidence; the first carries
            the rest as ``alternative_matches``

        Raises:
            InvalidInput: If the input is not a string or is empty after canonicalization
            NormalizationFailed: If no stage produced a candidate
        """
        canonical = self.canonicalize(raw)
        return self.resolve_canonical(raw, canonical, context)

    def resolve_canonical(
        self, raw: str, canonical: str, context: Optional[MatchContext] = None
    ) -> List[MatchResult]:
        """Run the stages for input that has already been canonicalized."""
        stages: Tuple[Tuple[MatchKind, Stage], ...] = (
            (MatchKind.EXACT, self._match_exact),
            (MatchKind.VARIANT, self._match_variant),
            (MatchKind.BRAND_ALIAS, self._match_brand_alias),
            (MatchKind.FUZZY, self._match_fuzzy),
        )

        for kind, stage in stages:
            results = stage(raw, canonical, context)
            if results:
                self.logger.debug(
                    f"Resolved '{canonical}' at {kind.value} stage",
                    extra={
                        "event": "resolver.stage_matched",
                        "stage": kind.value,
                        "canonical_input": canonical,
                        "result_count": len(results),
                    },
                )
                return results

        raise NormalizationFailed(f"Could not match '{raw}' to a known combine", input=raw)

    def match_identifier(self, raw: object) -> Optional[MatchResult]:
        """Exact match on the raw input itself (trimmed, lowercased), else None."""
        if not isinstance(raw, str):
            return None
        candidate = raw.strip().lower()
        brand = self.reference_data.brand_of(candidate)
        if brand is None:
            return None
        return self._exact_result(candidate, brand)

    def split_brand(self, canonical: str) -> Optional[Tuple[AliasEntry, str]]:
        """Find the longest brand alias prefix of up to ``max_brand_words`` words.

        Returns:
            (alias entry, remaining model fragment) or None. The fragment is
            empty when the whole input is a brand alias.
        """
        words = canonical.split(" ")
        for size in range(min(self.config.max_brand_words, len(words)), 0, -1):
            entry = self.reference_data.lookup_alias(" ".join(words[:size]))
            if entry is not None:
                return entry, " ".join(words[size:])
        return None

    # Stages

    def _match_exact(self, raw: str, canonical: str, context: Optional[MatchContext]) -> List[MatchResult]:
        result = self.match_identifier(raw)
        if result is not None:
            return [result]

        identifier = to_identifier(canonical)
        brand = self.reference_data.brand_of(identifier)
        if brand is None:
            return []
        return [self._exact_result(identifier, brand)]

    def _match_variant(self, raw: str, canonical: str, context: Optional[MatchContext]) -> List[MatchResult]:
        variant = self.reference_data.lookup_variant(canonical)
        if variant is None:
            return []

        self.reference_data.record_variant_usage(variant)
        confidence = self.config.variant_confidence
        return [
            MatchResult(
                canonical=variant.canonical_id,
                confidence=confidence,
                match_kind=MatchKind.VARIANT,
                needs_confirmation=confidence < self.config.medium_threshold,
                brand=variant.canonical_brand,
            )
        ]

    def _match_brand_alias(
        self, raw: str, canonical: str, context: Optional[MatchContext]
    ) -> List[MatchResult]:
        split = self.split_brand(canonical)
        if split is None:
            return []

        entry, fragment = split
        if not fragment:
            return []

        identifier = self._resolve_fragment(entry.brand, fragment)
        return [
            MatchResult(
                canonical=identifier,
                confidence=entry.confidence,
                match_kind=MatchKind.BRAND_ALIAS,
                needs_confirmation=entry.confidence < self.config.medium_threshold,
                brand=entry.brand,
            )
        ]

    def _match_fuzzy(self, raw: str, canonical: str, context: Optional[MatchContext]) -> List[MatchResult]:
        cfg = self.config
        split = self.split_brand(canonical)
        input_brand = split[0].brand if split else None
        year_plausible = is_plausible_year(
            context.year if context else None,
            min_year=cfg.min_plausible_year,
            today=self.today(),
        )

        best: Dict[CanonicalIdentifier, ScoredCandidate] = {}
        for order, candidate in enumerate(self.reference_data.fuzzy_candidates()):
            distance = Levenshtein.distance(canonical, candidate.text)
            similarity = length_similarity(canonical, candidate.text, distance)
            if similarity < cfg.low_threshold:
                continue

            clues = count_context_clues(canonical, candidate.text)
            factors = ConfidenceFactors(
                edit_distance=distance,
                length_similarity=similarity,
                brand_match=input_brand is not None and input_brand == candidate.brand,
                year_plausible=year_plausible,
                context_clues=clues,
            )
            value = min(score(factors), FUZZY_CONFIDENCE_CEILING)
            if value < cfg.low_threshold:
                continue

            scored = ScoredCandidate(
                canonical=candidate.canonical,
                brand=candidate.brand,
                score=value,
                distance=distance,
                context_clues=clues,
                order=order,
            )
            current = best.get(candidate.canonical)
            if current is None or scored.sort_key < current.sort_key:
                best[candidate.canonical] = scored

        ranked = sorted(best.values(), key=lambda c: c.sort_key)[: cfg.max_results]
        if not ranked:
            return []

        results = [c.to_result(cfg.medium_threshold) for c in ranked]
        primary = MatchResult(
            canonical=results[0].canonical,
            confidence=results[0].confidence,
            distance=results[0].distance,
            match_kind=MatchKind.FUZZY,
            needs_confirmation=results[0].needs_confirmation,
            alternative_matches=tuple(results[1:]),
            brand=results[0].brand,
        )
        return [primary, *results[1:]]

    # Helpers

    def _exact_result(self, identifier: CanonicalIdentifier, brand: str) -> MatchResult:
        return MatchResult(
            canonical=identifier,
            confidence=1.0,
            match_kind=MatchKind.EXACT,
            needs_confirmation=False,
            brand=brand,
        )

    def _resolve_fragment(self, brand: str, fragment: str) -> CanonicalIdentifier:
        """Resolve a model fragment within one brand, synthesizing if unknown.

        Tries, in order: a known identifier, a known model token ignoring
        separators (``af8250`` -> ``af_8250``), a variant of the same brand.
        """
        identifier = f"{brand}_{to_identifier(fragment)}"
        if identifier in self.reference_data:
            return identifier

        compact = fragment.replace(" ", "")
        for token in self.reference_data.model_tokens(brand):
            if token.replace("_", "") == compact:
                return f"{brand}_{token}"

        variant = self.reference_data.lookup_variant(fragment)
        if variant is not None and variant.canonical_brand == brand:
            self.reference_data.record_variant_usage(variant)
            return variant.canonical_id

        return identifier
