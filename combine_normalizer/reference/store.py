"""Immutable reference data snapshot used by the match resolver.

A ``ReferenceData`` instance is built once from validated records and never
mutated afterwards; replacing reference data means building a new snapshot.
The only mutable part is the variant usage counter, which is curation
metadata and does not influence resolution.
"""

import threading
from collections import Counter
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from combine_normalizer.domain.models import (
    BrandAlias,
    CanonicalIdentifier,
    CombineModel,
    ModelVariant,
    TypoPattern,
)
from combine_normalizer.errors import ReferenceDataError
from combine_normalizer.normalization import Canonicalizer, identifier_to_text, to_identifier

# Weight of a canonical brand name used as its own alias ("claas 8900")
CANONICAL_BRAND_WEIGHT = 0.9


@dataclass(frozen=True)
class AliasEntry:
    """Resolved alias lookup: which brand, and how much to trust it."""

    brand: str
    confidence: float


@dataclass(frozen=True)
class FuzzyCandidate:
    """One comparable spelling of a canonical identifier."""

    text: str
    canonical: CanonicalIdentifier
    brand: str


class ReferenceData:
    """Indexed snapshot of models, brand aliases, model variants and typo patterns.

    Indexes:
    - universe: canonical identifier -> brand
    - aliases: canonicalized alias -> AliasEntry (active aliases only, plus
      every canonical brand name as an implicit alias)
    - variants: canonicalized variant -> ModelVariant

    Raises ReferenceDataError on construction if any integrity rule is broken.
    """

    def __init__(
        self,
        models: Sequence[CombineModel] = (),
        brand_aliases: Sequence[BrandAlias] = (),
        model_variants: Sequence[ModelVariant] = (),
        typo_patterns: Sequence[TypoPattern] = (),
    ):
        self._models = tuple(models)
        self._brand_aliases = tuple(brand_aliases)
        self._model_variants = tuple(model_variants)
        self._canonicalizer = Canonicalizer(typo_patterns)

        errors: List[str] = self._canonicalizer.check_patterns(self._pattern_samples())
        self._universe = self._index_models(errors)
        self._aliases = self._index_aliases(errors)
        self._variants = self._index_variants(errors)

        if errors:
            raise ReferenceDataError(
                f"Reference data failed {len(errors)} integrity check(s)",
                errors=errors,
                suggestions=[
                    "Each variant and alias must map to exactly one target",
                    "Declare every model referenced by a variant under 'models'",
                    "A typo pattern's replacement must not contain text the pattern matches",
                ],
            )

        brand_models: Dict[str, List[str]] = {}
        for model in self._models:
            tokens = brand_models.setdefault(model.brand, [])
            if model.model not in tokens:
                tokens.append(model.model)
        self._brand_models = {brand: tuple(tokens) for brand, tokens in brand_models.items()}
        self._fuzzy_candidates = self._build_fuzzy_candidates()
        self._usage: Counter = Counter()
        self._usage_lock = threading.Lock()

    # Index construction

    def _pattern_samples(self) -> List[str]:
        samples = [identifier_to_text(model.canonical_id) for model in self._models]
        samples.extend(alias.alias for alias in self._brand_aliases)
        samples.extend(variant.variant for variant in self._model_variants)
        return samples

    def _index_models(self, errors: List[str]) -> Dict[CanonicalIdentifier, str]:
        universe: Dict[CanonicalIdentifier, str] = {}
        for model in self._models:
            cid = model.canonical_id
            owner = universe.get(cid)
            if owner is not None and owner != model.brand:
                errors.append(
                    f"identifier '{cid}' is claimed by brands '{owner}' and '{model.brand}'"
                )
                continue
            universe[cid] = model.brand
        return universe

    def _index_aliases(self, errors: List[str]) -> Dict[str, AliasEntry]:
        explicit: Dict[str, AliasEntry] = {}
        for alias in self._brand_aliases:
            key = self._canonicalizer.canonicalize(alias.alias)
            if not key:
                errors.append(f"brand alias '{alias.alias}' canonicalizes to an empty string")
                continue
            existing = explicit.get(key)
            if existing is not None and existing.brand != alias.canonical:
                errors.append(
                    f"brand alias '{key}' maps to both '{existing.brand}' and '{alias.canonical}'"
                )
                continue
            if not alias.is_active:
                continue
            if existing is None or alias.confidence > existing.confidence:
                explicit[key] = AliasEntry(alias.canonical, alias.confidence)

        aliases: Dict[str, AliasEntry] = {}
        for brand in sorted(self.brands):
            key = self._canonicalizer.canonicalize(identifier_to_text(brand))
            if key:
                aliases[key] = AliasEntry(brand, CANONICAL_BRAND_WEIGHT)

        # A brand's own name cannot be re-pointed at another brand
        for alias in self._brand_aliases:
            key = self._canonicalizer.canonicalize(alias.alias)
            implicit = aliases.get(key)
            if implicit is not None and implicit.brand != alias.canonical:
                errors.append(
                    f"brand alias '{alias.alias}' maps to '{alias.canonical}' "
                    f"but is the name of brand '{implicit.brand}'"
                )

        aliases.update(explicit)
        return aliases

    def _index_variants(self, errors: List[str]) -> Dict[str, ModelVariant]:
        variants: Dict[str, ModelVariant] = {}
        for variant in self._model_variants:
            cid = variant.canonical_id
            if cid not in self._universe:
                errors.append(f"variant '{variant.variant}' references unknown model '{cid}'")
                continue

            key = self._canonicalizer.canonicalize(variant.variant)
            if not key:
                errors.append(f"variant '{variant.variant}' canonicalizes to an empty string")
                continue

            # A variant spelled like another identifier would be shadowed by the exact stage
            for spelling in (variant.variant.lower(), to_identifier(key)):
                if spelling in self._universe and spelling != cid:
                    errors.append(
                        f"variant '{variant.variant}' maps to '{cid}' but is spelled like identifier '{spelling}'"
                    )

            existing = variants.get(key)
            if existing is not None:
                if existing.canonical_id != cid:
                    errors.append(
                        f"variant '{key}' maps to both '{existing.canonical_id}' and '{cid}'"
                    )
                continue
            variants[key] = variant
        return variants

    def _build_fuzzy_candidates(self) -> Tuple[FuzzyCandidate, ...]:
        seen = set()
        candidates = []
        for cid, brand in self._universe.items():
            text = identifier_to_text(cid)
            if text not in seen:
                seen.add(text)
                candidates.append(FuzzyCandidate(text, cid, brand))
        for key, variant in self._variants.items():
            if key not in seen:
                seen.add(key)
                candidates.append(FuzzyCandidate(key, variant.canonical_id, variant.canonical_brand))
        return tuple(candidates)

    # Read access

    @property
    def canonicalizer(self) -> Canonicalizer:
        return self._canonicalizer

    @property
    def identifiers(self) -> FrozenSet[CanonicalIdentifier]:
        return frozenset(self._universe)

    @property
    def brands(self) -> FrozenSet[str]:
        return frozenset(self._universe.values())

    @property
    def models(self) -> Tuple[CombineModel, ...]:
        return self._models

    @property
    def brand_aliases(self) -> Tuple[BrandAlias, ...]:
        return self._brand_aliases

    @property
    def model_variants(self) -> Tuple[ModelVariant, ...]:
        return self._model_variants

    @property
    def typo_patterns(self) -> Tuple[TypoPattern, ...]:
        return self._canonicalizer.patterns

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._universe

    def __len__(self) -> int:
        return len(self._universe)

    def brand_of(self, identifier: CanonicalIdentifier) -> Optional[str]:
        """Brand token of a known identifier, or None."""
        return self._universe.get(identifier)

    def model_tokens(self, brand: str) -> Tuple[str, ...]:
        """Model tokens of a brand, in load order."""
        return self._brand_models.get(brand, ())

    def lookup_alias(self, canonical_text: str) -> Optional[AliasEntry]:
        """Look up an already-canonicalized brand alias."""
        return self._aliases.get(canonical_text)

    def lookup_variant(self, canonical_text: str) -> Optional[ModelVariant]:
        """Look up an already-canonicalized model variant."""
        return self._variants.get(canonical_text)

    def fuzzy_candidates(self) -> Tuple[FuzzyCandidate, ...]:
        """Every comparable spelling, in deterministic (load) order."""
        return self._fuzzy_candidates

    # Usage tracking

    def record_variant_usage(self, variant: ModelVariant) -> int:
        """Count one resolution through a variant; returns the new total."""
        key = self._canonicalizer.canonicalize(variant.variant)
        with self._usage_lock:
            self._usage[key] += 1
            return variant.usage_count + self._usage[key]

    def usage_count(self, variant_text: str) -> int:
        """Seeded plus in-process usage for a variant spelling (0 if unknown)."""
        key = self._canonicalizer.canonicalize(variant_text)
        variant = self._variants.get(key)
        if variant is None:
            return 0
        with self._usage_lock:
            return variant.usage_count + self._usage[key]

    def summary(self) -> Dict[str, int]:
        """Record counts, for logging."""
        return {
            "models": len(self._universe),
            "brands": len(self.brands),
            "brand_aliases": len(self._aliases),
            "model_variants": len(self._variants),
            "typo_patterns": len(self.typo_patterns),
        }


def build_reference_data(
    models: Iterable[CombineModel] = (),
    brand_aliases: Iterable[BrandAlias] = (),
    model_variants: Iterable[ModelVariant] = (),
    typo_patterns: Iterable[TypoPattern] = (),
) -> ReferenceData:
    """Convenience constructor accepting any iterables."""
    return ReferenceData(
        models=list(models),
        brand_aliases=list(brand_aliases),
        model_variants=list(model_variants),
        typo_patterns=list(typo_patterns),
    )
