"""Input canonicalization for brand + model lookups.

Canonicalization turns free text into the form every index is keyed by:
1. Lowercase
2. Strip everything outside ``[a-z0-9]`` and whitespace
3. Collapse whitespace runs to a single space
4. Trim
5. Apply the ordered typo patterns, then repeat steps 2-4

Step 5 is repeated until the text stops changing (bounded by
``MAX_PATTERN_PASSES``), so canonicalizing an already-canonical string is a
no-op. ``Canonicalizer.check_patterns`` reports pattern tables that cannot
settle; reference data refuses to load them. Underscores are stripped in step 2; ``to_identifier`` maps the
space-separated form back to identifier spelling.
"""

import re
from typing import Iterable, List, Optional, Sequence, Tuple

from combine_normalizer.domain.models import TypoPattern

_DISALLOWED = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_GROUP_REFERENCE = re.compile(r"\\(\d|g<)")

MAX_PATTERN_PASSES = 8

CompiledPattern = Tuple[re.Pattern, str]


def clean_text(raw: str) -> str:
    """Apply steps 1-4 (lowercase, strip, collapse, trim)."""
    text = raw.lower()
    text = _DISALLOWED.sub("", text)
    text = _WHITESPACE.sub(" ", text)
    return text.strip()


def compile_patterns(patterns: Iterable[TypoPattern]) -> List[CompiledPattern]:
    return [(re.compile(p.pattern), p.replacement) for p in patterns]


def to_identifier(text: str) -> str:
    """Space-separated canonical text -> underscore identifier spelling."""
    return text.replace(" ", "_")


def identifier_to_text(identifier: str) -> str:
    """Underscore identifier -> space-separated text, for comparisons."""
    return identifier.replace("_", " ")


class Canonicalizer:
    """Canonicalizes raw input with a fixed, ordered set of typo patterns.

    Instances are immutable and safe to share across threads.
    """

    def __init__(self, patterns: Sequence[TypoPattern] = ()):
        self._patterns = tuple(patterns)
        self._compiled = tuple(compile_patterns(self._patterns))

    @property
    def patterns(self) -> Tuple[TypoPattern, ...]:
        return self._patterns

    def canonicalize(self, raw: Optional[object]) -> str:
        """Canonicalize raw input.

        Total over its domain: non-string input canonicalizes to the empty
        string, which callers treat as invalid input.

        Args:
            raw: Text as typed by the user

        Returns:
            Canonical text (possibly empty)
        """
        if not isinstance(raw, str):
            return ""

        text = clean_text(raw)
        if not self._compiled:
            return text

        return self._rewrite(text)[0]

    def check_patterns(self, samples: Iterable[str] = ()) -> List[str]:
        """
        Find patterns that would make canonicalization non-idempotent.

        A pattern is rejected when its own (literal) replacement still matches
        it, since every pass would then grow the text again. Each sample is
        also canonicalized and must settle within ``MAX_PATTERN_PASSES``.

        Args:
            samples: Raw spellings the patterns will see (identifiers, aliases, variants)

        Returns:
            One message per problem (empty when the patterns are safe)
        """
        problems: List[str] = []

        for pattern, (regex, replacement) in zip(self._patterns, self._compiled):
            if _GROUP_REFERENCE.search(replacement):
                continue
            if regex.search(clean_text(replacement)):
                problems.append(
                    f"typo pattern '{pattern.pattern}' matches its own replacement '{replacement}'"
                )

        if not self._compiled:
            return problems

        seen = set()
        for sample in samples:
            text = clean_text(sample)
            if not text or text in seen:
                continue
            seen.add(text)
            settled, converged = self._rewrite(text)
            if not converged:
                problems.append(
                    f"typo patterns do not settle on '{sample}' within {MAX_PATTERN_PASSES} passes "
                    f"(got '{settled}')"
                )

        return problems

    def _rewrite(self, text: str) -> Tuple[str, bool]:
        """Apply passes until the text stops changing; flag if the budget ran out."""
        for _ in range(MAX_PATTERN_PASSES):
            rewritten = clean_text(self._apply_patterns(text))
            if rewritten == text:
                return text, True
            text = rewritten
        return text, False

    def _apply_patterns(self, text: str) -> str:
        for regex, replacement in self._compiled:
            text = regex.sub(replacement, text)
        return text

    def to_identifier(self, raw: Optional[object]) -> str:
        """Canonicalize and spell the result as an identifier."""
        return to_identifier(self.canonicalize(raw))


def canonicalize(raw: Optional[object], patterns: Sequence[TypoPattern] = ()) -> str:
    """Canonicalize with an ad-hoc pattern list (see ``Canonicalizer``)."""
    return Canonicalizer(patterns).canonicalize(raw)
