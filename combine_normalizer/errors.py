"""Typed errors raised by the normalization engine.

Every error carries a stable ``code`` so the surrounding service can map it to
a response without string matching. Per-request errors (``InvalidInput``,
``NormalizationFailed``) are always recoverable by the caller; reference data
errors are raised once, at load time, and stop the engine from being built.
"""

from typing import List, Optional

DEFAULT_HINTS = [
    "Check spelling of brand and model",
    "Try using just the model number",
    "Include the brand name, e.g. 'john deere s790'",
]


class NormalizationError(Exception):
    """Base class for all engine errors.

    Attributes:
        code: Stable machine-readable error code
        input: Original (raw) input that triggered the error, if any
        hints: Actionable suggestions for the person who typed the input
    """

    code = "NORMALIZATION_ERROR"

    def __init__(self, message: str, input: Optional[object] = None, hints: Optional[List[str]] = None):
        self.message = message
        self.input = input
        self.hints = list(hints) if hints else []
        super().__init__(message)

    def to_dict(self) -> dict:
        """Serialize the error for API / CLI responses."""
        return {
            "code": self.code,
            "message": self.message,
            "details": {
                "input": self.input if isinstance(self.input, str) else repr(self.input),
                "hints": list(self.hints),
            },
        }


class InvalidInput(NormalizationError):
    """Input is not a string, or canonicalizes to an empty string."""

    code = "INVALID_INPUT"


class NormalizationFailed(NormalizationError):
    """No matching stage produced a candidate above the low threshold."""

    code = "NORMALIZATION_FAILED"

    def __init__(self, message: str, input: Optional[object] = None, hints: Optional[List[str]] = None):
        super().__init__(message, input=input, hints=hints or DEFAULT_HINTS)


class ReferenceDataError(NormalizationError):
    """Reference data violates an integrity rule and cannot be loaded.

    Collects every problem found during a load so a curator can fix them in
    one pass, formatted the same way configuration errors are.
    """

    code = "REFERENCE_DATA_INVALID"

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.errors = errors or []
        self.suggestions = suggestions or []
        super().__init__(message, hints=self.suggestions)
        self.args = (self._format_message(),)

    def _format_message(self) -> str:
        parts = [self.message]

        if self.errors:
            parts.append("\nIntegrity Errors:")
            for i, error in enumerate(self.errors, 1):
                parts.append(f"  {i}. {error}")

        if self.suggestions:
            parts.append("\nSuggestions:")
            for suggestion in self.suggestions:
                parts.append(f"  - {suggestion}")

        return "\n".join(parts)

    def __str__(self) -> str:
        return self._format_message()
