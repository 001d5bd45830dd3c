"""Combine Normalizer: resolves free-form combine brand/model input to canonical identifiers."""

__version__ = "0.1.0"
