"""
Error kinds raised by the detection pipeline.

Every stage raises to its immediate caller; nothing in `frog_kit` turns a
failure into an empty detection list.
"""

from __future__ import annotations


class FrogKitError(Exception):
    """Base class for all pipeline errors."""


class InvalidInputError(FrogKitError, ValueError):
    """Raised when an image or its dimensions cannot be preprocessed."""


class InferenceError(FrogKitError, RuntimeError):
    """Raised when the inference runtime fails to load or execute the model."""


class MalformedOutputError(FrogKitError, ValueError):
    """Raised when a raw model output does not match the expected channel layout."""
