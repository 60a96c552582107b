"""Exception hierarchy for the rbmkit library.

Every error raised by the sampling and gradient code is a programming or
configuration defect. Nothing here is retryable, and the core never catches
these exceptions itself.
"""

from __future__ import annotations


class RBMError(Exception):
    """Base class for all rbmkit errors."""


class ConfigurationError(RBMError):
    """Raised for an unrecognised unit kind or an invalid chain length."""


class ShapeMismatchError(RBMError):
    """Raised when a batch does not match the weight matrix dimensions."""

    def __init__(self, layer: str, expected: int, actual: int):
        self.layer = layer
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{layer} input has width {actual}, expected {expected}"
        )
