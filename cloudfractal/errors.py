"""
Exception hierarchy for fractal rendering.

Every error raised by the render engine derives from FractalError so callers
(the web layer and the CLI) can translate them into responses in one place.
"""

from typing import Any, Optional


class FractalError(Exception):
    """Base class for all rendering errors."""


class InvalidPalette(FractalError, ValueError):
    """Unrecognized palette token."""

    def __init__(self, token: Any):
        self.token = token
        super().__init__(f"Unknown palette '{token}'")


class InvalidParameter(FractalError, ValueError):
    """A render parameter is malformed or out of range."""

    def __init__(self, name: str, value: Any, reason: str):
        self.name = name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value for {name}: {value!r} ({reason})")


class ResourceExhausted(FractalError):
    """The requested render is too large to compute."""


class RowComputationFailed(FractalError):
    """A scanline task failed, so the whole render is abandoned."""

    def __init__(self, row: Optional[int], cause: BaseException):
        self.row = row
        super().__init__(f"Computation of row {row} failed: {cause}")
