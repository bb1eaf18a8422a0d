"""Custom exception hierarchy for slippymap."""

from __future__ import annotations


class SlippyMapError(Exception):
    """Base class for all custom errors raised by slippymap."""


# --- Configuration errors ---

class OptionsError(SlippyMapError):
    """Base class for map option failures."""


class OptionsValidationError(OptionsError):
    """Raised when map options fail schema validation."""


# --- Programming defects ---

class ViewportInvariantError(SlippyMapError):
    """Raised when a committed viewport state breaks one of its invariants."""


__all__ = [
    "OptionsError",
    "OptionsValidationError",
    "SlippyMapError",
    "ViewportInvariantError",
]
