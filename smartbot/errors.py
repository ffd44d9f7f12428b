"""Exception types raised at the configuration boundary."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid parameters: non-positive periods, fractions outside [0, 1], unknown keys.

    Raised before any indicator is computed.  Short histories and degenerate
    price data never raise; they degrade to Hold opinions and sentinel values.
    """
