"""Replay package: bar validation and preparation."""

from .bars import prepare_bars, volume_proxy
from .validation import validate_bars

__all__ = ["prepare_bars", "volume_proxy", "validate_bars"]
