"""Shared utilities for the ADHD behavioral screening engine."""

from .config_loader import load_config, merge_config
from .calibration import (
    CALIBRATION_VERSION,
    DEFAULT_CALIBRATION,
    load_calibration,
    resolve_calibration
)

__all__ = [
    'load_config',
    'merge_config',
    'CALIBRATION_VERSION',
    'DEFAULT_CALIBRATION',
    'load_calibration',
    'resolve_calibration',
]
