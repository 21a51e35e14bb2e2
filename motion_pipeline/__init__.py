"""
Motion processing pipeline.

This package converts the device accelerometer (and optional gyroscope)
stream into movement metrics for hyperactivity assessment:
- Moving-average denoising and change-magnitude event extraction
- Intensity binning (fidget, medium, large, sudden)
- Repetitive-movement fidgeting, debounced direction changes and sudden
  movements, restlessness

Clinical rationale:
- Some movement during a task is normal; only sustained, repetitive or
  abrupt activity is informative
- Debounce intervals and caps keep sensor jitter from inflating counts
"""

from .signal_processor import MotionSignalProcessor, MovingAverageFilter
from .movement_analysis import (
    classify_intensity,
    intensity_bin,
    count_direction_changes,
    count_sudden_movements,
    compute_repetition_score,
    compute_restlessness
)

__all__ = [
    'MotionSignalProcessor',
    'MovingAverageFilter',
    'classify_intensity',
    'intensity_bin',
    'count_direction_changes',
    'count_sudden_movements',
    'compute_repetition_score',
    'compute_restlessness',
]
