"""
Shared data model for the ADHD behavioral screening engine.

Every pipeline stage exchanges these immutable records:
- Motion samples, events and metric snapshots (motion pipeline)
- Face and performance metrics (external inputs)
- Behavioral markers, per-task and composite results (scoring, fusion)
"""

from .data_models import (
    MotionSample,
    MotionEvent,
    MotionMetrics,
    FaceMetrics,
    PerformanceMetrics,
    BehavioralMarker,
    ScoringResult,
    CompositeResult
)

from .enums import (
    TaskType,
    Domain,
    IntensityBin,
    BadnessDirection
)

__all__ = [
    'MotionSample',
    'MotionEvent',
    'MotionMetrics',
    'FaceMetrics',
    'PerformanceMetrics',
    'BehavioralMarker',
    'ScoringResult',
    'CompositeResult',
    'TaskType',
    'Domain',
    'IntensityBin',
    'BadnessDirection',
]
