"""
Core data models for the ADHD behavioral screening engine.

All records are immutable value objects. Results are produced once per
completed session and never updated afterwards.
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .enums import TaskType


@dataclass(frozen=True)
class MotionSample:
    """Raw 3-axis reading (accelerometer in m/s^2 or gyroscope in rad/s)."""
    timestamp_ms: int
    x: float
    y: float
    z: float

    def is_finite(self) -> bool:
        """Check that the timestamp and every axis hold usable numbers."""
        return all(math.isfinite(v) for v in (self.timestamp_ms, self.x, self.y, self.z))


@dataclass(frozen=True)
class MotionEvent:
    """Filtered sample whose change magnitude exceeded the noise floor."""
    timestamp_ms: int
    dx: float
    dy: float
    dz: float
    magnitude: float

    @property
    def vector(self) -> Tuple[float, float, float]:
        return (self.dx, self.dy, self.dz)


@dataclass(frozen=True)
class MotionMetrics:
    """
    Snapshot of movement metrics for one tracking session.

    The processor always fills every field. Metrics supplied precomputed
    may leave the event counts as None (not reported), in which case they
    contribute no factor.

    Attributes:
        fidgeting_score: Repetitive small-movement score (0-100)
        general_movement_score: Share of events in any intensity bin (0-100)
        direction_changes: Debounced, capped direction reversals (None = not reported)
        sudden_movements: Debounced, capped sudden movements (None = not reported)
        movement_intensity: Mean event magnitude (physical units, unscaled)
        restlessness: Blend of large/sudden/direction activity (0-100)
        event_count: Number of buffered events the snapshot was built from
        duration_seconds: Span of the tracked sample stream
    """
    fidgeting_score: int = 0
    general_movement_score: int = 0
    direction_changes: Optional[int] = None
    sudden_movements: Optional[int] = None
    movement_intensity: float = 0.0
    restlessness: int = 0
    event_count: int = 0
    duration_seconds: float = 0.0

    @property
    def has_data(self) -> bool:
        return self.event_count > 0


@dataclass(frozen=True)
class FaceMetrics:
    """
    Face/attention metrics produced by the external face-analysis stage.

    Any field left as None was not measured and contributes no factor.

    Attributes:
        look_away_count: Times gaze left the task area
        blink_rate: Blinks per minute
        sustained_attention_score: Ability to hold focus (0-100, higher = better)
        distractibility_index: Ease of distraction (0-100)
        emotion_changes: Number of expression changes
        emotion_variability_score: Intensity of expression changes (0-100)
        face_visible_percentage: Share of frames with a visible face (0-100)
        attention_lapse_frequency: Attention lapses per minute
        average_look_away_duration_ms: Mean look-away length
        facial_movement_score: Facial restlessness (0-100)
    """
    look_away_count: Optional[int] = None
    blink_rate: Optional[float] = None
    sustained_attention_score: Optional[float] = None
    distractibility_index: Optional[float] = None
    emotion_changes: Optional[int] = None
    emotion_variability_score: Optional[float] = None
    face_visible_percentage: Optional[float] = None
    attention_lapse_frequency: Optional[float] = None
    average_look_away_duration_ms: Optional[float] = None
    facial_movement_score: Optional[float] = None


@dataclass(frozen=True)
class PerformanceMetrics:
    """
    Task-performance counters for one session.

    Response-time fields are None for tasks that cannot measure them
    (e.g. reading has no per-trial response-time variability).
    """
    correct: int = 0
    incorrect: int = 0
    missed: int = 0
    avg_response_time_ms: Optional[float] = None
    response_time_std_ms: Optional[float] = None
    duration_seconds: float = 0.0

    @property
    def total_responses(self) -> int:
        return max(0, self.correct) + max(0, self.incorrect) + max(0, self.missed)

    @property
    def accuracy(self) -> float:
        """Correct responses as a percentage; 0 when no trials were attempted."""
        total = self.total_responses
        if total == 0:
            return 0.0
        return 100.0 * max(0, self.correct) / total

    @property
    def missed_rate(self) -> float:
        """Missed responses as a percentage; 0 when no trials were attempted."""
        total = self.total_responses
        if total == 0:
            return 0.0
        return 100.0 * max(0, self.missed) / total


@dataclass(frozen=True)
class BehavioralMarker:
    """
    Named, thresholded observation used to explain a result.

    Attributes:
        name: Marker name (e.g. "Look Away Rate")
        value: Observed value in the metric's own units
        threshold: Calibration threshold (constant, never session-derived)
        significance: Severity tier (1 = mild, 2 = moderate, 3 = high)
        description: Human-readable context
    """
    name: str
    value: float
    threshold: float
    significance: int
    description: str = ""

    @property
    def severity(self) -> float:
        """Ranking score: significance scaled by value relative to threshold."""
        if self.threshold == 0:
            return 0.0
        return self.significance * (self.value / self.threshold)


@dataclass(frozen=True)
class ScoringResult:
    """Scored outcome of one completed task session."""
    adhd_probability_score: int
    attention_score: int
    hyperactivity_score: int
    impulsivity_score: int
    confidence_level: int
    markers: Tuple[BehavioralMarker, ...] = field(default_factory=tuple)
    duration_ms: int = 0
    task_type: Optional[TaskType] = None

    def to_dict(self) -> dict:
        return {
            'task_type': self.task_type.value if self.task_type else None,
            'adhd_probability_score': self.adhd_probability_score,
            'attention_score': self.attention_score,
            'hyperactivity_score': self.hyperactivity_score,
            'impulsivity_score': self.impulsivity_score,
            'confidence_level': self.confidence_level,
            'duration_ms': self.duration_ms,
            'markers': [_marker_to_dict(m) for m in self.markers],
        }


@dataclass(frozen=True)
class CompositeResult:
    """Merged outcome of several task sessions run as one assessment."""
    adhd_probability_score: int
    attention_score: int
    hyperactivity_score: int
    impulsivity_score: int
    confidence_level: int
    markers: Tuple[BehavioralMarker, ...] = field(default_factory=tuple)
    duration_ms: int = 0
    task_count: int = 0
    task_types: Tuple[TaskType, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            'adhd_probability_score': self.adhd_probability_score,
            'attention_score': self.attention_score,
            'hyperactivity_score': self.hyperactivity_score,
            'impulsivity_score': self.impulsivity_score,
            'confidence_level': self.confidence_level,
            'duration_ms': self.duration_ms,
            'task_count': self.task_count,
            'task_types': [t.value for t in self.task_types],
            'markers': [_marker_to_dict(m) for m in self.markers],
        }


def _marker_to_dict(marker: BehavioralMarker) -> dict:
    return {
        'name': marker.name,
        'value': float(marker.value),
        'threshold': float(marker.threshold),
        'significance': marker.significance,
        'severity': float(marker.severity),
        'description': marker.description,
    }

