"""
Behavioral marker factory.

Maps every raw metric of a session to:
- a factor (0-100) read from a monotone step table, used by domain scoring
- a BehavioralMarker (value, constant threshold, significance tier) used to
  explain the result

Metrics:
- Performance: response time, response variability, task accuracy,
  missed responses (as a rate of all trials)
- Face: look-away rate, sustained attention, look-away duration, attention
  lapses, distractibility, blink rate, face visibility, facial movement,
  emotion changes, emotion variability
- Motion: fidgeting, direction changes, sudden movements, restlessness

Clinical rationale:
- Step tables keep each factor explainable ("look-away rate above 10/min")
- Thresholds are calibration constants, never derived from the session
- A metric that was not measured is left out rather than treated as normal
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from core.data_models import (
    BehavioralMarker,
    FaceMetrics,
    MotionMetrics,
    PerformanceMetrics
)
from core.enums import BadnessDirection
from utils.calibration import resolve_calibration
from .interpretation import get_metric_description

logger = logging.getLogger(__name__)

# Inputs reported on a 0-100 scale; clamped before any transform
PERCENTAGE_METRICS = frozenset([
    'sustained_attention',
    'distractibility',
    'face_visibility',
    'facial_movement',
    'emotion_variability',
    'fidgeting',
    'restlessness',
])


@dataclass(frozen=True)
class MetricRule:
    """
    Calibrated conversion of one raw metric into a factor and a marker.

    Attributes:
        key: Calibration key (e.g. 'look_away_rate')
        name: Marker name
        direction: Which way the metric moves for more ADHD-like behavior
        threshold: Constant marker threshold
        tiers: Cutoffs for significance 2 and 3, in the badness direction
        table: (cutoff, factor) pairs checked in order
        scale: Multiplier applied to the raw value
        cap: Upper bound applied after scaling
        per_minute: Convert the (scaled) count into a per-minute rate
    """
    key: str
    name: str
    direction: BadnessDirection
    threshold: float
    tiers: Tuple[float, ...]
    table: Tuple[Tuple[float, float], ...]
    scale: float = 1.0
    cap: Optional[float] = None
    per_minute: bool = False

    @classmethod
    def from_config(cls, key: str, rule_config: Dict) -> 'MetricRule':
        return cls(
            key=key,
            name=rule_config.get('name', key),
            direction=BadnessDirection(rule_config.get('direction', 'higher_is_worse')),
            threshold=float(rule_config.get('threshold', 0.0)),
            tiers=tuple(float(t) for t in rule_config.get('tiers', [])),
            table=tuple((float(c), float(f)) for c, f in rule_config.get('table', [])),
            scale=float(rule_config.get('scale', 1.0)),
            cap=rule_config.get('cap'),
            per_minute=bool(rule_config.get('per_minute', False))
        )

    def _worse_than(self, value: float, cutoff: float) -> bool:
        if self.direction == BadnessDirection.HIGHER_IS_WORSE:
            return value > cutoff
        return value < cutoff

    def transform(self, raw: float, minute_multiplier: float) -> float:
        """Apply scale, cap and per-minute conversion to a raw value."""
        value = max(0.0, float(raw))
        if self.key in PERCENTAGE_METRICS:
            value = min(value, 100.0)

        value *= self.scale
        if self.cap is not None:
            value = min(value, float(self.cap))

        if self.per_minute:
            value *= minute_multiplier

        return value

    def factor(self, value: float) -> float:
        """Step-table lookup; values matching no step map to 0."""
        for cutoff, factor in self.table:
            if self._worse_than(value, cutoff):
                return float(np.clip(factor, 0.0, 100.0))
        return 0.0

    def significance(self, value: float) -> int:
        """
        Severity tier: 3 past the far cutoff, 2 past the near one, else 1.

        A rule with a single tier cutoff tops out at significance 2.
        """
        level = 1
        for tier, cutoff in enumerate(self.tiers, start=2):
            if self._worse_than(value, cutoff):
                level = tier
        return level

    def marker(self, value: float) -> BehavioralMarker:
        return BehavioralMarker(
            name=self.name,
            value=float(value),
            threshold=self.threshold,
            significance=self.significance(value),
            description=get_metric_description(self.name)
        )


@dataclass
class FactorSet:
    """
    Factors keyed by metric key plus markers in evaluation order.

    Metrics that were not measured appear in neither collection.
    """
    factors: Dict[str, float] = field(default_factory=dict)
    markers: List[BehavioralMarker] = field(default_factory=list)

    def __contains__(self, key: str) -> bool:
        return key in self.factors

    def get(self, key: str, default: Optional[float] = None) -> Optional[float]:
        return self.factors.get(key, default)


def session_duration_seconds(
    performance: Optional[PerformanceMetrics],
    motion: Optional[MotionMetrics]
) -> float:
    """Task duration, falling back to the tracked motion span."""
    if performance is not None and performance.duration_seconds > 0:
        return float(performance.duration_seconds)
    if motion is not None and motion.duration_seconds > 0:
        return float(motion.duration_seconds)
    return 0.0


class BehavioralMarkerFactory:
    """
    Build factors and markers for one session.

    Usage:
        factory = BehavioralMarkerFactory(calibration)
        factor_set = factory.build(performance, face, motion)
    """

    def __init__(self, config: Optional[Dict] = None):
        self.config = resolve_calibration(config)
        self.rules: Dict[str, MetricRule] = {
            key: MetricRule.from_config(key, rule_config)
            for key, rule_config in self.config.get('markers', {}).items()
        }

    def build(
        self,
        performance: Optional[PerformanceMetrics],
        face: Optional[FaceMetrics],
        motion: Optional[MotionMetrics]
    ) -> FactorSet:
        """
        Convert raw session metrics into factors and markers.

        Args:
            performance: Task counters and response times (None = no task data)
            face: Face/attention metrics (None = no camera data)
            motion: Motion metrics (None = motion not tracked)

        Returns:
            FactorSet with one entry per measured metric
        """
        duration = session_duration_seconds(performance, motion)
        if duration > 0:
            minute_multiplier = 60.0 / duration
        else:
            minute_multiplier = 0.0
            logger.warning("Session duration unavailable; per-minute rates set to 0")

        factor_set = FactorSet()
        inputs = self._collect_inputs(performance, face, motion)

        logger.info(f"Computing behavioral markers from {len(inputs)} measured metrics")

        for key, raw in inputs:
            rule = self.rules.get(key)
            if rule is None:
                logger.debug(f"No calibration rule for metric '{key}', skipping")
                continue

            value = rule.transform(raw, minute_multiplier)
            factor_set.factors[key] = rule.factor(value)
            factor_set.markers.append(rule.marker(value))

        if performance is not None and performance.total_responses == 0:
            # Zero trials: both performance ratios contribute factor 0, no marker
            factor_set.factors['task_accuracy'] = 0.0
            factor_set.factors['missed_responses'] = 0.0

        return factor_set

    @staticmethod
    def _collect_inputs(
        performance: Optional[PerformanceMetrics],
        face: Optional[FaceMetrics],
        motion: Optional[MotionMetrics]
    ) -> List[Tuple[str, float]]:
        candidates: List[Tuple[str, Optional[float]]] = []

        if performance is not None:
            has_trials = performance.total_responses > 0
            candidates.extend([
                ('response_time', performance.avg_response_time_ms),
                ('response_variability', performance.response_time_std_ms),
                ('task_accuracy', performance.accuracy if has_trials else None),
                ('missed_responses', performance.missed_rate if has_trials else None),
            ])

        if face is not None:
            candidates.extend([
                ('look_away_rate', face.look_away_count),
                ('sustained_attention', face.sustained_attention_score),
                ('look_away_duration', face.average_look_away_duration_ms),
                ('attention_lapses', face.attention_lapse_frequency),
                ('distractibility', face.distractibility_index),
                ('blink_rate', face.blink_rate),
                ('face_visibility', face.face_visible_percentage),
                ('facial_movement', face.facial_movement_score),
                ('emotion_changes', face.emotion_changes),
                ('emotion_variability', face.emotion_variability_score),
            ])

        if motion is not None:
            candidates.extend([
                ('fidgeting', motion.fidgeting_score),
                ('direction_changes', motion.direction_changes),
                ('sudden_movements', motion.sudden_movements),
                ('restlessness', motion.restlessness),
            ])

        inputs = []
        for key, raw in candidates:
            if raw is None:
                continue
            if not np.isfinite(raw):
                logger.warning(f"Ignoring non-finite value for metric '{key}'")
                continue
            inputs.append((key, raw))

        return inputs
