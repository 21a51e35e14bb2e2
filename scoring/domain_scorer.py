"""
Domain scoring for a single task session.

Combines performance, face and motion metrics into three domain scores and
an overall ADHD probability score.

Domains (each 0-100, higher = more ADHD-like behavior):
- Attention: dominated by attention-specific signals (look-away rate,
  sustained attention, distractibility), supported by missed responses,
  accuracy and response time
- Hyperactivity: dominated by fidgeting and restlessness, supported by
  facial movement, direction changes, blink rate and face visibility
- Impulsivity: response variability, emotion changes, sudden movements,
  emotion variability, accuracy and response time

Engineering approach:
- Each domain is a weighted mean of 0-100 factors
- Weights are renormalized over the factors actually measured; a domain
  with no measured factor scores 0
- Overall = weighted sum of domains (0.45 / 0.30 / 0.25 by default)

Score interpretation (overall):
- 70-100: High likelihood of ADHD-related behavior patterns
- 40-69: Moderate indications
- 20-39: Mild indications
- 0-19: Very few indications
"""

import logging
from typing import Dict, Mapping, Optional

import numpy as np

from core.data_models import (
    FaceMetrics,
    MotionMetrics,
    PerformanceMetrics,
    ScoringResult
)
from core.enums import Domain, TaskType
from utils.calibration import resolve_calibration
from .confidence import compute_confidence_level
from .markers import BehavioralMarkerFactory, FactorSet, session_duration_seconds

logger = logging.getLogger(__name__)


def weighted_domain_score(factor_set: FactorSet, weights: Mapping[str, float]) -> float:
    """
    Weighted mean of the available factors, renormalized over their weights.

    Returns 0.0 when none of the domain's factors were measured.
    """
    total_weight = 0.0
    weighted_sum = 0.0

    for key, weight in weights.items():
        factor = factor_set.get(key)
        if factor is None or weight <= 0:
            continue
        weighted_sum += weight * factor
        total_weight += weight

    if total_weight == 0:
        return 0.0

    return float(np.clip(weighted_sum / total_weight, 0.0, 100.0))


def combine_domains(domain_scores: Mapping[str, float], domain_weights: Mapping[str, float]) -> float:
    """Overall probability score as the weighted sum of domain scores."""
    overall = sum(
        domain_weights.get(domain.value, 0.0) * domain_scores.get(domain.value, 0.0)
        for domain in Domain
    )
    return float(np.clip(overall, 0.0, 100.0))


class DomainScorer:
    """
    Stateless scorer for one completed task session.

    Usage:
        scorer = DomainScorer(calibration)
        result = scorer.analyze(performance, face_metrics, motion_metrics, TaskType.CPT)
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize scorer.

        Args:
            config: Calibration dict; missing keys fall back to the defaults
        """
        self.config = resolve_calibration(config)
        self.marker_factory = BehavioralMarkerFactory(self.config)
        self.domain_factor_weights = self.config.get('domains', {})
        self.domain_weights = self.config.get('domain_weights', {})

    def analyze(
        self,
        performance: Optional[PerformanceMetrics],
        face_metrics: Optional[FaceMetrics],
        motion_metrics: Optional[MotionMetrics],
        task_type: Optional[TaskType] = None
    ) -> ScoringResult:
        """
        Score one session.

        Args:
            performance: Task performance (None = no task data)
            face_metrics: Face/attention metrics (None = no camera data)
            motion_metrics: Motion metrics (None = motion not tracked)
            task_type: Task that produced the session

        Returns:
            ScoringResult with integer scores and the session's markers
        """
        task_label = task_type.value if task_type else 'unspecified'
        logger.info(f"Computing domain scores for task '{task_label}'")

        factor_set = self.marker_factory.build(performance, face_metrics, motion_metrics)

        domain_scores = {
            domain.value: weighted_domain_score(
                factor_set,
                self.domain_factor_weights.get(domain.value, {})
            )
            for domain in Domain
        }
        overall = combine_domains(domain_scores, self.domain_weights)

        duration_seconds = session_duration_seconds(performance, motion_metrics)
        face_visibility = face_metrics.face_visible_percentage if face_metrics else None
        confidence = compute_confidence_level(
            face_visibility,
            duration_seconds,
            len(factor_set.markers),
            self.config
        )

        logger.info(
            f"Task '{task_label}': overall={overall:.1f}, "
            f"attention={domain_scores['attention']:.1f}, "
            f"hyperactivity={domain_scores['hyperactivity']:.1f}, "
            f"impulsivity={domain_scores['impulsivity']:.1f}, "
            f"confidence={confidence} ({len(factor_set.markers)} markers)"
        )

        return ScoringResult(
            adhd_probability_score=int(round(overall)),
            attention_score=int(round(domain_scores['attention'])),
            hyperactivity_score=int(round(domain_scores['hyperactivity'])),
            impulsivity_score=int(round(domain_scores['impulsivity'])),
            confidence_level=confidence,
            markers=tuple(factor_set.markers),
            duration_ms=int(round(duration_seconds * 1000)),
            task_type=task_type
        )
