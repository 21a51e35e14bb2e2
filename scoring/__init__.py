"""
Behavioral scoring module.

This package turns one task session's raw metrics into an explainable result:
1. Behavioral markers: each metric mapped to a 0-100 factor via calibrated
   step tables, plus a thresholded marker for explanation
2. Domain scores (0-100): attention, hyperactivity, impulsivity
3. Overall ADHD probability score (0-100) and a data-quality confidence level

All scores are:
- Interpretable (0-100 scale, higher = more ADHD-like behavior)
- Explainable (every factor traces to a marker with a constant threshold)
- Non-diagnostic (behavioral screening, not medical diagnosis)
"""

from .performance import compute_performance_metrics
from .markers import BehavioralMarkerFactory, FactorSet, MetricRule
from .confidence import compute_confidence_level
from .domain_scorer import DomainScorer
from .interpretation import (
    get_score_text,
    get_interpretation_text,
    get_metric_description,
    describe_result
)

__all__ = [
    'compute_performance_metrics',
    'BehavioralMarkerFactory',
    'FactorSet',
    'MetricRule',
    'compute_confidence_level',
    'DomainScorer',
    'get_score_text',
    'get_interpretation_text',
    'get_metric_description',
    'describe_result',
]
