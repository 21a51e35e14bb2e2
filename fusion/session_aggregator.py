"""
Multi-task session aggregation.

Combines the per-task ScoringResults of one assessment into a single
CompositeResult.

Aggregation rules:
1. Domain scores: each task's score times its task multiplier, averaged
   over the tasks that were run, clamped to 0-100
2. Overall: recomputed from the composite domains with the same domain
   weights used for single sessions
3. Confidence: mean task confidence, raised per additional task and
   lowered per expected task that was not run
4. Markers: pooled, one per name (highest severity kept), ranked by
   severity and truncated to the top N

Clinical rationale:
- Some tasks probe one domain more directly (CPT for sustained attention,
  go/no-go for response inhibition), so their scores count for more there
- Agreement across several tasks strengthens the evidence
- One marker per name keeps the summary readable
"""

import logging
from typing import Dict, Iterable, List, Optional

import numpy as np

from core.data_models import BehavioralMarker, CompositeResult, ScoringResult
from core.enums import Domain
from scoring.domain_scorer import combine_domains
from utils.calibration import resolve_calibration

logger = logging.getLogger(__name__)

_DOMAIN_FIELDS = {
    Domain.ATTENTION: 'attention_score',
    Domain.HYPERACTIVITY: 'hyperactivity_score',
    Domain.IMPULSIVITY: 'impulsivity_score',
}


def select_top_markers(markers: Iterable[BehavioralMarker], top_n: int) -> List[BehavioralMarker]:
    """
    Keep the highest-severity marker per name, ranked by severity.

    Args:
        markers: Markers pooled from all tasks
        top_n: Maximum number of markers to return

    Returns:
        Markers with unique names, sorted by descending severity
    """
    best: Dict[str, BehavioralMarker] = {}
    for marker in markers:
        current = best.get(marker.name)
        if current is None or marker.severity > current.severity:
            best[marker.name] = marker

    ranked = sorted(best.values(), key=lambda m: m.severity, reverse=True)
    return ranked[:max(0, int(top_n))]


class SessionAggregator:
    """
    Combine task results into a composite assessment.

    Usage:
        aggregator = SessionAggregator(calibration)
        composite = aggregator.combine([cpt_result, go_no_go_result])
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize aggregator.

        Args:
            config: Calibration dict (uses 'aggregation' and 'domain_weights')
        """
        self.config = resolve_calibration(config)

        aggregation = self.config.get('aggregation', {})
        self.task_multipliers = aggregation.get('task_multipliers', {})
        self.expected_tasks = int(aggregation.get('expected_tasks', 5))
        self.per_task_boost = aggregation.get('per_task_confidence_boost', 2.5)
        self.missing_task_penalty = aggregation.get('missing_task_penalty', 8.0)
        self.top_markers = int(aggregation.get('top_markers', 12))
        self.domain_weights = self.config.get('domain_weights', {})

    def multiplier(self, result: ScoringResult, domain: Domain) -> float:
        """Task multiplier for one domain (1.0 when the task has none)."""
        if result.task_type is None:
            return 1.0
        return float(self.task_multipliers.get(result.task_type.value, {}).get(domain.value, 1.0))

    def combine(self, results: Iterable[ScoringResult]) -> CompositeResult:
        """
        Merge task results.

        Args:
            results: Zero or more per-task ScoringResults

        Returns:
            CompositeResult (empty with confidence 0 when no results)
        """
        results = list(results)

        if not results:
            logger.warning("No task results to aggregate")
            return CompositeResult(
                adhd_probability_score=0,
                attention_score=0,
                hyperactivity_score=0,
                impulsivity_score=0,
                confidence_level=0
            )

        logger.info(f"Computing composite assessment from {len(results)} task results")

        domain_scores = {}
        for domain, field_name in _DOMAIN_FIELDS.items():
            weighted = [getattr(r, field_name) * self.multiplier(r, domain) for r in results]
            domain_scores[domain.value] = float(np.clip(np.mean(weighted), 0.0, 100.0))

        overall = combine_domains(domain_scores, self.domain_weights)

        confidence = self._composite_confidence(results)

        markers = select_top_markers(
            (m for r in results for m in r.markers),
            self.top_markers
        )

        task_types = tuple(r.task_type for r in results if r.task_type is not None)

        logger.info(
            f"Composite assessment: overall={overall:.1f}, "
            f"confidence={confidence}, markers={len(markers)}"
        )

        return CompositeResult(
            adhd_probability_score=int(round(overall)),
            attention_score=int(round(domain_scores['attention'])),
            hyperactivity_score=int(round(domain_scores['hyperactivity'])),
            impulsivity_score=int(round(domain_scores['impulsivity'])),
            confidence_level=confidence,
            markers=tuple(markers),
            duration_ms=sum(r.duration_ms for r in results),
            task_count=len(results),
            task_types=task_types
        )

    def _composite_confidence(self, results: List[ScoringResult]) -> int:
        # Repeated task types count once; untyped results count individually
        task_types = {r.task_type for r in results if r.task_type is not None}
        count = len(task_types) + sum(1 for r in results if r.task_type is None)
        confidence = float(np.mean([r.confidence_level for r in results]))
        confidence += self.per_task_boost * (count - 1)
        confidence -= self.missing_task_penalty * max(0, self.expected_tasks - count)
        return int(round(float(np.clip(confidence, 0, 100))))
