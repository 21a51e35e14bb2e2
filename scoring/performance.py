"""
Task-performance metrics from raw trial outcomes.

Tasks record per-response reaction times and correct/incorrect/missed
counters; this module condenses them into a PerformanceMetrics record.

Response-time variability uses the population standard deviation (ddof=0):
the session's responses are the whole population being described, not a
sample from a larger one.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from core.data_models import PerformanceMetrics

logger = logging.getLogger(__name__)


def compute_performance_metrics(
    response_times_ms: Optional[Sequence[float]],
    correct: int,
    incorrect: int,
    missed: int,
    duration_seconds: float
) -> PerformanceMetrics:
    """
    Build PerformanceMetrics from raw task outcomes.

    Args:
        response_times_ms: Reaction times of answered trials (may be empty)
        correct: Correct responses
        incorrect: Incorrect responses (commission errors)
        missed: Targets without a response (omission errors)
        duration_seconds: Task duration

    Returns:
        PerformanceMetrics with mean response time (None without responses)
        and population standard deviation (None with fewer than two)
    """
    times = np.asarray(response_times_ms if response_times_ms is not None else [], dtype=float)
    times = times[np.isfinite(times) & (times >= 0)]

    dropped = (len(response_times_ms) if response_times_ms is not None else 0) - len(times)
    if dropped:
        logger.warning(f"Dropped {dropped} invalid response times")

    logger.info(f"Computing performance metrics from {len(times)} responses")

    avg_response_time = float(np.mean(times)) if len(times) > 0 else None
    response_time_std = float(np.std(times, ddof=0)) if len(times) >= 2 else None

    return PerformanceMetrics(
        correct=max(0, int(correct)),
        incorrect=max(0, int(incorrect)),
        missed=max(0, int(missed)),
        avg_response_time_ms=avg_response_time,
        response_time_std_ms=response_time_std,
        duration_seconds=max(0.0, float(duration_seconds))
    )
