"""
Confidence level for a scored session.

Confidence estimates data quality only (how much evidence the score rests
on), not the likelihood that the screening result is clinically correct.

Components:
- Baseline (70)
- Session duration: longer sessions give more stable rates
- Face visibility: unmeasured or poor visibility weakens face metrics
- Marker count: more measured metrics means broader evidence
"""

import logging
from typing import Dict, Optional

import numpy as np

from utils.calibration import resolve_calibration

logger = logging.getLogger(__name__)


def _at_least(value: float, table, default: float) -> float:
    for cutoff, bonus in table:
        if value >= cutoff:
            return bonus
    return default


def _above(value: float, table, default: float) -> float:
    for cutoff, bonus in table:
        if value > cutoff:
            return bonus
    return default


def compute_confidence_level(
    face_visible_percentage: Optional[float],
    duration_seconds: float,
    marker_count: int,
    config: Optional[Dict] = None
) -> int:
    """
    Compute confidence (0-100) from data-quality indicators.

    Args:
        face_visible_percentage: Share of frames with a visible face
                                 (None = not measured)
        duration_seconds: Session duration
        marker_count: Number of markers the result carries
        config: Calibration dict (uses the 'confidence' section)

    Returns:
        Confidence level (0-100)
    """
    confidence_config = resolve_calibration(config).get('confidence', {})

    confidence = float(confidence_config.get('baseline', 70))

    confidence += _at_least(
        max(0.0, duration_seconds),
        confidence_config.get('duration_table', []),
        confidence_config.get('duration_default', 0)
    )

    if face_visible_percentage is None:
        confidence += confidence_config.get('visibility_default', -10)
    else:
        confidence += _above(
            face_visible_percentage,
            confidence_config.get('visibility_table', []),
            confidence_config.get('visibility_default', -10)
        )

    confidence += _at_least(
        marker_count,
        confidence_config.get('marker_table', []),
        confidence_config.get('marker_default', -10)
    )

    return int(round(float(np.clip(confidence, 0, 100))))
