"""
Movement analysis over buffered motion events.

Pure functions used by MotionSignalProcessor.analyze():
- Intensity binning (fidget < medium < large < sudden)
- Direction-change and sudden-movement counting with debounce and caps
- Repetitive (back-and-forth) movement detection for fidgeting
- Restlessness blend with short-session dampening

Engineering approach:
- Vectorized where the computation is order-independent (numpy/scipy)
- Sequential loops only where debounce state depends on event order
- Every count bounded by a configured cap so pathological input (device
  left on a vibrating surface) cannot inflate metrics without limit
"""

import logging
from typing import Dict, Tuple

import numpy as np
from scipy.spatial.distance import cdist

from core.enums import IntensityBin

logger = logging.getLogger(__name__)

# Integer codes for vectorized binning, ordered by intensity
BIN_NONE = 0
BIN_FIDGET = 1
BIN_MEDIUM = 2
BIN_LARGE = 3
BIN_SUDDEN = 4

_BIN_CODES = {
    BIN_NONE: IntensityBin.NONE,
    BIN_FIDGET: IntensityBin.FIDGET,
    BIN_MEDIUM: IntensityBin.MEDIUM,
    BIN_LARGE: IntensityBin.LARGE,
    BIN_SUDDEN: IntensityBin.SUDDEN,
}


def classify_intensity(magnitudes: np.ndarray, motion_config: Dict) -> np.ndarray:
    """
    Assign each event magnitude to one exclusive intensity bin.

    Returns:
        Integer array of bin codes (BIN_NONE .. BIN_SUDDEN)
    """
    cutoffs = [
        motion_config.get('fidget_threshold', 0.05),
        motion_config.get('medium_threshold', 0.3),
        motion_config.get('large_threshold', 0.8),
        motion_config.get('sudden_threshold', 1.2),
    ]
    # Number of cutoffs reached == bin code
    return np.searchsorted(np.asarray(cutoffs), magnitudes, side='right')


def intensity_bin(magnitude: float, motion_config: Dict) -> IntensityBin:
    """Bin a single magnitude."""
    code = int(classify_intensity(np.array([magnitude]), motion_config)[0])
    return _BIN_CODES[code]


def axis_directions(vectors: np.ndarray, noise_threshold: float) -> np.ndarray:
    """
    Classify each axis of each change vector into {-1, 0, +1}.

    Components within the noise threshold count as no movement on that axis.
    """
    directions = np.zeros(vectors.shape, dtype=int)
    directions[vectors > noise_threshold] = 1
    directions[vectors < -noise_threshold] = -1
    return directions


def count_direction_changes(
    timestamps_ms: np.ndarray,
    directions: np.ndarray,
    debounce_ms: float,
    cap: int
) -> int:
    """
    Count debounced direction reversals.

    A reversal needs at least one axis to flip sign relative to the last
    non-zero direction, on an axis that was non-zero there. A reversal is
    counted only if debounce_ms has passed since the last counted one.
    """
    count = 0
    prev = None
    last_counted_ts = None

    for ts, curr in zip(timestamps_ms, directions):
        if not curr.any():
            continue

        if prev is not None:
            flipped = np.any((prev != 0) & (curr != 0) & (prev != curr))
            if flipped and (last_counted_ts is None or ts - last_counted_ts >= debounce_ms):
                count += 1
                last_counted_ts = ts
                if count >= cap:
                    return cap

        prev = curr

    return count


def count_sudden_movements(
    timestamps_ms: np.ndarray,
    bins: np.ndarray,
    debounce_ms: float,
    cap: int
) -> int:
    """Count sudden-bin events separated by at least debounce_ms."""
    count = 0
    last_counted_ts = None

    for ts in timestamps_ms[bins == BIN_SUDDEN]:
        if last_counted_ts is None or ts - last_counted_ts >= debounce_ms:
            count += 1
            last_counted_ts = ts
            if count >= cap:
                return cap

    return count


def compute_repetition_score(
    timestamps_ms: np.ndarray,
    vectors: np.ndarray,
    bins: np.ndarray,
    motion_config: Dict
) -> Tuple[float, int]:
    """
    Score repetitive small movements (the back-and-forth pattern of fidgeting).

    Method:
    - Only fidget/medium events take part
    - An event is repetitive when an earlier small event inside the rolling
      window is (anti-)parallel to it: |cos(angle)| >= similarity threshold
    - Comparisons are limited to the last `repetition_lookback` small events
    - Score = repetitive events / all events * 100 * gain, clamped to 0-100

    Returns:
        (score 0-100, number of repetitive events)
    """
    total = len(timestamps_ms)
    if total == 0:
        return 0.0, 0

    window_ms = motion_config.get('repetition_window_ms', 3000)
    similarity = motion_config.get('repetition_similarity', 0.8)
    lookback = int(motion_config.get('repetition_lookback', 12))
    gain = motion_config.get('repetition_gain', 1.5)

    small = (bins == BIN_FIDGET) | (bins == BIN_MEDIUM)
    small_ts = timestamps_ms[small]
    small_vectors = vectors[small]

    repetitive = 0
    for i in range(1, len(small_ts)):
        lo = int(np.searchsorted(small_ts, small_ts[i] - window_ms, side='left'))
        lo = max(lo, i - lookback)
        if lo >= i:
            continue

        # cosine distance = 1 - cos; absolute cosine catches reversals too
        cosines = 1.0 - cdist(small_vectors[i:i + 1], small_vectors[lo:i], metric='cosine')
        if np.max(np.abs(cosines)) >= similarity:
            repetitive += 1

    score = float(np.clip(repetitive / total * 100.0 * gain, 0.0, 100.0))
    return score, repetitive


def compute_rotational_score(gyro_magnitudes: np.ndarray, motion_config: Dict) -> float:
    """Map mean rotational change (rad/s) to a 0-100 fidgeting contribution."""
    if gyro_magnitudes.size == 0:
        return 0.0

    scale = motion_config.get('gyro_fidget_scale', 1.0)
    if scale <= 0:
        return 0.0

    return float(np.clip(np.mean(gyro_magnitudes) / scale * 100.0, 0.0, 100.0))


def short_session_dampening(duration_seconds: float, motion_config: Dict) -> float:
    """
    Dampening factor for rate-based terms in short sessions.

    Rates extrapolated from under a minute of data are unreliable, so they
    are scaled from `short_session_floor` (zero duration) up to 1.0.
    """
    short_session = motion_config.get('short_session_seconds', 60.0)
    floor = motion_config.get('short_session_floor', 0.5)

    if short_session <= 0 or duration_seconds >= short_session:
        return 1.0

    progress = max(0.0, duration_seconds) / short_session
    return floor + (1.0 - floor) * progress


def compute_restlessness(
    large_fraction: float,
    sudden_count: int,
    direction_count: int,
    duration_seconds: float,
    motion_config: Dict
) -> int:
    """
    Blend large-movement frequency, sudden-movement rate and direction-change
    rate into a 0-100 restlessness score.

    Args:
        large_fraction: Share of events in the large or sudden bins (0-1)
        sudden_count: Debounced, capped sudden movements
        direction_count: Debounced, capped direction changes
        duration_seconds: Tracked session span
        motion_config: Motion calibration section

    Returns:
        Restlessness (0-100)
    """
    weights = motion_config.get('restlessness_weights', {})
    weight_large = weights.get('large', 0.4)
    weight_sudden = weights.get('sudden', 0.3)
    weight_direction = weights.get('direction', 0.3)

    sudden_ceiling = motion_config.get('sudden_rate_ceiling_per_min', 20.0)
    direction_ceiling = motion_config.get('direction_rate_ceiling_per_min', 60.0)

    if duration_seconds > 0:
        minutes = duration_seconds / 60.0
        sudden_rate = sudden_count / minutes
        direction_rate = direction_count / minutes
    else:
        sudden_rate = 0.0
        direction_rate = 0.0

    dampening = short_session_dampening(duration_seconds, motion_config)

    sudden_component = min(1.0, sudden_rate / sudden_ceiling) if sudden_ceiling > 0 else 0.0
    direction_component = min(1.0, direction_rate / direction_ceiling) if direction_ceiling > 0 else 0.0

    score = 100.0 * (
        weight_large * float(np.clip(large_fraction, 0.0, 1.0)) +
        weight_sudden * sudden_component * dampening +
        weight_direction * direction_component * dampening
    )

    return int(round(float(np.clip(score, 0.0, 100.0))))
