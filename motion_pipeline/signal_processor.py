"""
Motion signal processing for hyperactivity assessment.

Turns a live ~50 Hz accelerometer stream (plus an optional gyroscope stream)
into bounded, denoised movement metrics.

Pipeline per sample:
1. Validate (drop non-finite and out-of-order samples)
2. Moving-average filter over a fixed window (skip until the window is full)
3. Change vector = filtered(t) - filtered(t-1), magnitude = Euclidean norm
4. Promote to a MotionEvent when the magnitude exceeds the noise floor

Clinical rationale:
- Fidgeting is repetitive and small (back-and-forth), not merely small
- Sudden movements and direction reversals reflect motor restlessness
- Short sessions inflate per-minute rates, so rate terms are dampened

Concurrency:
- ingest()/ingest_gyro() run on the sensor callback and are the only writers
- analyze() may run on another thread; it snapshots the buffers under the
  same lock and computes outside it
"""

import logging
import threading
from collections import deque
from typing import Dict, Optional

import numpy as np

from core.data_models import MotionEvent, MotionMetrics, MotionSample
from utils.calibration import resolve_calibration
from .movement_analysis import (
    BIN_FIDGET,
    BIN_LARGE,
    BIN_NONE,
    BIN_SUDDEN,
    axis_directions,
    classify_intensity,
    compute_repetition_score,
    compute_restlessness,
    compute_rotational_score,
    count_direction_changes,
    count_sudden_movements
)

logger = logging.getLogger(__name__)

# Snapshot returned while too few events are buffered
EMPTY_METRICS = MotionMetrics(direction_changes=0, sudden_movements=0)


class MovingAverageFilter:
    """
    Sliding-window mean over 3-axis samples.

    update() returns the change of the filtered value since the previous
    sample, or None while the window is still filling.
    """

    def __init__(self, window_size: int = 5):
        self.window_size = max(1, int(window_size))
        self._window = deque(maxlen=self.window_size)
        self._last_filtered: Optional[np.ndarray] = None

    def reset(self):
        self._window.clear()
        self._last_filtered = None

    def update(self, sample: MotionSample) -> Optional[np.ndarray]:
        self._window.append((sample.x, sample.y, sample.z))

        if len(self._window) < self.window_size:
            return None

        filtered = np.mean(np.asarray(self._window, dtype=float), axis=0)

        if self._last_filtered is None:
            self._last_filtered = filtered
            return None

        diff = filtered - self._last_filtered
        self._last_filtered = filtered
        return diff


class MotionSignalProcessor:
    """
    Session-scoped motion tracker producing MotionMetrics snapshots.

    Each task session owns one processor: start() at task start, ingest()
    from the sensor callback, get_final_metrics() at task end.

    Usage:
        processor = MotionSignalProcessor(calibration)
        processor.start()
        processor.ingest(MotionSample(timestamp_ms, x, y, z))
        metrics = processor.get_final_metrics()
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize motion processor.

        Args:
            config: Calibration dict (only the 'motion' section is used);
                    missing keys fall back to the defaults
        """
        self.config = resolve_calibration(config)
        self.motion_config = self.config['motion']

        self.noise_threshold = self.motion_config['noise_threshold']
        self.gyro_noise_threshold = self.motion_config['gyro_noise_threshold']
        self.min_events = int(self.motion_config['min_events'])
        max_events = int(self.motion_config['max_buffered_events'])
        window_size = int(self.motion_config['filter_window_size'])

        self._lock = threading.RLock()
        self._tracking = False

        self._accel_filter = MovingAverageFilter(window_size)
        self._gyro_filter = MovingAverageFilter(window_size)
        self._events = deque(maxlen=max_events)
        self._gyro_events = deque(maxlen=max_events)

        self._first_timestamp: Optional[int] = None
        self._last_timestamp: Optional[int] = None
        self._last_gyro_timestamp: Optional[int] = None
        self._rejected_samples = 0

        logger.debug(
            f"Motion processor initialized: window={window_size}, "
            f"noise={self.noise_threshold}, max_events={max_events}"
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self):
        """Begin a fresh tracking session. No-op if already tracking."""
        with self._lock:
            if self._tracking:
                return
            self._clear()
            self._tracking = True
        logger.info("Motion tracking started")

    def stop(self):
        """Stop tracking; further ingest() calls are ignored until start()."""
        with self._lock:
            if not self._tracking:
                return
            self._tracking = False
        logger.info("Motion tracking stopped")

    def reset(self):
        """Clear buffers and filters. Safe at any time; tracking state is kept."""
        with self._lock:
            self._clear()

    @property
    def is_tracking(self) -> bool:
        return self._tracking

    @property
    def event_count(self) -> int:
        with self._lock:
            return len(self._events)

    @property
    def rejected_samples(self) -> int:
        return self._rejected_samples

    def _clear(self):
        self._accel_filter.reset()
        self._gyro_filter.reset()
        self._events.clear()
        self._gyro_events.clear()
        self._first_timestamp = None
        self._last_timestamp = None
        self._last_gyro_timestamp = None
        self._rejected_samples = 0

    # ------------------------------------------------------------------
    # Ingestion (sensor callback)
    # ------------------------------------------------------------------

    def ingest(self, sample: MotionSample) -> bool:
        """
        Feed one accelerometer sample.

        Returns:
            True if the sample was promoted to a MotionEvent
        """
        with self._lock:
            if not self._tracking:
                return False

            if not self._accept(sample, self._last_timestamp):
                return False

            if self._first_timestamp is None:
                self._first_timestamp = sample.timestamp_ms
            self._last_timestamp = sample.timestamp_ms

            diff = self._accel_filter.update(sample)
            event = self._promote(sample.timestamp_ms, diff, self.noise_threshold)
            if event is None:
                return False

            self._events.append(event)
            return True

    def ingest_gyro(self, sample: MotionSample) -> bool:
        """
        Feed one gyroscope sample (rotation rates on x/y/z).

        Returns:
            True if the sample was promoted to a rotational event
        """
        with self._lock:
            if not self._tracking:
                return False

            if not self._accept(sample, self._last_gyro_timestamp):
                return False
            self._last_gyro_timestamp = sample.timestamp_ms

            diff = self._gyro_filter.update(sample)
            event = self._promote(sample.timestamp_ms, diff, self.gyro_noise_threshold)
            if event is None:
                return False

            self._gyro_events.append(event)
            return True

    def _accept(self, sample: MotionSample, last_timestamp: Optional[int]) -> bool:
        if not sample.is_finite():
            self._rejected_samples += 1
            logger.debug(f"Dropping non-finite sample at {sample.timestamp_ms} ms")
            return False

        if last_timestamp is not None and sample.timestamp_ms < last_timestamp:
            self._rejected_samples += 1
            logger.debug(
                f"Dropping out-of-order sample at {sample.timestamp_ms} ms "
                f"(last {last_timestamp} ms)"
            )
            return False

        return True

    @staticmethod
    def _promote(
        timestamp_ms: int,
        diff: Optional[np.ndarray],
        threshold: float
    ) -> Optional[MotionEvent]:
        if diff is None:
            return None

        magnitude = float(np.linalg.norm(diff))
        if magnitude <= threshold:
            return None

        return MotionEvent(
            timestamp_ms=timestamp_ms,
            dx=float(diff[0]),
            dy=float(diff[1]),
            dz=float(diff[2]),
            magnitude=magnitude
        )

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze(self) -> MotionMetrics:
        """
        Compute a MotionMetrics snapshot from the current event buffer.

        Returns the all-zero default when fewer than `min_events` events
        are buffered (insufficient data, not an error).
        """
        with self._lock:
            events = list(self._events)
            gyro_events = list(self._gyro_events)
            duration_seconds = self._duration_seconds()

        if len(events) < self.min_events:
            return EMPTY_METRICS

        mc = self.motion_config

        timestamps = np.array([e.timestamp_ms for e in events], dtype=np.int64)
        vectors = np.array([e.vector for e in events], dtype=float)
        magnitudes = np.array([e.magnitude for e in events], dtype=float)
        total = len(events)

        bins = classify_intensity(magnitudes, mc)
        fidget_frames = int(np.sum(bins == BIN_FIDGET))
        moving_frames = int(np.sum(bins != BIN_NONE))
        large_frames = int(np.sum((bins == BIN_LARGE) | (bins == BIN_SUDDEN)))

        # Fidgeting: repetitive pattern dominates raw small-movement share
        repetition_score, _ = compute_repetition_score(timestamps, vectors, bins, mc)
        fidget_fraction = fidget_frames * 100.0 / total
        repetition_weight = mc['repetition_weight']
        fidgeting = repetition_weight * repetition_score + (1.0 - repetition_weight) * fidget_fraction

        if len(gyro_events) >= self.min_events:
            gyro_magnitudes = np.array([e.magnitude for e in gyro_events], dtype=float)
            rotational = compute_rotational_score(gyro_magnitudes, mc)
            gyro_weight = mc['gyro_weight']
            fidgeting = (1.0 - gyro_weight) * fidgeting + gyro_weight * rotational

        general_movement = moving_frames * 100.0 / total

        directions = axis_directions(vectors, self.noise_threshold)
        direction_changes = count_direction_changes(
            timestamps,
            directions,
            mc['direction_debounce_ms'],
            int(mc['max_direction_changes'])
        )
        sudden_movements = count_sudden_movements(
            timestamps,
            bins,
            mc['sudden_debounce_ms'],
            int(mc['max_sudden_movements'])
        )

        restlessness = compute_restlessness(
            large_frames / total,
            sudden_movements,
            direction_changes,
            duration_seconds,
            mc
        )

        return MotionMetrics(
            fidgeting_score=_to_score(fidgeting),
            general_movement_score=_to_score(general_movement),
            direction_changes=int(direction_changes),
            sudden_movements=int(sudden_movements),
            movement_intensity=float(np.mean(magnitudes)),
            restlessness=restlessness,
            event_count=total,
            duration_seconds=duration_seconds
        )

    def get_final_metrics(self) -> MotionMetrics:
        """Authoritative end-of-session snapshot."""
        metrics = self.analyze()
        logger.info(
            f"Final motion metrics: fidgeting={metrics.fidgeting_score}, "
            f"restlessness={metrics.restlessness}, "
            f"direction_changes={metrics.direction_changes}, "
            f"sudden={metrics.sudden_movements} "
            f"({metrics.event_count} events over {metrics.duration_seconds:.1f}s)"
        )
        return metrics

    def _duration_seconds(self) -> float:
        if self._first_timestamp is None or self._last_timestamp is None:
            return 0.0
        return max(0.0, (self._last_timestamp - self._first_timestamp) / 1000.0)


def _to_score(value: float) -> int:
    return int(round(float(np.clip(value, 0.0, 100.0))))
