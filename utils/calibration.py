"""
Versioned calibration table for motion processing and scoring.

Every threshold, weight, cap and step table used by the engine lives here,
so calibration changes never touch the algorithms. The in-code defaults match
configs/calibration.yaml; a YAML file or override dict only needs to contain
the keys it changes.

Step tables are lists of [cutoff, factor] pairs checked in order:
- higher_is_worse metrics take the first pair with value > cutoff
- lower_is_worse metrics take the first pair with value < cutoff
Values matching no pair map to factor 0.

Tiers list the cutoffs for significance 2 and (optionally) 3, compared in
the metric's direction of badness.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from .config_loader import load_config, merge_config

logger = logging.getLogger(__name__)

CALIBRATION_VERSION = "3"

DEFAULT_CALIBRATION: Dict[str, Any] = {
    'calibration_version': CALIBRATION_VERSION,

    'motion': {
        # Moving-average filter
        'filter_window_size': 5,
        'min_events': 5,
        'max_buffered_events': 6000,

        # Magnitude thresholds (change of filtered acceleration, m/s^2)
        'noise_threshold': 0.02,
        'fidget_threshold': 0.05,
        'medium_threshold': 0.3,
        'large_threshold': 0.8,
        'sudden_threshold': 1.2,

        # Debounce intervals and per-session caps
        'direction_debounce_ms': 200,
        'sudden_debounce_ms': 400,
        'max_direction_changes': 120,
        'max_sudden_movements': 50,

        # Repetitive (back-and-forth) movement detection
        'repetition_window_ms': 3000,
        'repetition_similarity': 0.8,
        'repetition_lookback': 12,
        'repetition_gain': 1.5,
        'repetition_weight': 0.7,

        # Gyroscope contribution to fidgeting (rad/s)
        'gyro_noise_threshold': 0.05,
        'gyro_fidget_scale': 1.0,
        'gyro_weight': 0.15,

        # Restlessness blend
        'restlessness_weights': {
            'large': 0.4,
            'sudden': 0.3,
            'direction': 0.3,
        },
        'sudden_rate_ceiling_per_min': 20.0,
        'direction_rate_ceiling_per_min': 60.0,
        'short_session_seconds': 60.0,
        'short_session_floor': 0.5,
    },

    'markers': {
        # Performance
        'response_time': {
            'name': 'Response Time',
            'direction': 'higher_is_worse',
            'threshold': 550.0,
            'tiers': [550.0, 650.0],
            'table': [[700.0, 100], [580.0, 80], [480.0, 50], [380.0, 15]],
        },
        'response_variability': {
            'name': 'Response Variability',
            'direction': 'higher_is_worse',
            'threshold': 180.0,
            'tiers': [180.0, 220.0],
            'table': [[210.0, 100], [170.0, 65], [120.0, 30]],
        },
        'task_accuracy': {
            'name': 'Task Accuracy',
            'direction': 'lower_is_worse',
            'threshold': 75.0,
            'tiers': [75.0, 60.0],
            'table': [[60.0, 100], [75.0, 70], [85.0, 35]],
        },
        'missed_responses': {
            'name': 'Missed Responses',
            'direction': 'higher_is_worse',
            'threshold': 20.0,
            'tiers': [20.0, 35.0],
            'table': [[35.0, 100], [20.0, 70], [10.0, 40], [5.0, 15]],
        },

        # Face
        'look_away_rate': {
            'name': 'Look Away Rate',
            'direction': 'higher_is_worse',
            'threshold': 8.0,
            'tiers': [7.0, 10.0],
            'table': [[10.0, 100], [7.0, 70], [4.0, 40]],
            'per_minute': True,
        },
        'sustained_attention': {
            'name': 'Sustained Attention',
            'direction': 'lower_is_worse',
            'threshold': 50.0,
            'tiers': [45.0, 30.0],
            'table': [[30.0, 100], [45.0, 70], [60.0, 30]],
        },
        'look_away_duration': {
            'name': 'Look Away Duration',
            'direction': 'higher_is_worse',
            'threshold': 2000.0,
            'tiers': [1900.0, 2400.0],
            'table': [[2400.0, 100], [1900.0, 65], [1400.0, 35]],
        },
        'attention_lapses': {
            'name': 'Attention Lapses',
            'direction': 'higher_is_worse',
            'threshold': 5.0,
            'tiers': [4.0, 6.0],
            'table': [[6.0, 100], [4.0, 60], [2.0, 20]],
        },
        'distractibility': {
            'name': 'Distractibility',
            'direction': 'higher_is_worse',
            'threshold': 70.0,
            'tiers': [65.0, 80.0],
            'table': [[80.0, 100], [65.0, 60], [45.0, 20]],
            'scale': 0.78,
            'cap': 100.0,
        },
        'blink_rate': {
            'name': 'Blink Rate',
            'direction': 'higher_is_worse',
            'threshold': 35.0,
            'tiers': [38.0],
            'table': [[38.0, 100], [32.0, 65], [26.0, 35]],
            'scale': 0.8,
        },
        'face_visibility': {
            'name': 'Face Visibility',
            'direction': 'lower_is_worse',
            'threshold': 75.0,
            'tiers': [60.0],
            'table': [[60.0, 100], [75.0, 50]],
        },
        'facial_movement': {
            'name': 'Facial Movement',
            'direction': 'higher_is_worse',
            'threshold': 65.0,
            'tiers': [60.0, 75.0],
            'table': [[75.0, 100], [60.0, 50], [45.0, 25]],
            'scale': 0.73,
            'cap': 100.0,
        },
        'emotion_changes': {
            'name': 'Emotion Changes',
            'direction': 'higher_is_worse',
            'threshold': 5.0,
            'tiers': [7.0],
            'table': [[7.0, 100], [4.0, 65], [2.0, 35]],
            'scale': 0.32,
            'cap': 30.0,
            'per_minute': True,
        },
        'emotion_variability': {
            'name': 'Emotion Variability',
            'direction': 'higher_is_worse',
            'threshold': 65.0,
            'tiers': [60.0],
            'table': [[75.0, 100], [60.0, 65], [45.0, 35]],
        },

        # Motion
        'fidgeting': {
            'name': 'Fidgeting Score',
            'direction': 'higher_is_worse',
            'threshold': 65.0,
            'tiers': [60.0, 75.0],
            'table': [[75.0, 100], [60.0, 70], [40.0, 40]],
        },
        'direction_changes': {
            'name': 'Direction Changes',
            'direction': 'higher_is_worse',
            'threshold': 40.0,
            'tiers': [40.0, 60.0],
            'table': [[60.0, 100], [40.0, 65], [20.0, 30]],
            'per_minute': True,
        },
        'sudden_movements': {
            'name': 'Sudden Movements',
            'direction': 'higher_is_worse',
            'threshold': 10.0,
            'tiers': [14.0],
            'table': [[14.0, 100], [9.0, 65], [4.0, 30]],
            'per_minute': True,
        },
        'restlessness': {
            'name': 'Restlessness',
            'direction': 'higher_is_worse',
            'threshold': 65.0,
            'tiers': [60.0, 75.0],
            'table': [[75.0, 100], [60.0, 80], [40.0, 40], [25.0, 15]],
        },
    },

    # Factor weights per domain (each set sums to 1.0)
    'domains': {
        'attention': {
            'look_away_rate': 0.30,
            'sustained_attention': 0.25,
            'distractibility': 0.10,
            'missed_responses': 0.15,
            'task_accuracy': 0.10,
            'response_time': 0.10,
        },
        'hyperactivity': {
            'fidgeting': 0.30,
            'restlessness': 0.25,
            'facial_movement': 0.15,
            'direction_changes': 0.10,
            'blink_rate': 0.10,
            'face_visibility': 0.10,
        },
        'impulsivity': {
            'response_variability': 0.25,
            'emotion_changes': 0.15,
            'sudden_movements': 0.20,
            'emotion_variability': 0.10,
            'task_accuracy': 0.15,
            'response_time': 0.15,
        },
    },

    # Overall probability = weighted sum of domain scores
    'domain_weights': {
        'attention': 0.45,
        'hyperactivity': 0.30,
        'impulsivity': 0.25,
    },

    'confidence': {
        'baseline': 70,
        'duration_table': [[120.0, 15], [60.0, 10], [30.0, 5]],
        'duration_default': 0,
        'visibility_table': [[95.0, 15], [85.0, 10], [75.0, 5]],
        'visibility_default': -10,
        'marker_table': [[15, 15], [10, 10], [8, 5], [6, 0]],
        'marker_default': -10,
    },

    'aggregation': {
        'task_multipliers': {
            'cpt': {'attention': 1.2},
            'attention_shifting': {'attention': 1.1},
            'go_no_go': {'hyperactivity': 1.1, 'impulsivity': 1.3},
        },
        'expected_tasks': 5,
        'per_task_confidence_boost': 2.5,
        'missing_task_penalty': 8.0,
        'top_markers': 12,
    },
}


def load_calibration(
    config_path=None,
    overrides: Optional[Mapping[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build a calibration table from the defaults plus optional YAML/overrides.

    Args:
        config_path: Optional path to a calibration YAML file; a top-level
                     'calibration' section is used when present
        overrides: Optional partial calibration applied last

    Returns:
        Complete calibration dictionary

    Raises:
        FileNotFoundError: If config_path is given but doesn't exist
        yaml.YAMLError: If the file is malformed
    """
    calibration = merge_config(DEFAULT_CALIBRATION, None)

    if config_path is not None:
        file_config = load_config(config_path)
        file_config = file_config.get('calibration', file_config)
        calibration = merge_config(calibration, file_config)

    calibration = merge_config(calibration, overrides)

    if calibration.get('calibration_version') != CALIBRATION_VERSION:
        logger.warning(
            f"Calibration version {calibration.get('calibration_version')!r} "
            f"differs from engine default {CALIBRATION_VERSION!r}"
        )

    return calibration


def resolve_calibration(config: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Complete a possibly partial calibration dict with the defaults."""
    if config is None:
        return merge_config(DEFAULT_CALIBRATION, None)
    return merge_config(DEFAULT_CALIBRATION, config)
