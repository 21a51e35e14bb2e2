"""
Unit tests for the scoring module.

Tests cover:
- Step tables, directionality and significance tiers of metric rules
- Marker factory: missing metrics, per-minute rates, scale/cap, zero trials
- Domain scorer: reference scenarios, monotonicity, bounds, confidence
- Performance metrics from raw response times
"""

import pytest # pyright: ignore[reportMissingImports]
import numpy as np
from pathlib import Path

# Import modules to test
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.data_models import FaceMetrics, MotionMetrics, PerformanceMetrics
from core.enums import TaskType
from scoring import (
    BehavioralMarkerFactory,
    DomainScorer,
    compute_confidence_level,
    compute_performance_metrics
)
from scoring.markers import MetricRule
from utils.calibration import DEFAULT_CALIBRATION


def rule(key):
    return MetricRule.from_config(key, DEFAULT_CALIBRATION['markers'][key])


def scenario_performance(missed=4, correct=24):
    return PerformanceMetrics(
        correct=correct,
        incorrect=3,
        missed=missed,
        avg_response_time_ms=320.0,
        response_time_std_ms=90.0,
        duration_seconds=60.0
    )


def calm_session():
    face = FaceMetrics(look_away_count=2)
    motion = MotionMetrics(fidgeting_score=10, restlessness=8)
    return scenario_performance(), face, motion


def restless_session():
    face = FaceMetrics(look_away_count=14)
    motion = MotionMetrics(fidgeting_score=78, restlessness=72)
    return scenario_performance(), face, motion


def restless_session_with_counts():
    perf, face, _ = restless_session()
    motion = MotionMetrics(
        fidgeting_score=78,
        restlessness=72,
        direction_changes=55,
        sudden_movements=15
    )
    return perf, face, motion


class TestMetricRule:
    """Test step tables and tiers."""

    def test_higher_is_worse_table(self):
        r = rule('look_away_rate')
        assert r.factor(11) == 100
        assert r.factor(8) == 70
        assert r.factor(5) == 40
        assert r.factor(3) == 0

    def test_lower_is_worse_table(self):
        r = rule('sustained_attention')
        assert r.factor(20) == 100
        assert r.factor(40) == 70
        assert r.factor(55) == 30
        assert r.factor(100) == 0

    def test_perfect_sustained_attention_is_minimum_bucket(self):
        r = rule('sustained_attention')
        assert r.factor(100) == 0
        assert r.significance(100) == 1

    def test_significance_tiers(self):
        r = rule('look_away_rate')
        assert r.significance(11) == 3
        assert r.significance(8) == 2
        assert r.significance(5) == 1

    def test_single_tier_tops_out_at_two(self):
        r = rule('blink_rate')
        assert r.significance(60) == 2
        assert r.significance(20) == 1

    def test_lower_is_worse_tiers(self):
        r = rule('task_accuracy')
        assert r.significance(50) == 3
        assert r.significance(70) == 2
        assert r.significance(90) == 1

    def test_scale_and_cap(self):
        r = rule('emotion_changes')
        # 200 * 0.32 = 64, capped at 30, then per minute over 60 s
        assert r.transform(200, 1.0) == pytest.approx(30.0)

    def test_percentage_inputs_clamped(self):
        r = rule('sustained_attention')
        assert r.transform(150, 1.0) == 100.0
        assert r.transform(-5, 1.0) == 0.0


class TestBehavioralMarkerFactory:
    """Test factor/marker construction."""

    def test_nothing_measured(self):
        factor_set = BehavioralMarkerFactory().build(None, FaceMetrics(), None)
        assert factor_set.factors == {}
        assert factor_set.markers == []

    def test_missing_face_fields_produce_no_marker(self):
        factor_set = BehavioralMarkerFactory().build(
            None, FaceMetrics(look_away_count=3), MotionMetrics(duration_seconds=60.0)
        )
        names = [m.name for m in factor_set.markers]
        assert 'Look Away Rate' in names
        assert 'Blink Rate' not in names
        assert 'blink_rate' not in factor_set

    def test_look_away_rate_per_minute(self):
        factory = BehavioralMarkerFactory()
        face = FaceMetrics(look_away_count=14)

        one_minute = factory.build(PerformanceMetrics(duration_seconds=60.0), face, None)
        half_minute = factory.build(PerformanceMetrics(duration_seconds=30.0), face, None)

        assert _marker(one_minute, 'Look Away Rate').value == pytest.approx(14.0)
        assert _marker(half_minute, 'Look Away Rate').value == pytest.approx(28.0)

    def test_zero_duration_makes_rates_zero(self):
        factor_set = BehavioralMarkerFactory().build(
            PerformanceMetrics(duration_seconds=0.0), FaceMetrics(look_away_count=14), None
        )
        assert _marker(factor_set, 'Look Away Rate').value == 0.0
        assert factor_set.get('look_away_rate') == 0.0

    def test_duration_falls_back_to_motion_span(self):
        factor_set = BehavioralMarkerFactory().build(
            None,
            FaceMetrics(look_away_count=10),
            MotionMetrics(duration_seconds=120.0)
        )
        assert _marker(factor_set, 'Look Away Rate').value == pytest.approx(5.0)

    def test_zero_trials(self):
        factor_set = BehavioralMarkerFactory().build(
            PerformanceMetrics(duration_seconds=60.0), None, None
        )
        assert factor_set.get('task_accuracy') == 0.0
        assert factor_set.get('missed_responses') == 0.0
        assert 'Task Accuracy' not in [m.name for m in factor_set.markers]

    def test_missed_responses_is_a_rate(self):
        factor_set = BehavioralMarkerFactory().build(scenario_performance(), None, None)
        assert _marker(factor_set, 'Missed Responses').value == pytest.approx(400.0 / 31)
        assert factor_set.get('missed_responses') == 40

    def test_markers_have_descriptions_and_constant_thresholds(self):
        perf, face, motion = restless_session()
        factor_set = BehavioralMarkerFactory().build(perf, face, motion)
        for marker in factor_set.markers:
            assert marker.description
            assert marker.significance in (1, 2, 3)
        assert _marker(factor_set, 'Look Away Rate').threshold == 8.0

    def test_factors_bounded(self):
        rng = np.random.default_rng(7)
        factory = BehavioralMarkerFactory()
        for _ in range(50):
            face = FaceMetrics(
                look_away_count=int(rng.integers(0, 100)),
                blink_rate=float(rng.uniform(0, 80)),
                sustained_attention_score=float(rng.uniform(-20, 140)),
                distractibility_index=float(rng.uniform(0, 150)),
                emotion_changes=int(rng.integers(0, 300)),
                emotion_variability_score=float(rng.uniform(0, 100)),
                face_visible_percentage=float(rng.uniform(0, 100)),
                attention_lapse_frequency=float(rng.uniform(0, 20)),
                average_look_away_duration_ms=float(rng.uniform(0, 5000)),
                facial_movement_score=float(rng.uniform(0, 100))
            )
            factor_set = factory.build(
                PerformanceMetrics(duration_seconds=float(rng.uniform(1, 300))), face, None
            )
            assert all(0 <= f <= 100 for f in factor_set.factors.values())


class TestDomainScorer:
    """Test domain scoring on reference sessions."""

    def test_calm_session(self):
        result = DomainScorer().analyze(*calm_session(), task_type=TaskType.CPT)

        assert result.attention_score < 25
        assert result.adhd_probability_score < 30
        assert result.attention_score == 15
        assert result.hyperactivity_score == 0
        assert result.impulsivity_score == 10
        assert result.adhd_probability_score == 9
        assert result.task_type == TaskType.CPT

    def test_restless_session(self):
        result = DomainScorer().analyze(*restless_session())

        assert result.hyperactivity_score > 60
        assert result.adhd_probability_score > 55
        assert result.attention_score == 61
        assert result.hyperactivity_score == 91
        assert result.impulsivity_score == 10
        assert result.adhd_probability_score == 57

    def test_unreported_motion_counts_add_no_factor(self):
        factor_set = BehavioralMarkerFactory().build(*restless_session())
        assert 'direction_changes' not in factor_set
        assert 'sudden_movements' not in factor_set
        assert 'Direction Changes' not in [m.name for m in factor_set.markers]

    def test_restless_session_with_motion_counts(self):
        result = DomainScorer().analyze(*restless_session_with_counts())

        assert result.attention_score == 61
        assert result.hyperactivity_score == 87
        assert result.impulsivity_score == 34
        assert result.adhd_probability_score == 62

    def test_zero_motion_counts_are_measured(self):
        perf, face, _ = restless_session()
        motion = MotionMetrics(
            fidgeting_score=78,
            restlessness=72,
            direction_changes=0,
            sudden_movements=0
        )
        result = DomainScorer().analyze(perf, face, motion)
        assert result.hyperactivity_score == 77
        assert result.impulsivity_score == 7

    def test_confidence_and_duration(self):
        result = DomainScorer().analyze(*calm_session())
        # 70 baseline + 10 (60 s) - 10 (visibility unmeasured) + 0 (7 markers)
        assert len(result.markers) == 7
        assert result.confidence_level == 70
        assert result.duration_ms == 60000

    def test_attention_monotonic_in_missed(self):
        scorer = DomainScorer()
        _, face, motion = calm_session()
        scores = [
            scorer.analyze(scenario_performance(missed=m), face, motion).attention_score
            for m in range(0, 40)
        ]
        assert all(b >= a for a, b in zip(scores, scores[1:]))

    def test_attention_non_increasing_in_accuracy(self):
        scorer = DomainScorer()
        _, face, motion = calm_session()
        scores = [
            scorer.analyze(scenario_performance(correct=c), face, motion).attention_score
            for c in range(0, 60)
        ]
        assert all(b <= a for a, b in zip(scores, scores[1:]))

    def test_domain_without_factors_is_zero(self):
        result = DomainScorer().analyze(scenario_performance(), None, None)
        assert result.hyperactivity_score == 0

    def test_zero_trials_does_not_crash(self):
        result = DomainScorer().analyze(PerformanceMetrics(), FaceMetrics(), MotionMetrics())
        assert 0 <= result.adhd_probability_score <= 100

    def test_scores_bounded(self):
        rng = np.random.default_rng(11)
        scorer = DomainScorer()
        for _ in range(50):
            perf = PerformanceMetrics(
                correct=int(rng.integers(0, 50)),
                incorrect=int(rng.integers(0, 50)),
                missed=int(rng.integers(0, 50)),
                avg_response_time_ms=float(rng.uniform(100, 1500)),
                response_time_std_ms=float(rng.uniform(0, 500)),
                duration_seconds=float(rng.uniform(0, 300))
            )
            face = FaceMetrics(
                look_away_count=int(rng.integers(0, 60)),
                sustained_attention_score=float(rng.uniform(0, 100)),
                face_visible_percentage=float(rng.uniform(0, 100)),
                facial_movement_score=float(rng.uniform(0, 100))
            )
            motion = MotionMetrics(
                fidgeting_score=int(rng.integers(0, 101)),
                restlessness=int(rng.integers(0, 101)),
                direction_changes=int(rng.integers(0, 121)),
                sudden_movements=int(rng.integers(0, 51))
            )
            result = scorer.analyze(perf, face, motion)
            for value in (
                result.adhd_probability_score,
                result.attention_score,
                result.hyperactivity_score,
                result.impulsivity_score,
                result.confidence_level
            ):
                assert 0 <= value <= 100

    def test_stateless(self):
        scorer = DomainScorer()
        first = scorer.analyze(*restless_session())
        scorer.analyze(*calm_session())
        assert scorer.analyze(*restless_session()) == first


class TestConfidence:
    """Test data-quality confidence."""

    def test_best_case(self):
        assert compute_confidence_level(99.0, 180.0, 18) == 100

    def test_worst_case(self):
        assert compute_confidence_level(10.0, 5.0, 0) == 50

    def test_unmeasured_visibility_penalized(self):
        assert compute_confidence_level(None, 60.0, 10) == 80


class TestPerformanceMetrics:
    """Test performance metrics from raw response times."""

    def test_mean_and_population_std(self):
        perf = compute_performance_metrics([300, 500], 2, 0, 0, 30)
        assert perf.avg_response_time_ms == pytest.approx(400.0)
        assert perf.response_time_std_ms == pytest.approx(100.0)

    def test_single_response_has_no_std(self):
        perf = compute_performance_metrics([420], 1, 0, 0, 30)
        assert perf.avg_response_time_ms == pytest.approx(420.0)
        assert perf.response_time_std_ms is None

    def test_no_responses(self):
        perf = compute_performance_metrics([], 0, 0, 5, 30)
        assert perf.avg_response_time_ms is None
        assert perf.response_time_std_ms is None
        assert perf.missed_rate == 100.0

    def test_negative_inputs_clamped(self):
        perf = compute_performance_metrics(None, -3, -1, -2, -10)
        assert (perf.correct, perf.incorrect, perf.missed) == (0, 0, 0)
        assert perf.duration_seconds == 0.0
        assert perf.accuracy == 0.0

    def test_invalid_response_times_dropped(self):
        perf = compute_performance_metrics([300, float('nan'), -50, 500], 2, 0, 0, 30)
        assert perf.avg_response_time_ms == pytest.approx(400.0)


def _marker(factor_set, name):
    matches = [m for m in factor_set.markers if m.name == name]
    assert len(matches) == 1
    return matches[0]
