"""
Unit tests for multi-task fusion.

Tests cover:
- Task multipliers and domain averaging
- Composite confidence (per-task boost, missing-task penalty)
- Marker deduplication and top-N ranking
- Assessment session bookkeeping (append-only, one result per task)
"""

import pytest # pyright: ignore[reportMissingImports]
from pathlib import Path

# Import modules to test
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.data_models import BehavioralMarker, ScoringResult
from core.enums import TaskType
from fusion import AssessmentSession, SessionAggregator, select_top_markers


def make_result(task_type=None, attention=50, hyperactivity=50, impulsivity=50,
                overall=50, confidence=80, markers=(), duration_ms=60000):
    return ScoringResult(
        adhd_probability_score=overall,
        attention_score=attention,
        hyperactivity_score=hyperactivity,
        impulsivity_score=impulsivity,
        confidence_level=confidence,
        markers=tuple(markers),
        duration_ms=duration_ms,
        task_type=task_type
    )


def marker(name, value, significance=1, threshold=10.0):
    return BehavioralMarker(name=name, value=value, threshold=threshold, significance=significance)


class TestSessionAggregator:
    """Test composite scoring."""

    def test_empty_input(self):
        composite = SessionAggregator().combine([])
        assert composite.confidence_level == 0
        assert composite.task_count == 0
        assert composite.markers == ()
        assert composite.adhd_probability_score == 0

    def test_cpt_attention_multiplier(self):
        composite = SessionAggregator().combine([make_result(TaskType.CPT)])
        assert composite.attention_score == 60
        assert composite.hyperactivity_score == 50
        assert composite.impulsivity_score == 50

    def test_go_no_go_multipliers(self):
        composite = SessionAggregator().combine([make_result(TaskType.GO_NO_GO)])
        assert composite.attention_score == 50
        assert composite.hyperactivity_score == 55
        assert composite.impulsivity_score == 65

    def test_multiplied_scores_clamped(self):
        composite = SessionAggregator().combine([make_result(TaskType.CPT, attention=90)])
        assert composite.attention_score == 100

    def test_average_over_tasks_present(self):
        composite = SessionAggregator().combine([
            make_result(TaskType.READING, attention=40),
            make_result(TaskType.WORKING_MEMORY, attention=60),
        ])
        assert composite.attention_score == 50

    def test_overall_recomputed_from_domains(self):
        composite = SessionAggregator().combine([make_result(TaskType.READING, overall=10)])
        assert composite.adhd_probability_score == 50

    def test_confidence_full_battery(self):
        results = [make_result(t, confidence=80) for t in TaskType]
        composite = SessionAggregator().combine(results)
        # 80 + 2.5 * 4 extra tasks
        assert composite.confidence_level == 90

    def test_confidence_single_task(self):
        composite = SessionAggregator().combine([make_result(TaskType.CPT, confidence=80)])
        # 80 - 8 * 4 missing tasks
        assert composite.confidence_level == 48

    def test_confidence_repeated_task_counts_once(self):
        composite = SessionAggregator().combine([
            make_result(TaskType.CPT, confidence=80),
            make_result(TaskType.CPT, confidence=80),
        ])
        assert composite.confidence_level == 48
        assert composite.task_count == 2

    def test_confidence_untyped_results_count_individually(self):
        composite = SessionAggregator().combine([make_result(), make_result(), make_result()])
        # 80 + 2.5 * 2 - 8 * 2 missing tasks
        assert composite.confidence_level == 69

    def test_duration_and_task_types(self):
        composite = SessionAggregator().combine([
            make_result(TaskType.CPT, duration_ms=60000),
            make_result(TaskType.READING, duration_ms=45000),
        ])
        assert composite.duration_ms == 105000
        assert composite.task_count == 2
        assert composite.task_types == (TaskType.CPT, TaskType.READING)

    def test_markers_unique_by_name(self):
        composite = SessionAggregator().combine([
            make_result(TaskType.CPT, markers=[marker('Look Away Rate', 5.0), marker('Fidgeting Score', 20.0)]),
            make_result(TaskType.READING, markers=[marker('Look Away Rate', 14.0, significance=3)]),
        ])
        names = [m.name for m in composite.markers]
        assert len(names) == len(set(names))

        look_away = [m for m in composite.markers if m.name == 'Look Away Rate'][0]
        assert look_away.value == 14.0
        assert look_away.significance == 3

    def test_top_markers_override(self):
        aggregator = SessionAggregator({'aggregation': {'top_markers': 2}})
        composite = aggregator.combine([
            make_result(markers=[marker(f"M{i}", float(i)) for i in range(1, 6)])
        ])
        assert [m.name for m in composite.markers] == ['M5', 'M4']


class TestSelectTopMarkers:
    """Test marker ranking."""

    def test_sorted_by_severity_and_truncated(self):
        markers = [marker(f"M{i}", float(i)) for i in range(20)]
        top = select_top_markers(markers, 12)
        assert len(top) == 12
        severities = [m.severity for m in top]
        assert severities == sorted(severities, reverse=True)
        assert top[0].name == 'M19'

    def test_zero_threshold_marker_ranks_last(self):
        top = select_top_markers([marker('A', 5.0, threshold=0.0), marker('B', 1.0)], 12)
        assert [m.name for m in top] == ['B', 'A']


class TestAssessmentSession:
    """Test per-assessment bookkeeping."""

    def test_record_and_remaining(self):
        session = AssessmentSession()
        assert session.record(make_result(TaskType.CPT))
        assert session.completed_tasks == [TaskType.CPT]
        assert TaskType.CPT not in session.remaining_tasks
        assert len(session.remaining_tasks) == 4
        assert not session.is_complete

    def test_duplicate_task_ignored(self):
        session = AssessmentSession()
        first = make_result(TaskType.CPT, attention=30)
        assert session.record(first)
        assert not session.record(make_result(TaskType.CPT, attention=90))
        assert session.results == [first]

    def test_complete_battery(self):
        session = AssessmentSession()
        for task_type in TaskType:
            session.record(make_result(task_type))
        assert session.is_complete
        composite = session.composite()
        assert composite.task_count == 5

    def test_results_keep_recording_order(self):
        session = AssessmentSession()
        untyped = make_result(None)
        reading = make_result(TaskType.READING)
        session.record(untyped)
        session.record(reading)
        assert session.results == [untyped, reading]

    def test_empty_composite(self):
        assert AssessmentSession().composite().confidence_level == 0
