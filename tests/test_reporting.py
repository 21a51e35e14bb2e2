"""
Integration tests for reporting and the command-line pipeline.

Tests cover:
- JSON/text/HTML report export
- End-to-end run over a session description (inline samples and CSV)
"""

import json

import pytest # pyright: ignore[reportMissingImports]
import numpy as np
from pathlib import Path

# Import modules to test
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.data_models import BehavioralMarker, CompositeResult, ScoringResult
from core.enums import TaskType
from utils.calibration import load_calibration
from visualization import (
    REPORT_FILENAME,
    build_report,
    format_text_report,
    generate_html_report,
    save_json_report
)
import main


def sample_report():
    result = ScoringResult(
        adhd_probability_score=62,
        attention_score=61,
        hyperactivity_score=87,
        impulsivity_score=34,
        confidence_level=75,
        markers=(BehavioralMarker("Look Away Rate", 14.0, 8.0, 3, "desc"),),
        duration_ms=60000,
        task_type=TaskType.CPT
    )
    composite = CompositeResult(
        adhd_probability_score=62,
        attention_score=73,
        hyperactivity_score=87,
        impulsivity_score=34,
        confidence_level=43,
        markers=result.markers,
        duration_ms=60000,
        task_count=1,
        task_types=(TaskType.CPT,)
    )
    return build_report("demo", composite, [result], calibration_version="3")


class TestReportExport:
    """Test report writers."""

    def test_json_report(self, tmp_path):
        path = save_json_report(sample_report(), tmp_path / 'out')
        assert path.name == REPORT_FILENAME

        data = json.loads(path.read_text())
        assert data['session_id'] == 'demo'
        assert data['composite']['task_types'] == ['cpt']
        assert data['composite']['markers'][0]['severity'] == pytest.approx(5.25)
        assert data['tasks'][0]['task_type'] == 'cpt'
        assert data['summary']['headline'].startswith('Moderate')

    def test_text_report(self):
        text = format_text_report(sample_report())
        assert "Overall score: 62/100" in text
        assert "Look Away Rate: 14.0 (threshold 8.0)" in text
        assert "not a diagnosis" in text

    def test_html_report(self, tmp_path):
        path = generate_html_report(sample_report(), tmp_path / 'report.html')
        html = Path(path).read_text(encoding='utf-8')
        assert "<table>" in html
        assert "Look Away Rate" in html


class TestRunAssessment:
    """Test the end-to-end pipeline."""

    def test_session_with_inline_and_csv_motion(self, tmp_path):
        t = np.arange(500) * 20
        x = np.sin(2 * np.pi * 2.0 * t / 1000.0)
        csv_path = tmp_path / 'motion.csv'
        with open(csv_path, 'w') as f:
            f.write("timestamp_ms,x,y,z\n")
            for ts, value in zip(t, x):
                f.write(f"{ts},{value:.5f},0,0\n")

        session = {
            'session_id': 'pipeline-test',
            'tasks': [
                {
                    'task_type': 'cpt',
                    'duration_seconds': 60,
                    'performance': {
                        'correct': 24,
                        'incorrect': 3,
                        'missed': 4,
                        'response_times_ms': [310, 295, 342, 330],
                    },
                    'face': {'look_away_count': 2, 'face_visible_percentage': 92},
                    'motion': {'csv': 'motion.csv'},
                },
                {
                    'task_type': 'go_no_go',
                    'duration_seconds': 60,
                    'performance': {
                        'correct': 20,
                        'incorrect': 8,
                        'missed': 2,
                        'avg_response_time_ms': 410,
                        'response_time_std_ms': 150,
                    },
                    'motion': {
                        'samples': [[i * 20, 0.0, 0.0, 0.0] for i in range(50)],
                    },
                },
                {
                    'task_type': 'reading',
                    'duration_seconds': 90,
                    'motion': {
                        'metrics': {'fidgeting_score': 40, 'restlessness': 30},
                    },
                },
            ],
        }

        result = main.run_assessment(
            session,
            load_calibration(),
            str(tmp_path / 'results'),
            base_dir=tmp_path
        )

        composite = result['composite']
        assert composite.task_count == 3
        assert 0 <= composite.adhd_probability_score <= 100

        data = json.loads(Path(result['report_path']).read_text())
        assert data['session_id'] == 'pipeline-test'
        assert data['metadata']['completed_tasks'] == ['cpt', 'reading', 'go_no_go']
        assert set(data['metadata']['remaining_tasks']) == {'working_memory', 'attention_shifting'}

    def test_missing_motion_csv_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            main.load_motion_samples('nope.csv', tmp_path)

    def test_dict_samples(self, tmp_path):
        samples = main.load_motion_samples(
            [{'timestamp_ms': 0, 'x': 0.1, 'y': 0.2, 'z': 0.3}], tmp_path
        )
        assert samples[0].z == pytest.approx(0.3)
