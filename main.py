#!/usr/bin/env python3
"""
Main orchestration script for the ADHD behavioral screen.

This script runs the complete screening pipeline over a recorded session:
1. Motion processing (accelerometer/gyroscope samples -> movement metrics)
2. Performance metrics (response times and trial counters)
3. Domain scoring per task (attention, hyperactivity, impulsivity)
4. Multi-task aggregation (composite assessment)
5. Reporting (JSON report, console summary, optional HTML)

Usage:
    python main.py --session session.yaml --config configs/calibration.yaml --output results/

Session file (YAML or JSON):
    session_id: demo
    tasks:
      - task_type: cpt
        duration_seconds: 60
        performance:
          correct: 24
          incorrect: 3
          missed: 4
          response_times_ms: [310, 295, 342]
        face:
          look_away_count: 2
          face_visible_percentage: 92
        motion:
          csv: motion/cpt.csv        # columns: timestamp_ms,x,y,z
          gyro_samples: [[0, 0.0, 0.0, 0.0]]

Clinical rationale:
- Screening only (behavioral observation, not diagnosis)
- Explainable outputs (every score ships with its markers)

Engineering approach:
- Each stage usable on its own (motion, scoring, fusion, reporting)
- One calibration table drives every threshold
- Comprehensive logging
"""

import argparse
import logging
from pathlib import Path
import sys
from datetime import datetime
from typing import Dict, List, Optional

import numpy as np

from core.data_models import FaceMetrics, MotionMetrics, MotionSample, PerformanceMetrics
from core.enums import TaskType
from motion_pipeline import MotionSignalProcessor
from scoring import DomainScorer, compute_performance_metrics
from fusion import AssessmentSession
from visualization import (
    build_report,
    format_text_report,
    generate_html_report,
    save_json_report
)
from utils.calibration import load_calibration
from utils.config_loader import load_config

logger = logging.getLogger(__name__)


def setup_logging(log_file: str = 'adhd_screen.log'):
    """Configure console and file logging."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)
        ]
    )


def load_motion_samples(spec, base_dir: Path) -> List[MotionSample]:
    """
    Load motion samples from an inline list or a CSV file.

    Inline samples are [timestamp_ms, x, y, z] lists or dicts with those keys.
    CSV files need a header row and columns timestamp_ms,x,y,z.
    """
    if spec is None:
        return []

    if isinstance(spec, (str, Path)):
        csv_path = Path(spec)
        if not csv_path.is_absolute():
            csv_path = base_dir / csv_path
        if not csv_path.exists():
            raise FileNotFoundError(f"Motion CSV not found: {csv_path}")
        logger.info(f"Loading motion samples from {csv_path}")
        rows = np.loadtxt(csv_path, delimiter=',', skiprows=1, ndmin=2)
    else:
        rows = [
            (s['timestamp_ms'], s['x'], s['y'], s['z']) if isinstance(s, dict) else s
            for s in spec
        ]

    return [
        MotionSample(timestamp_ms=int(row[0]), x=float(row[1]), y=float(row[2]), z=float(row[3]))
        for row in rows
    ]


def compute_motion_metrics(
    motion_spec: Optional[Dict],
    calibration: Dict,
    base_dir: Path
) -> Optional[MotionMetrics]:
    """
    Run the motion pipeline for one task.

    Precomputed metrics under 'metrics' are used as-is; otherwise samples are
    replayed through a fresh MotionSignalProcessor.
    """
    if not motion_spec:
        return None

    if 'metrics' in motion_spec:
        return MotionMetrics(**motion_spec['metrics'])

    accel = load_motion_samples(motion_spec.get('csv', motion_spec.get('samples')), base_dir)
    gyro = load_motion_samples(motion_spec.get('gyro_csv', motion_spec.get('gyro_samples')), base_dir)

    logger.info(f"Computing motion metrics from {len(accel)} accelerometer and {len(gyro)} gyroscope samples")

    processor = MotionSignalProcessor(calibration)
    processor.start()
    for sample in accel:
        processor.ingest(sample)
    for sample in gyro:
        processor.ingest_gyro(sample)
    metrics = processor.get_final_metrics()
    processor.stop()

    if processor.rejected_samples:
        logger.warning(f"Rejected {processor.rejected_samples} invalid motion samples")
    if accel and not metrics.has_data:
        logger.warning("Too few motion events for analysis; motion metrics left at zero")

    return metrics


def build_performance(task_spec: Dict) -> Optional[PerformanceMetrics]:
    """Build PerformanceMetrics from raw response times or precomputed values."""
    perf = task_spec.get('performance')
    if perf is None:
        return None

    duration = task_spec.get('duration_seconds', perf.get('duration_seconds', 0.0))

    if 'response_times_ms' in perf:
        return compute_performance_metrics(
            perf['response_times_ms'],
            perf.get('correct', 0),
            perf.get('incorrect', 0),
            perf.get('missed', 0),
            duration
        )

    return PerformanceMetrics(
        correct=max(0, int(perf.get('correct', 0))),
        incorrect=max(0, int(perf.get('incorrect', 0))),
        missed=max(0, int(perf.get('missed', 0))),
        avg_response_time_ms=perf.get('avg_response_time_ms'),
        response_time_std_ms=perf.get('response_time_std_ms'),
        duration_seconds=max(0.0, float(duration))
    )


def run_assessment(session: Dict, calibration: Dict, output_dir: str, base_dir: Path = Path('.'),
                   html: bool = False) -> Dict:
    """
    Execute the complete screening pipeline for one session description.

    Args:
        session: Parsed session description (see module docstring)
        calibration: Complete calibration table
        output_dir: Directory for output files
        base_dir: Directory relative motion CSV paths are resolved against
        html: Also write an HTML summary

    Returns:
        Dict with 'report_path', 'report' and 'composite'
    """
    logger.info("=" * 80)
    logger.info("ADHD BEHAVIORAL SCREEN - Assessment Pipeline")
    logger.info("=" * 80)

    session_id = session.get('session_id') or f"session_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    tasks = session.get('tasks', [])
    if not tasks:
        logger.warning("Session contains no tasks")

    scorer = DomainScorer(calibration)
    assessment = AssessmentSession(calibration)

    for index, task_spec in enumerate(tasks, start=1):
        task_type = TaskType(task_spec['task_type']) if task_spec.get('task_type') else None
        label = task_type.value if task_type else f"task_{index}"

        logger.info("\n" + "=" * 80)
        logger.info(f"TASK {index}/{len(tasks)}: {label}")
        logger.info("=" * 80)

        performance = build_performance(task_spec)
        face = FaceMetrics(**task_spec['face']) if task_spec.get('face') is not None else None
        motion = compute_motion_metrics(task_spec.get('motion'), calibration, base_dir)

        result = scorer.analyze(performance, face, motion, task_type)
        assessment.record(result)

    composite = assessment.composite()

    report = build_report(
        session_id=session_id,
        composite=composite,
        task_results=assessment.results,
        calibration_version=str(calibration.get('calibration_version', '')),
        metadata={
            'completed_tasks': [t.value for t in assessment.completed_tasks],
            'remaining_tasks': [t.value for t in assessment.remaining_tasks],
        }
    )

    report_path = save_json_report(report, output_dir)
    if html:
        generate_html_report(report, Path(output_dir) / 'assessment_report.html')

    print(format_text_report(report))

    return {
        'report_path': str(report_path),
        'report': report,
        'composite': composite,
    }


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='ADHD Behavioral Screen - motion, face and task-performance scoring',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Basic usage (built-in calibration)
  python main.py --session session.yaml --output results/

  # With custom calibration
  python main.py --session session.yaml --config configs/calibration.yaml --output results/

  # Keep only the 5 strongest markers in the composite
  python main.py --session session.yaml --top-markers 5
        """
    )

    parser.add_argument(
        '--session',
        type=str,
        required=True,
        help='Path to session description (YAML or JSON)'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to calibration YAML file (default: built-in calibration)'
    )

    parser.add_argument(
        '--output',
        type=str,
        default='data/outputs',
        help='Output directory for results (default: data/outputs)'
    )

    parser.add_argument(
        '--top-markers',
        type=int,
        default=None,
        help='Number of markers kept in the composite result (default: from calibration)'
    )

    parser.add_argument(
        '--html',
        action='store_true',
        help='Also write an HTML summary'
    )

    args = parser.parse_args()

    setup_logging()

    session_path = Path(args.session)
    if not session_path.exists():
        logger.error(f"Session file not found: {session_path}")
        sys.exit(1)

    overrides = {}
    if args.top_markers is not None:
        overrides = {'aggregation': {'top_markers': args.top_markers}}

    try:
        calibration = load_calibration(args.config, overrides)
        session = load_config(session_path)

        result = run_assessment(
            session=session,
            calibration=calibration,
            output_dir=args.output,
            base_dir=session_path.parent,
            html=args.html
        )

        logger.info("\n" + "=" * 80)
        logger.info("SUCCESS: Assessment completed")
        logger.info(f"  Report: {result['report_path']}")
        logger.info("=" * 80)

        sys.exit(0)

    except KeyboardInterrupt:
        logger.warning("\nAssessment interrupted by user")
        sys.exit(1)

    except Exception as e:
        logger.error("\nERROR: Assessment failed with exception:")
        logger.error(f"  {type(e).__name__}: {str(e)}")
        logger.exception("Full traceback:")
        sys.exit(1)


if __name__ == '__main__':
    main()
