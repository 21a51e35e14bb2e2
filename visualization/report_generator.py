import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from html import escape
from pathlib import Path
from typing import Dict, List, Optional

from core.data_models import CompositeResult, ScoringResult
from scoring.interpretation import (
    describe_result,
    get_interpretation_text,
    get_metric_description,
    get_score_text
)

logger = logging.getLogger(__name__)

REPORT_FILENAME = "assessment_report.json"


@dataclass
class AssessmentReport:
    """
    Container for a complete screening report.

    Attributes:
        session_id: Unique session identifier
        timestamp: Report creation time (ISO 8601)
        composite: Composite result over all tasks
        task_results: Per-task results in recording order
        calibration_version: Calibration table version used for scoring
        metadata: Additional session metadata
    """
    session_id: str
    timestamp: str
    composite: CompositeResult
    task_results: List[ScoringResult] = field(default_factory=list)
    calibration_version: str = ""
    metadata: Dict = field(default_factory=dict)

    def to_dict(self) -> Dict:
        score = self.composite.adhd_probability_score
        return {
            'session_id': self.session_id,
            'timestamp': self.timestamp,
            'calibration_version': self.calibration_version,
            'summary': {
                'headline': get_score_text(score),
                'interpretation': get_interpretation_text(score),
                'explanation': describe_result(self.composite),
            },
            'composite': self.composite.to_dict(),
            'tasks': [
                dict(r.to_dict(), explanation=describe_result(r))
                for r in self.task_results
            ],
            'metadata': self.metadata,
        }


def build_report(
    session_id: str,
    composite: CompositeResult,
    task_results: List[ScoringResult],
    calibration_version: str = "",
    metadata: Optional[Dict] = None
) -> AssessmentReport:
    """Assemble an AssessmentReport stamped with the current time."""
    return AssessmentReport(
        session_id=session_id,
        timestamp=datetime.now().isoformat(timespec='seconds'),
        composite=composite,
        task_results=list(task_results),
        calibration_version=calibration_version,
        metadata=dict(metadata or {})
    )


def save_json_report(report: AssessmentReport, output_dir) -> Path:
    """
    Write the report as assessment_report.json.

    Args:
        report: Report to save
        output_dir: Directory to write into (created if missing)

    Returns:
        Path to the written file
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / REPORT_FILENAME

    logger.info(f"Writing JSON report: {output_path}")

    with open(output_path, 'w') as f:
        json.dump(report.to_dict(), f, indent=2)

    return output_path


def format_text_report(report: AssessmentReport) -> str:
    """Plain-text summary for console output."""
    composite = report.composite
    lines = [
        "=" * 70,
        "ADHD BEHAVIORAL SCREENING REPORT",
        "=" * 70,
        f"Session: {report.session_id}",
        f"Date: {report.timestamp}",
        f"Tasks completed: {composite.task_count}",
        "",
        f"Overall score: {composite.adhd_probability_score}/100 "
        f"({get_score_text(composite.adhd_probability_score)})",
        f"  Attention:     {composite.attention_score}/100",
        f"  Hyperactivity: {composite.hyperactivity_score}/100",
        f"  Impulsivity:   {composite.impulsivity_score}/100",
        f"  Confidence:    {composite.confidence_level}%",
        "",
        get_interpretation_text(composite.adhd_probability_score),
    ]

    if composite.markers:
        lines.extend(["", "Key behavioral markers:"])
        for marker in composite.markers:
            lines.append(
                f"  [{marker.significance}] {marker.name}: {marker.value:.1f} "
                f"(threshold {marker.threshold:.1f})"
            )

    if report.task_results:
        lines.extend(["", "Per-task results:"])
        for result in report.task_results:
            label = result.task_type.value if result.task_type else 'unspecified'
            lines.append(f"  {label}: {describe_result(result)}")

    lines.extend([
        "",
        "This screening describes behavior during short tasks and is not a diagnosis.",
        "=" * 70,
    ])
    return "\n".join(lines)


def generate_html_report(report: AssessmentReport, output_path) -> str:
    """
    Generate a standalone HTML summary.

    Args:
        report: AssessmentReport with scored results
        output_path: Path to save HTML report

    Returns:
        Path to generated HTML report
    """
    logger.info(f"Generating HTML report: {output_path}")

    composite = report.composite
    score = composite.adhd_probability_score

    domain_rows = "".join(
        f"<tr><td>{escape(name)}</td><td>{value}/100</td>"
        f"<td>{escape(get_metric_description(name))}</td></tr>"
        for name, value in (
            ("Attention", composite.attention_score),
            ("Hyperactivity", composite.hyperactivity_score),
            ("Impulsivity", composite.impulsivity_score),
        )
    )

    marker_rows = "".join(
        f"<tr class=\"{_get_significance_class(m.significance)}\">"
        f"<td>{escape(m.name)}</td><td>{m.value:.1f}</td><td>{m.threshold:.1f}</td>"
        f"<td>{m.significance}</td><td>{escape(m.description)}</td></tr>"
        for m in composite.markers
    )

    html = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>ADHD Behavioral Screening - {escape(report.session_id)}</title>
    <style>{_get_css_styles()}</style>
</head>
<body>
    <header>
        <h1>ADHD Behavioral Screening</h1>
        <p>Session {escape(report.session_id)} &middot; {escape(report.timestamp)}
           &middot; {composite.task_count} task(s)</p>
        <p class="disclaimer"><strong>Screening only:</strong> this report describes
           behavior observed during short tasks. It is <strong>not</strong> a medical
           diagnosis.</p>
    </header>
    <section>
        <h2 class="{_get_score_class(score)}">{score}/100: {escape(get_score_text(score))}</h2>
        <p>{escape(get_interpretation_text(score))}</p>
        <p>Confidence: {composite.confidence_level}%</p>
    </section>
    <section>
        <h2>Domain scores</h2>
        <table><tr><th>Domain</th><th>Score</th><th>Description</th></tr>{domain_rows}</table>
    </section>
    <section>
        <h2>Behavioral markers</h2>
        <table><tr><th>Marker</th><th>Value</th><th>Threshold</th><th>Significance</th>
        <th>Description</th></tr>{marker_rows}</table>
    </section>
</body>
</html>
"""

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(html)

    return str(output_path)


def _get_score_class(score: float) -> str:
    """Get CSS class based on score value."""
    if score >= 70:
        return "score-high"
    elif score >= 40:
        return "score-moderate"
    elif score >= 20:
        return "score-mild"
    return "score-low"


def _get_significance_class(significance: int) -> str:
    return {3: "sig-high", 2: "sig-moderate"}.get(significance, "sig-low")


def _get_css_styles() -> str:
    return """
        body { font-family: sans-serif; max-width: 960px; margin: 2rem auto; color: #1e293b; }
        table { border-collapse: collapse; width: 100%; }
        th, td { border-bottom: 1px solid #e2e8f0; padding: 0.4rem; text-align: left; }
        .disclaimer { background: #fffbeb; border: 1px solid #fde68a; padding: 0.75rem; }
        .score-high { color: #b91c1c; }
        .score-moderate { color: #c2410c; }
        .score-mild { color: #a16207; }
        .score-low { color: #15803d; }
        .sig-high { background: #fee2e2; }
        .sig-moderate { background: #ffedd5; }
    """
