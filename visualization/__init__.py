"""
Reporting module.

This package exports screening results:
- JSON report (assessment_report.json) with per-task and composite scores
- Plain-text console summary
- Standalone HTML summary

Clinical rationale:
- Every score ships with its markers so reviewers can see what drove it
- Non-diagnostic language throughout
"""

from .report_generator import (
    AssessmentReport,
    build_report,
    save_json_report,
    format_text_report,
    generate_html_report,
    REPORT_FILENAME
)

__all__ = [
    'AssessmentReport',
    'build_report',
    'save_json_report',
    'format_text_report',
    'generate_html_report',
    'REPORT_FILENAME',
]
