"""
Multi-task fusion module.

This package combines per-task results into one assessment:
- Task-weighted domain averaging (tasks that probe a domain directly count more)
- Confidence that grows with the number of tasks completed
- Deduplicated, severity-ranked behavioral markers

Clinical rationale:
- A single short task may reflect a bad moment rather than a pattern
- Consistent signals across tasks strengthen the screening result
"""

from .session_aggregator import SessionAggregator, select_top_markers
from .assessment_session import AssessmentSession, DEFAULT_TASK_ORDER

__all__ = [
    'SessionAggregator',
    'select_top_markers',
    'AssessmentSession',
    'DEFAULT_TASK_ORDER',
]
