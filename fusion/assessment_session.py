"""
Full-assessment session state.

Tracks which tasks of a multi-task assessment have produced a result and
builds the composite on demand. History is append-only: each task type is
recorded at most once.
"""

import logging
from typing import Dict, Iterable, List, Optional

from core.data_models import CompositeResult, ScoringResult
from core.enums import TaskType
from .session_aggregator import SessionAggregator

logger = logging.getLogger(__name__)

DEFAULT_TASK_ORDER = (
    TaskType.CPT,
    TaskType.READING,
    TaskType.GO_NO_GO,
    TaskType.WORKING_MEMORY,
    TaskType.ATTENTION_SHIFTING,
)


class AssessmentSession:
    """
    One participant's run through the task battery.

    Usage:
        session = AssessmentSession(calibration)
        session.record(cpt_result)
        if session.is_complete:
            composite = session.composite()
    """

    def __init__(
        self,
        config: Optional[Dict] = None,
        task_order: Iterable[TaskType] = DEFAULT_TASK_ORDER
    ):
        self.aggregator = SessionAggregator(config)
        self.task_order = tuple(task_order)
        self._results: Dict[TaskType, ScoringResult] = {}
        self._history: List[ScoringResult] = []

    def record(self, result: ScoringResult) -> bool:
        """
        Add a task result.

        Returns:
            False if a result for the same task type was already recorded
            (the new one is ignored)
        """
        if result.task_type is None:
            self._history.append(result)
            logger.info("Recorded result without task type")
            return True

        if result.task_type in self._results:
            logger.warning(
                f"Result for task '{result.task_type.value}' already recorded; ignoring duplicate"
            )
            return False

        self._results[result.task_type] = result
        self._history.append(result)
        logger.info(
            f"Recorded task '{result.task_type.value}' "
            f"({len(self.completed_tasks)}/{len(self.task_order)} tasks)"
        )
        return True

    @property
    def results(self) -> List[ScoringResult]:
        """Recorded results in recording order."""
        return list(self._history)

    @property
    def completed_tasks(self) -> List[TaskType]:
        return [t for t in self.task_order if t in self._results] + [
            t for t in self._results if t not in self.task_order
        ]

    @property
    def remaining_tasks(self) -> List[TaskType]:
        return [t for t in self.task_order if t not in self._results]

    @property
    def is_complete(self) -> bool:
        return not self.remaining_tasks

    def composite(self) -> CompositeResult:
        """Aggregate everything recorded so far."""
        return self.aggregator.combine(self.results)
