"""
Enumerations for the ADHD behavioral screening engine.
"""

from enum import Enum


class TaskType(Enum):
    """Cognitive tasks that can produce a scored session."""
    CPT = "cpt"  # Continuous performance test
    READING = "reading"
    GO_NO_GO = "go_no_go"  # Response inhibition
    WORKING_MEMORY = "working_memory"
    ATTENTION_SHIFTING = "attention_shifting"


class Domain(Enum):
    """Clinical domains scored for every session."""
    ATTENTION = "attention"
    HYPERACTIVITY = "hyperactivity"
    IMPULSIVITY = "impulsivity"


class IntensityBin(Enum):
    """Magnitude bins for filtered motion events (ordered, exclusive)."""
    NONE = "none"  # Above noise floor, below fidget threshold
    FIDGET = "fidget"
    MEDIUM = "medium"
    LARGE = "large"
    SUDDEN = "sudden"


class BadnessDirection(Enum):
    """Which way a raw metric moves when behavior looks more ADHD-like."""
    HIGHER_IS_WORSE = "higher_is_worse"
    LOWER_IS_WORSE = "lower_is_worse"
