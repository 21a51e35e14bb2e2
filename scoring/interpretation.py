"""
Plain-language interpretation of screening scores.

Score bands (overall probability score, 0-100):
- 70-100: High likelihood of ADHD-related behavior patterns
- 40-69: Moderate indications
- 20-39: Mild indications
- 0-19: Very few ADHD-related behaviors

All wording is non-diagnostic: results describe observed behavior during
short tasks and point to professional evaluation, never to a diagnosis.
"""

import logging
from typing import Union

from core.data_models import CompositeResult, ScoringResult
from core.enums import Domain

logger = logging.getLogger(__name__)

_SCORE_TEXT = [
    (70, "High likelihood of ADHD-related behavior patterns"),
    (40, "Moderate indications of ADHD-related behavior patterns"),
    (20, "Mild indications of ADHD-related behavior patterns"),
]
_SCORE_TEXT_DEFAULT = "Very few ADHD-related behaviors detected"

_INTERPRETATION_TEXT = [
    (70,
     "The assessment detected behavioral patterns strongly associated with ADHD. "
     "Significant markers appeared in attention (looking away from the task), "
     "response consistency and movement levels. This is not a diagnosis, but the "
     "patterns align with clinical ADHD indicators and a professional evaluation "
     "is recommended."),
    (40,
     "The assessment detected moderate behaviors that may be associated with ADHD. "
     "Attention, response timing and activity level varied beyond typical ranges. "
     "Everyone shows some of these behaviors occasionally; they only suggest ADHD "
     "when they occur frequently and affect daily functioning. Consider discussing "
     "these results with a healthcare professional if these patterns cause challenges."),
    (20,
     "The assessment detected mild behaviors that may be associated with ADHD. "
     "Performance showed mostly typical attention and response patterns, with some "
     "variations that are common in the general population. Moments of distraction "
     "or restlessness happen to everyone, and these appear mostly within typical ranges."),
]
_INTERPRETATION_TEXT_DEFAULT = (
    "The assessment detected very few behaviors associated with ADHD. "
    "Attention was consistent, responses were appropriate and activity levels "
    "stayed typical throughout the tasks."
)

METRIC_DESCRIPTIONS = {
    "Response Time": "Average time to respond to target stimuli. Longer times may indicate processing delays.",
    "Response Variability": "Consistency of response timing. High variability is a key ADHD indicator.",
    "Task Accuracy": "Percentage of correct responses. Lower accuracy may indicate attention difficulties.",
    "Missed Responses": "Share of target stimuli that received no response. May indicate inattention.",
    "Look Away Rate": "How often attention shifts away from the task. Natural to look away occasionally.",
    "Sustained Attention": "Ability to maintain focus over time. Lower scores indicate difficulty maintaining attention.",
    "Look Away Duration": "How long attention typically stays away from the task when distracted.",
    "Attention Lapses": "Moments when attention completely breaks from the task.",
    "Distractibility": "Overall measure of how easily distracted. Some distractibility is normal.",
    "Blink Rate": "Blinks per minute. Excessive blinking can indicate stress or hyperactivity.",
    "Face Visibility": "Percentage of time the face was visible to the camera.",
    "Facial Movement": "Amount of facial movement during the task. Some movement is completely normal.",
    "Emotion Changes": "Frequency of emotional expression changes. Rapid changes can indicate impulsivity.",
    "Emotion Variability": "Intensity of emotional expression changes. Some variability is normal.",
    "Fidgeting Score": "Small repeated movements. Some fidgeting is normal and not concerning.",
    "Direction Changes": "How often movement direction changes. Rapid shifts can indicate restlessness.",
    "Sudden Movements": "Quick, unexpected movements. Can indicate impulsivity if frequent.",
    "Restlessness": "Overall physical activity level, reflecting larger movements rather than small fidgets.",
}

DOMAIN_DESCRIPTIONS = {
    Domain.ATTENTION: "Measures difficulty maintaining focus and completing tasks without distraction.",
    Domain.HYPERACTIVITY: "Measures excessive movement, fidgeting and physical restlessness.",
    Domain.IMPULSIVITY: "Measures acting without thinking and difficulty waiting or inhibiting responses.",
}

_DOMAIN_ALIASES = {
    'attention': Domain.ATTENTION,
    'inattention': Domain.ATTENTION,
    'hyperactivity': Domain.HYPERACTIVITY,
    'impulsivity': Domain.IMPULSIVITY,
}

_DEFAULT_DESCRIPTION = "Metric that contributes to the overall assessment."


def _band(score: float, bands, default: str) -> str:
    for cutoff, text in bands:
        if score >= cutoff:
            return text
    return default


def get_score_text(score: float) -> str:
    """Short headline for an overall probability score."""
    return _band(score, _SCORE_TEXT, _SCORE_TEXT_DEFAULT)


def get_interpretation_text(score: float) -> str:
    """Paragraph-length interpretation for an overall probability score."""
    return _band(score, _INTERPRETATION_TEXT, _INTERPRETATION_TEXT_DEFAULT)


def get_metric_description(name: Union[str, Domain]) -> str:
    """
    Describe a marker or domain by name.

    Accepts marker names ("Look Away Rate"), domain names ("Inattention",
    "Hyperactivity", "Impulsivity", case-insensitive) or a Domain member.
    Unknown names get a generic description.
    """
    if isinstance(name, Domain):
        return DOMAIN_DESCRIPTIONS[name]

    if name in METRIC_DESCRIPTIONS:
        return METRIC_DESCRIPTIONS[name]

    domain = _DOMAIN_ALIASES.get(str(name).strip().lower())
    if domain is not None:
        return DOMAIN_DESCRIPTIONS[domain]

    return _DEFAULT_DESCRIPTION


def describe_result(result: Union[ScoringResult, CompositeResult]) -> str:
    """
    One-line explanation of a scored session or composite assessment.

    Example:
        "Moderate indications of ADHD-related behavior patterns (62/100):
        attention 61, hyperactivity 87, impulsivity 34; confidence 80%.
        Strongest marker: Look Away Rate 14.0 (threshold 8.0)."
    """
    parts = [
        f"{get_score_text(result.adhd_probability_score)} "
        f"({result.adhd_probability_score}/100): "
        f"attention {result.attention_score}, "
        f"hyperactivity {result.hyperactivity_score}, "
        f"impulsivity {result.impulsivity_score}; "
        f"confidence {result.confidence_level}%."
    ]

    if result.markers:
        top = max(result.markers, key=lambda m: m.severity)
        parts.append(
            f"Strongest marker: {top.name} {top.value:.1f} "
            f"(threshold {top.threshold:.1f})."
        )
    else:
        parts.append("No behavioral markers recorded.")

    return " ".join(parts)
