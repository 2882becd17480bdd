"""Sequence evaluation against re-derived style expectations."""

from .evaluator import (
    DimensionScore,
    EvaluationResult,
    Finding,
    Severity,
    evaluate_sequence,
    expected_camera,
    expected_duration,
    expected_transition,
    parse_loop_time_range,
    score_adherence,
    score_flow,
    score_pacing,
    score_variety,
)

__all__ = [
    "DimensionScore",
    "EvaluationResult",
    "Finding",
    "Severity",
    "evaluate_sequence",
    "expected_camera",
    "expected_duration",
    "expected_transition",
    "parse_loop_time_range",
    "score_adherence",
    "score_flow",
    "score_pacing",
    "score_variety",
]
