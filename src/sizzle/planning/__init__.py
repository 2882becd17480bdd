"""Sequence planning driven by declarative style pack rules."""

from .planner import (
    PlanNotes,
    SequencePlan,
    assign_camera_overrides,
    assign_durations,
    assign_shot_grammar,
    order_scenes,
    plan_sequence,
    select_transitions,
)
from .rules import resolve_camera, resolve_transition

__all__ = [
    "PlanNotes",
    "SequencePlan",
    "assign_camera_overrides",
    "assign_durations",
    "assign_shot_grammar",
    "order_scenes",
    "plan_sequence",
    "select_transitions",
    "resolve_camera",
    "resolve_transition",
]
