"""Camera guardrail validation."""

from ..models.catalog import CameraConstants
from .validator import (
    EASING_DECEL_PHASE,
    CameraVerdict,
    CumulativeFinding,
    GuardrailIssue,
    ManifestVerdict,
    Verdict,
    validate_camera_move,
    validate_full_manifest,
    validate_manifest_scene,
)

__all__ = [
    "CameraConstants",
    "EASING_DECEL_PHASE",
    "CameraVerdict",
    "CumulativeFinding",
    "GuardrailIssue",
    "ManifestVerdict",
    "Verdict",
    "validate_camera_move",
    "validate_full_manifest",
    "validate_manifest_scene",
]
