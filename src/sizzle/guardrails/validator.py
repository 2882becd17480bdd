"""Camera guardrails: physical plausibility and personality boundaries.

Each non-static camera move runs five independent checks: speed limit,
deceleration phase, drift settling, lens bounds and personality
boundaries. Magnitude and smoothness problems warn; using a feature the
personality forbids blocks.
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..catalog import Catalog, default_catalog
from ..errors import InvalidArgumentError
from ..models.catalog import CameraConstants, CameraGuardrails, PersonalityBoundary
from ..models.manifest import ManifestEntry, SequenceManifest
from ..models.scene import CameraMove, ShotGrammar
from ..analysis.shot_grammar import shot_grammar_css

logger = logging.getLogger(__name__)


class Verdict(str, Enum):
    """Outcome of a guardrail check, in increasing severity."""
    PASS = "PASS"
    WARN = "WARN"
    BLOCK = "BLOCK"


# Fraction of the move spent decelerating, per easing curve
EASING_DECEL_PHASE: Dict[str, float] = {
    "linear": 0.0,
    "ease_out": 0.60,
    "cinematic_scurve": 0.50,
}
DEFAULT_EASING = "cinematic_scurve"
UNKNOWN_EASING_DECEL_PHASE = 0.50

DEFAULT_SCENE_DURATION_S = 3.0
MAX_CONSECUTIVE_LINEAR = 2

PAN_MOVES = ("pan_left", "pan_right")
SCALE_MOVES = ("push_in", "pull_out")


@dataclass
class GuardrailIssue:
    """A single warning or block raised by a check."""

    check: str
    message: str
    value: Optional[Any] = None
    limit: Optional[Any] = None
    feature: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class CameraVerdict:
    """Verdict for one camera move."""

    verdict: Verdict
    blocks: List[GuardrailIssue] = field(default_factory=list)
    warnings: List[GuardrailIssue] = field(default_factory=list)
    scene_index: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "verdict": self.verdict.value,
            "blocks": [issue.to_dict() for issue in self.blocks],
            "warnings": [issue.to_dict() for issue in self.warnings],
        }
        if self.scene_index is not None:
            data["scene_index"] = self.scene_index
        return data


@dataclass
class CumulativeFinding:
    """Sequence-level finding no single scene triggers on its own."""

    check: str
    severity: str
    message: str
    scene_index: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ManifestVerdict:
    """Verdict for a whole manifest."""

    verdict: Verdict
    scene_results: List[CameraVerdict] = field(default_factory=list)
    cumulative_findings: List[CumulativeFinding] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "scene_results": [result.to_dict() for result in self.scene_results],
            "cumulative_findings": [finding.to_dict() for finding in self.cumulative_findings],
        }


def _verdict(blocks: List[GuardrailIssue], warnings: List[GuardrailIssue]) -> Verdict:
    if blocks:
        return Verdict.BLOCK
    if warnings:
        return Verdict.WARN
    return Verdict.PASS


# ── Individual checks ────────────────────────────────────────────────────────


def check_speed(
    camera: CameraMove,
    intensity: float,
    duration_s: float,
    guardrails: CameraGuardrails,
) -> List[GuardrailIssue]:
    constants = guardrails.camera_constants
    if camera.move in PAN_MOVES:
        velocity = intensity * constants.pan_max_px / duration_s
        prop, unit = "translateX", "px/s"
    elif camera.move in SCALE_MOVES:
        velocity = intensity * constants.scale_factor * 100 / duration_s
        prop, unit = "scale_ambient", "percent/s"
    elif camera.move == "drift":
        # Peak velocity of a sinusoid: amplitude * 2pi / period
        velocity = intensity * constants.drift_amplitude * 2 * math.pi / duration_s
        prop, unit = "translateX", "px/s"
    else:
        return []

    limit = guardrails.speed_limits.get(prop)
    if limit is None or velocity <= limit.max_velocity:
        return []
    return [
        GuardrailIssue(
            check="speed_limit",
            message=(
                f"{camera.move} velocity {velocity:.1f} {unit} exceeds {prop} limit "
                f"of {limit.max_velocity} {limit.unit}"
            ),
            value=velocity,
            limit=limit.max_velocity,
        )
    ]


def check_acceleration(camera: CameraMove, guardrails: CameraGuardrails) -> List[GuardrailIssue]:
    if camera.move == "drift":
        return []
    easing = camera.easing or DEFAULT_EASING
    phase = EASING_DECEL_PHASE.get(easing, UNKNOWN_EASING_DECEL_PHASE)
    minimum = guardrails.acceleration.deceleration_phase_minimum
    if phase >= minimum:
        return []
    return [
        GuardrailIssue(
            check="acceleration",
            message=(
                f'Easing "{easing}" has {phase * 100:.0f}% deceleration phase, '
                f"below minimum {minimum * 100:.0f}%"
            ),
            value=phase,
            limit=minimum,
        )
    ]


def check_jerk(camera: CameraMove, duration_s: float, guardrails: CameraGuardrails) -> List[GuardrailIssue]:
    if camera.move != "drift":
        return []
    # Drift reverses direction every half period
    reversal_ms = duration_s / 2 * 1000
    settling = guardrails.jerk.settling_on_reversal_ms
    if reversal_ms >= settling:
        return []
    return [
        GuardrailIssue(
            check="jerk",
            message=f"Drift reversal interval {reversal_ms:.0f}ms is below settling minimum of {settling:g}ms",
            value=reversal_ms,
            limit=settling,
        )
    ]


def check_lens_bounds(
    camera: CameraMove,
    intensity: float,
    shot_grammar: Optional[ShotGrammar],
    guardrails: CameraGuardrails,
    catalog: Catalog,
) -> List[GuardrailIssue]:
    """Camera-only scale and shot grammar rotation, checked separately."""
    issues: List[GuardrailIssue] = []
    bounds = guardrails.lens_bounds

    if camera.move in SCALE_MOVES:
        camera_scale = 1 + intensity * guardrails.camera_constants.scale_factor
        if not bounds.scale.contains(camera_scale):
            issues.append(
                GuardrailIssue(
                    check="lens_bounds",
                    message=(
                        f"Camera scale factor {camera_scale:.3f} exceeds lens bounds "
                        f"[{bounds.scale.min}, {bounds.scale.max}]"
                    ),
                    value=camera_scale,
                    limit={"min": bounds.scale.min, "max": bounds.scale.max},
                )
            )

    if shot_grammar is not None:
        css = shot_grammar_css(shot_grammar, catalog)
        for axis, degrees in (("rotateX", css.rotate_x), ("rotateZ", css.rotate_z)):
            if degrees != 0 and not bounds.rotation.contains(degrees):
                issues.append(
                    GuardrailIssue(
                        check="lens_bounds",
                        message=(
                            f"Shot grammar {axis} {degrees:g}deg exceeds rotation bounds "
                            f"[{bounds.rotation.min:g}, {bounds.rotation.max:g}]deg"
                        ),
                        value=degrees,
                        limit={"min": bounds.rotation.min, "max": bounds.rotation.max},
                    )
                )
    return issues


def check_personality(
    camera: CameraMove,
    intensity: float,
    shot_grammar: Optional[ShotGrammar],
    duration_s: float,
    personality: str,
    boundary: PersonalityBoundary,
    constants: CameraConstants,
    catalog: Catalog,
) -> Dict[str, List[GuardrailIssue]]:
    """Forbidden features block; magnitude caps and ambient conditions warn."""
    blocks: List[GuardrailIssue] = []
    warnings: List[GuardrailIssue] = []

    def block(message: str, feature: str) -> None:
        blocks.append(GuardrailIssue(check="personality", message=message, feature=feature))

    if boundary.forbids("camera_movement"):
        block(f'Camera movement "{camera.move}" is forbidden in {personality}', "camera_movement")

    if boundary.forbids("3d_transforms") and shot_grammar is not None:
        if shot_grammar_css(shot_grammar, catalog).has_rotation:
            block(f"3D transforms (rotation) forbidden in {personality}", "3d_transforms")

    if camera.move == "drift" and boundary.forbids("ambient_motion"):
        block(f"Ambient motion (drift) is forbidden in {personality}", "ambient_motion")

    if camera.move == "shake" and boundary.forbids("camera_shake"):
        block(f"Camera shake is forbidden in {personality}", "camera_shake")

    if boundary.max_translate_xy is not None:
        displacement = 0.0
        if camera.move in PAN_MOVES:
            displacement = intensity * constants.pan_max_px
        elif camera.move == "drift":
            displacement = intensity * constants.drift_amplitude
        if displacement > boundary.max_translate_xy:
            warnings.append(
                GuardrailIssue(
                    check="personality",
                    message=(
                        f"Translation {displacement:.1f}px exceeds {personality} max "
                        f"of {boundary.max_translate_xy:g}px"
                    ),
                    value=displacement,
                    limit=boundary.max_translate_xy,
                )
            )

    if boundary.max_scale_change_percent is not None and camera.move in SCALE_MOVES:
        change = intensity * constants.scale_factor * 100
        if change > boundary.max_scale_change_percent:
            warnings.append(
                GuardrailIssue(
                    check="personality",
                    message=(
                        f"Scale change {change:.1f}% exceeds {personality} max "
                        f"of {boundary.max_scale_change_percent:g}%"
                    ),
                    value=change,
                    limit=boundary.max_scale_change_percent,
                )
            )

    condition = boundary.ambient_condition
    if camera.move == "drift" and condition is not None:
        if condition.never:
            block(f"Ambient motion (drift) is never allowed in {personality}", "ambient_condition")
        elif condition.min_scene_duration_s is not None and duration_s <= condition.min_scene_duration_s:
            warnings.append(
                GuardrailIssue(
                    check="personality",
                    message=(
                        f"Drift ambient motion in {personality} only allowed for scenes "
                        f">{condition.min_scene_duration_s:g}s (scene is {duration_s:g}s)"
                    ),
                    value=duration_s,
                    limit=condition.min_scene_duration_s,
                )
            )

    return {"blocks": blocks, "warnings": warnings}


# ── Public API ───────────────────────────────────────────────────────────────


def validate_camera_move(
    camera: Optional[CameraMove],
    shot_grammar: Optional[ShotGrammar],
    duration_s: float,
    personality: str,
    catalog: Optional[Catalog] = None,
) -> CameraVerdict:
    """Validate one camera move against the guardrail catalog.

    A missing or static camera passes every check.

    Args:
        camera: Camera move, or None.
        shot_grammar: Shot grammar of the scene, used for rotation checks.
        duration_s: Scene duration in seconds.
        personality: Personality slug whose boundaries apply.
        catalog: Catalog supplying thresholds.

    Returns:
        The verdict with its blocks and warnings.

    Raises:
        InvalidArgumentError: If duration_s is not positive.
    """
    if camera is None or camera.is_static:
        return CameraVerdict(verdict=Verdict.PASS)
    if duration_s <= 0:
        raise InvalidArgumentError(f"duration_s must be positive (got {duration_s})")

    catalog = catalog or default_catalog()
    guardrails = catalog.guardrails
    constants = guardrails.camera_constants
    intensity = camera.intensity if camera.intensity is not None else constants.default_intensity

    warnings: List[GuardrailIssue] = []
    blocks: List[GuardrailIssue] = []

    warnings.extend(check_speed(camera, intensity, duration_s, guardrails))
    warnings.extend(check_acceleration(camera, guardrails))
    warnings.extend(check_jerk(camera, duration_s, guardrails))
    warnings.extend(check_lens_bounds(camera, intensity, shot_grammar, guardrails, catalog))

    boundary = guardrails.personality_boundaries.get(personality)
    if boundary is not None:
        found = check_personality(
            camera, intensity, shot_grammar, duration_s, personality, boundary, constants, catalog
        )
        blocks.extend(found["blocks"])
        warnings.extend(found["warnings"])

    return CameraVerdict(verdict=_verdict(blocks, warnings), blocks=blocks, warnings=warnings)


def validate_manifest_scene(
    entry: ManifestEntry,
    personality: str,
    scene_index: int,
    catalog: Optional[Catalog] = None,
) -> CameraVerdict:
    """Validate one manifest entry; a missing duration counts as three seconds."""
    duration = entry.duration_s or DEFAULT_SCENE_DURATION_S
    result = validate_camera_move(
        entry.camera_override, entry.shot_grammar, duration, personality, catalog
    )
    result.scene_index = scene_index
    return result


def _consecutive_linear(manifest: SequenceManifest) -> List[CumulativeFinding]:
    findings: List[CumulativeFinding] = []
    run = 0
    for i, entry in enumerate(manifest.scenes):
        camera = entry.camera_override
        if camera is not None and camera.easing == "linear":
            run += 1
            if run > MAX_CONSECUTIVE_LINEAR:
                findings.append(
                    CumulativeFinding(
                        check="consecutive_linear",
                        severity="warning",
                        message=(
                            f"{run} consecutive scenes with linear easing "
                            f"(scenes {i - run + 2}-{i + 1}), consider varying easing"
                        ),
                        scene_index=i,
                    )
                )
        else:
            run = 0
    return findings


def validate_full_manifest(
    manifest: SequenceManifest,
    personality: Optional[str] = None,
    catalog: Optional[Catalog] = None,
) -> ManifestVerdict:
    """Validate every scene of a manifest plus sequence-level patterns.

    Args:
        manifest: Manifest to validate.
        personality: Personality slug. Defaults to the personality of the
            manifest's style pack.
        catalog: Catalog supplying thresholds.

    Returns:
        BLOCK if any scene blocked, WARN if any scene or cumulative check
        warned, else PASS.

    Raises:
        InvalidArgumentError: If no personality is given and the manifest's
            style does not name a known style pack.
    """
    catalog = catalog or default_catalog()
    if personality is None:
        if not manifest.style:
            raise InvalidArgumentError("personality is required when the manifest has no style")
        personality = catalog.style_pack(manifest.style).personality

    results = [
        validate_manifest_scene(entry, personality, i, catalog)
        for i, entry in enumerate(manifest.scenes)
    ]
    cumulative = _consecutive_linear(manifest)

    verdict = Verdict.PASS
    if any(r.verdict == Verdict.BLOCK for r in results):
        verdict = Verdict.BLOCK
    elif any(r.verdict == Verdict.WARN for r in results) or cumulative:
        verdict = Verdict.WARN

    logger.info(f"Guardrails for {manifest.sequence_id} under {personality}: {verdict.value}")
    return ManifestVerdict(verdict=verdict, scene_results=results, cumulative_findings=cumulative)
