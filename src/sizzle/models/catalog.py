"""Catalog data models: style packs, personalities, shot grammar, guardrails."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from .manifest import TransitionIn
from .scene import (
    Angle,
    CameraMove,
    ContentType,
    Framing,
    IntentTag,
    MotionEnergy,
    ShotSize,
    MIN_DURATION_S,
    MAX_DURATION_S,
)


def _merge_rule_list(data: Any, known: tuple) -> Any:
    """Fold a list of single-key rule objects into one mapping.

    Rule lists are tagged unions told apart by which key is present, so
    ``[{"on_intent": ...}, {"default": ...}]`` becomes
    ``{"on_intent": ..., "default": ...}``.
    """
    if not isinstance(data, list):
        return data

    merged: Dict[str, Any] = {}
    for rule in data:
        if not isinstance(rule, dict) or len(rule) != 1:
            raise ValueError(f"each rule must be an object with exactly one key, got {rule!r}")
        (kind, payload), = rule.items()
        if kind not in known:
            raise ValueError(f'unknown rule kind "{kind}" (expected one of {", ".join(known)})')
        if kind in merged:
            raise ValueError(f'rule kind "{kind}" appears more than once')
        merged[kind] = payload
    return merged


# ── Style packs ──────────────────────────────────────────────────────────────


class PatternRule(BaseModel):
    """Positional transition rule: every Nth cut cycles through a list."""

    every_n: int = Field(..., ge=1, description="Fire on every Nth transition index")
    cycle: List[str] = Field(..., min_length=1, description="Transition types to cycle through")
    duration_ms: Optional[int] = Field(None, description="Duration of the patterned transition")


class IntentTransitionRule(BaseModel):
    """Transition applied when the incoming scene carries one of the tags."""

    tags: List[IntentTag] = Field(..., min_length=1)
    transition: TransitionIn


class TransitionRules(BaseModel):
    """Transition rules of a style pack.

    Evaluation order is fixed: pattern, on_same_weight, on_weight_change,
    on_intent, default.
    """

    pattern: Optional[PatternRule] = None
    on_same_weight: Optional[TransitionIn] = None
    on_weight_change: Optional[TransitionIn] = None
    on_intent: Optional[IntentTransitionRule] = None
    default: TransitionIn

    @model_validator(mode="before")
    @classmethod
    def _from_rule_list(cls, data: Any) -> Any:
        return _merge_rule_list(
            data, ("pattern", "on_same_weight", "on_weight_change", "on_intent", "default")
        )


class CameraRules(BaseModel):
    """Camera override rules of a style pack.

    Evaluation order is fixed: force_static, by_content_type, by_intent.
    """

    force_static: bool = False
    by_content_type: Dict[ContentType, CameraMove] = Field(default_factory=dict)
    by_intent: Dict[IntentTag, CameraMove] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _from_rule_list(cls, data: Any) -> Any:
        return _merge_rule_list(data, ("force_static", "by_content_type", "by_intent"))


class StylePack(BaseModel):
    """Named bundle of timing, transition and camera rules."""

    name: str
    personality: str
    description: Optional[str] = None
    hold_durations: Dict[MotionEnergy, float]
    max_hold_duration: Optional[float] = Field(None, gt=0)
    transitions: TransitionRules
    camera_overrides: CameraRules = Field(default_factory=CameraRules)

    @field_validator("hold_durations")
    @classmethod
    def _covers_every_energy(cls, value: Dict[MotionEnergy, float]) -> Dict[MotionEnergy, float]:
        missing = [energy.value for energy in MotionEnergy if energy not in value]
        if missing:
            raise ValueError(f"hold_durations missing energy levels: {', '.join(missing)}")
        for energy, seconds in value.items():
            if not MIN_DURATION_S <= seconds <= MAX_DURATION_S:
                raise ValueError(
                    f"hold_durations.{energy.value} must be between "
                    f"{MIN_DURATION_S} and {MAX_DURATION_S} (got {seconds})"
                )
        return value


# ── Personalities ────────────────────────────────────────────────────────────


class CameraBehavior(BaseModel):
    """Camera boundaries of a personality."""

    enabled: bool = True
    mode: Optional[str] = None
    allowed_movements: List[str] = Field(default_factory=list)
    forbidden_movements: List[str] = Field(default_factory=list)

    class Config:
        """Pydantic config."""
        extra = "allow"


class Personality(BaseModel):
    """Camera and feature boundaries for a rendering aesthetic."""

    slug: str
    name: str
    description: Optional[str] = None
    characteristics: Dict[str, Any] = Field(default_factory=dict)
    camera_behavior: CameraBehavior = Field(default_factory=CameraBehavior)

    class Config:
        """Pydantic config."""
        extra = "allow"

    @property
    def loop_time(self) -> Optional[str]:
        return self.characteristics.get("loop_time")

    def allows_move(self, move: str) -> bool:
        """Whether the personality lists the camera move as allowed."""
        normalized = move.replace("-", "_")
        return any(
            allowed.replace("-", "_") == normalized
            for allowed in self.camera_behavior.allowed_movements
        )


# ── Shot grammar taxonomy ────────────────────────────────────────────────────


class SizeCSS(BaseModel):
    scale: float = 1.0


class AngleCSS(BaseModel):
    perspective_origin: str = Field("50% 50%", alias="perspectiveOrigin")
    rotate_x: float = Field(0.0, alias="rotateX")
    rotate_z: float = Field(0.0, alias="rotateZ")

    class Config:
        """Pydantic config."""
        populate_by_name = True


class FramingCSS(BaseModel):
    transform_origin: str = Field("50% 50%", alias="transformOrigin")

    class Config:
        """Pydantic config."""
        populate_by_name = True


class ShotSizeEntry(BaseModel):
    slug: ShotSize
    name: Optional[str] = None
    css: SizeCSS = Field(default_factory=SizeCSS)
    content_type_affinity: List[ContentType] = Field(default_factory=list)


class AngleEntry(BaseModel):
    slug: Angle
    name: Optional[str] = None
    css: AngleCSS = Field(default_factory=AngleCSS)


class FramingEntry(BaseModel):
    slug: Framing
    name: Optional[str] = None
    css: FramingCSS = Field(default_factory=FramingCSS)


class GrammarRestrictions(BaseModel):
    """Shot grammar values a personality permits."""

    allowed_sizes: List[ShotSize] = Field(default_factory=lambda: list(ShotSize))
    allowed_angles: List[Angle] = Field(default_factory=lambda: list(Angle))
    allowed_framings: List[Framing] = Field(default_factory=lambda: list(Framing))
    max_scale: Optional[float] = None
    use_3d_rotation: bool = True


class ShotGrammarTaxonomy(BaseModel):
    """Shot sizes, angles and framings with their CSS and personality limits."""

    shot_sizes: List[ShotSizeEntry]
    angles: List[AngleEntry]
    framings: List[FramingEntry]
    personality_restrictions: Dict[str, GrammarRestrictions] = Field(default_factory=dict)

    def size_entry(self, slug: Optional[ShotSize]) -> Optional[ShotSizeEntry]:
        return next((entry for entry in self.shot_sizes if entry.slug == slug), None)

    def angle_entry(self, slug: Optional[Angle]) -> Optional[AngleEntry]:
        return next((entry for entry in self.angles if entry.slug == slug), None)

    def framing_entry(self, slug: Optional[Framing]) -> Optional[FramingEntry]:
        return next((entry for entry in self.framings if entry.slug == slug), None)

    def affinity(self, content_type: Optional[ContentType]) -> Optional[ShotSize]:
        """Shot size a content type gravitates to, if the taxonomy names one."""
        if content_type is None:
            return None
        for entry in self.shot_sizes:
            if content_type in entry.content_type_affinity:
                return entry.slug
        return None


# ── Camera guardrails ────────────────────────────────────────────────────────


class CameraConstants(BaseModel):
    """Intensity-to-displacement constants shared with the renderer's camera rig."""

    scale_factor: float = Field(0.08, alias="SCALE_FACTOR")
    pan_max_px: float = Field(80, alias="PAN_MAX_PX")
    drift_amplitude: float = Field(3, alias="DRIFT_AMPLITUDE")
    default_intensity: float = Field(0.5, alias="DEFAULT_INTENSITY")

    class Config:
        """Pydantic config."""
        populate_by_name = True


class SpeedLimit(BaseModel):
    max_velocity: float
    unit: str = "px/s"


class AccelerationLimits(BaseModel):
    deceleration_phase_minimum: float = 0.3


class JerkLimits(BaseModel):
    settling_on_reversal_ms: float = 200


class Bounds(BaseModel):
    min: float
    max: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


class LensBounds(BaseModel):
    scale: Bounds = Field(default_factory=lambda: Bounds(min=0.95, max=1.05))
    rotation: Bounds = Field(default_factory=lambda: Bounds(min=-20, max=20))


class AmbientCondition(BaseModel):
    """Extra condition ambient motion (drift) must satisfy."""

    never: bool = False
    min_scene_duration_s: Optional[float] = None
    description: Optional[str] = None


class PersonalityBoundary(BaseModel):
    """Feature bans and magnitude caps for one personality."""

    forbidden_features: List[str] = Field(default_factory=list)
    max_translate_xy: Optional[float] = Field(None, alias="max_translateXY")
    max_scale_change_percent: Optional[float] = None
    ambient_condition: Optional[AmbientCondition] = None

    class Config:
        """Pydantic config."""
        populate_by_name = True

    def forbids(self, feature: str) -> bool:
        return feature in self.forbidden_features


class CameraGuardrails(BaseModel):
    """Physical-plausibility bounds for camera moves."""

    camera_constants: CameraConstants = Field(default_factory=CameraConstants)
    speed_limits: Dict[str, SpeedLimit] = Field(default_factory=dict)
    acceleration: AccelerationLimits = Field(default_factory=AccelerationLimits)
    jerk: JerkLimits = Field(default_factory=JerkLimits)
    lens_bounds: LensBounds = Field(default_factory=LensBounds)
    personality_boundaries: Dict[str, PersonalityBoundary] = Field(default_factory=dict)
