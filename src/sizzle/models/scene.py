"""Scene data model."""

import json
import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ValidationError

from ..errors import InvalidInputError


class ContentType(str, Enum):
    """What a scene primarily shows."""
    TYPOGRAPHY = "typography"
    PORTRAIT = "portrait"
    BRAND_MARK = "brand_mark"
    UI_SCREENSHOT = "ui_screenshot"
    DEVICE_MOCKUP = "device_mockup"
    PRODUCT_SHOT = "product_shot"
    COLLAGE = "collage"
    MOODBOARD = "moodboard"
    SPLIT_PANEL = "split_panel"
    NOTIFICATION = "notification"
    DATA_VISUALIZATION = "data_visualization"


class VisualWeight(str, Enum):
    """Overall luminance of a scene."""
    DARK = "dark"
    LIGHT = "light"
    MIXED = "mixed"


class MotionEnergy(str, Enum):
    """Coarse amount of animation activity in a scene."""
    STATIC = "static"
    SUBTLE = "subtle"
    MODERATE = "moderate"
    HIGH = "high"


class IntentTag(str, Enum):
    """Narrative role of a scene."""
    OPENING = "opening"
    HERO = "hero"
    DETAIL = "detail"
    CLOSING = "closing"
    EMOTIONAL = "emotional"
    INFORMATIONAL = "informational"
    TRANSITION = "transition"


class ShotSize(str, Enum):
    """Cinematic shot size."""
    WIDE = "wide"
    MEDIUM = "medium"
    CLOSE_UP = "close_up"
    EXTREME_CLOSE_UP = "extreme_close_up"


class Angle(str, Enum):
    """Cinematic camera angle."""
    EYE_LEVEL = "eye_level"
    HIGH = "high"
    LOW = "low"
    DUTCH = "dutch"


class Framing(str, Enum):
    """Where the subject sits in the frame."""
    CENTER = "center"
    RULE_OF_THIRDS_LEFT = "rule_of_thirds_left"
    RULE_OF_THIRDS_RIGHT = "rule_of_thirds_right"
    DYNAMIC_OFFSET = "dynamic_offset"


LAYER_TYPES = ("text", "html", "image", "video")
DEPTH_CLASSES = ("background", "midground", "foreground")
CAMERA_MOVES = ("static", "push_in", "pull_out", "pan_left", "pan_right", "drift")
EASINGS = ("linear", "ease_out", "cinematic_scurve")

SCENE_ID_PATTERN = re.compile(r"^sc_[a-z0-9_]+$")
MIN_DURATION_S = 0.5
MAX_DURATION_S = 30.0


class Entrance(BaseModel):
    """Entrance animation attached to a layer."""

    primitive: Optional[str] = Field(None, description="Entrance primitive id")
    delay_ms: Optional[float] = Field(None, description="Stagger delay in milliseconds")

    class Config:
        """Pydantic config."""
        frozen = True
        extra = "allow"


class Layer(BaseModel):
    """A single layer of a scene composition."""

    id: Optional[str] = Field(None, description="Layer identifier, unique within the scene")
    type: str = Field(..., description="Layer type: text, html, image or video")
    depth_class: Optional[str] = Field(None, description="background, midground or foreground")
    content: Optional[str] = Field(None, description="Text or inline HTML content")
    style: Dict[str, Any] = Field(default_factory=dict, description="Style hints such as color")
    animation: Optional[str] = Field(None, description="Text animation name")
    entrance: Optional[Entrance] = Field(None, description="Entrance animation")
    slot: Optional[str] = Field(None, description="Layout slot the layer fills")

    class Config:
        """Pydantic config."""
        frozen = True
        extra = "allow"

    @property
    def is_background(self) -> bool:
        """Whether the layer sits in the background depth class."""
        return self.depth_class == "background"


class Layout(BaseModel):
    """Named spatial template."""

    template: Optional[str] = Field(None, description="Layout template name")
    config: Dict[str, Any] = Field(default_factory=dict, description="Template configuration")

    class Config:
        """Pydantic config."""
        frozen = True
        extra = "allow"


class CameraMove(BaseModel):
    """A camera move with its intensity and easing."""

    move: str = Field("static", description="Camera move name")
    intensity: Optional[float] = Field(None, description="Move intensity in [0, 1]")
    easing: Optional[str] = Field(None, description="Easing curve name")

    class Config:
        """Pydantic config."""
        frozen = True

    @property
    def is_static(self) -> bool:
        return self.move == "static"

    def validation_errors(self, prefix: str) -> List[str]:
        """Return structural problems with this camera move."""
        errors: List[str] = []
        if self.move not in CAMERA_MOVES:
            errors.append(f'{prefix}.move "{self.move}" is not valid')
        if self.intensity is not None and not 0 <= self.intensity <= 1:
            errors.append(f"{prefix}.intensity must be between 0 and 1")
        if self.easing is not None and self.easing not in EASINGS:
            errors.append(f'{prefix}.easing "{self.easing}" is not valid')
        return errors


class ShotGrammar(BaseModel):
    """Three-axis cinematic classification of a shot."""

    shot_size: Optional[ShotSize] = Field(None, description="Shot size")
    angle: Optional[Angle] = Field(None, description="Camera angle")
    framing: Optional[Framing] = Field(None, description="Subject framing")

    class Config:
        """Pydantic config."""
        frozen = True


class SceneMetadata(BaseModel):
    """Semantic metadata derived from a scene's structure."""

    content_type: Optional[ContentType] = Field(None, description="Primary content type")
    visual_weight: Optional[VisualWeight] = Field(None, description="Overall luminance")
    motion_energy: Optional[MotionEnergy] = Field(None, description="Animation activity level")
    intent_tags: List[IntentTag] = Field(default_factory=list, description="Narrative roles")
    shot_grammar: Optional[ShotGrammar] = Field(None, description="Cinematic shot grammar")
    style_override: Optional[str] = Field(None, description="Style pack used for this scene only")
    confidence: Dict[str, float] = Field(
        default_factory=dict,
        alias="_confidence",
        description="Per-field classification confidence in [0, 1]"
    )

    class Config:
        """Pydantic config."""
        frozen = True
        populate_by_name = True

    def has_any_tag(self, *tags: IntentTag) -> bool:
        """Whether any of the given intent tags is present."""
        return any(tag in self.intent_tags for tag in tags)


class Scene(BaseModel):
    """One discrete visual unit of a sequence.

    Scenes are authored externally and never mutated by the pipeline;
    analysis produces derived copies via ``with_metadata``.
    """

    scene_id: Optional[str] = Field(None, description="Unique scene identifier")
    duration_s: float = Field(3.0, description="Authored duration in seconds", gt=0)
    layers: List[Layer] = Field(..., description="Ordered layer descriptors")
    layout: Optional[Layout] = Field(None, description="Spatial layout template")
    camera: Optional[CameraMove] = Field(None, description="Authored camera move")
    metadata: Optional[SceneMetadata] = Field(None, description="Analysis results")

    class Config:
        """Pydantic config."""
        frozen = True
        extra = "allow"

    @property
    def foreground_layers(self) -> List[Layer]:
        """Layers outside the background depth class."""
        return [layer for layer in self.layers if not layer.is_background]

    @property
    def background_layers(self) -> List[Layer]:
        return [layer for layer in self.layers if layer.is_background]

    @property
    def template(self) -> Optional[str]:
        return self.layout.template if self.layout else None

    @property
    def meta(self) -> SceneMetadata:
        """Metadata, or an empty placeholder when the scene is unanalyzed."""
        return self.metadata or SceneMetadata()

    def has_video_background(self) -> bool:
        return any(layer.type == "video" and layer.is_background for layer in self.layers)

    def with_metadata(self, metadata: SceneMetadata) -> "Scene":
        """Return a copy of the scene carrying the given metadata."""
        return self.model_copy(update={"metadata": metadata})

    @classmethod
    def from_json(cls, path: Path) -> "Scene":
        """Load a scene from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the scene the way the renderer expects it."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def validation_errors(self) -> List[str]:
        """Check the scene against the scene format.

        Returns:
            A list of human-readable problems, empty when the scene is valid.
        """
        errors: List[str] = []

        if not self.scene_id:
            errors.append("scene_id is required")
        elif not SCENE_ID_PATTERN.match(self.scene_id):
            errors.append(f'scene_id "{self.scene_id}" must match {SCENE_ID_PATTERN.pattern}')

        if not MIN_DURATION_S <= self.duration_s <= MAX_DURATION_S:
            errors.append(
                f"duration_s must be between {MIN_DURATION_S} and {MAX_DURATION_S} "
                f"(got {self.duration_s})"
            )

        if self.camera:
            errors.extend(self.camera.validation_errors("camera"))

        seen_ids = set()
        for layer in self.layers:
            label = layer.id or "?"
            if not layer.id:
                errors.append("layer.id is required")
            elif layer.id in seen_ids:
                errors.append(f'duplicate layer.id "{layer.id}"')
            else:
                seen_ids.add(layer.id)

            if layer.type not in LAYER_TYPES:
                errors.append(f'layer "{label}".type "{layer.type}" is not valid')
            if layer.depth_class is not None and layer.depth_class not in DEPTH_CLASSES:
                errors.append(f'layer "{label}".depth_class "{layer.depth_class}" is not valid')

        return errors


def coerce_scene(scene: Any, caller: str) -> Scene:
    """Accept a Scene or a mapping in the scene JSON shape.

    Raises:
        InvalidInputError: If the value is neither, or the mapping is malformed.
    """
    if isinstance(scene, Scene):
        return scene
    if not isinstance(scene, dict):
        raise InvalidInputError(f"{caller} requires a scene object, got {type(scene).__name__}")
    try:
        return Scene.model_validate(scene)
    except ValidationError as e:
        raise InvalidInputError(f"Malformed scene: {e}") from e
