"""Scene analysis: classify a scene's raw structure into semantic metadata.

Every classifier is deterministic and looks only at the scene it is given.
Content type, visual weight and motion energy each resolve to a value plus
a confidence; ambiguous scenes fall back to a defined value at low
confidence instead of failing.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from ..catalog import Catalog
from ..models.scene import (
    ContentType,
    IntentTag,
    MotionEnergy,
    Scene,
    SceneMetadata,
    VisualWeight,
    coerce_scene,
)
from .color import extract_colors_from_html, hex_to_luminance
from .rules import Classification, Rule, first_match
from .shot_grammar import classify_shot_grammar

logger = logging.getLogger(__name__)

LOW_CONFIDENCE = 0.50

# Visual weight
DARK_LUMINANCE = 0.25
LIGHT_LUMINANCE = 0.6
DOMINANCE_RATIO = 0.7
NO_COLOR_CONFIDENCE = 0.30
MIXED_CONFIDENCE = 0.60

# Motion energy scoring
ANIMATION_SCORES = {"word-reveal": 2, "scale-cascade": 6, "weight-morph": 2}
DEFAULT_CAMERA_INTENSITY = 0.5

PORTRAIT_KEYWORDS = re.compile(r"portrait|face|person|headshot", re.IGNORECASE)
BRAND_KEYWORDS = re.compile(r"brand|logo", re.IGNORECASE)
NOTIFICATION_KEYWORDS = re.compile(r"notif", re.IGNORECASE)
UI_KEYWORDS = re.compile(r"ui|dashboard|screenshot|interface", re.IGNORECASE)

TRANSITION_MAX_DURATION_S = 1.5
TRANSITION_MAX_LAYERS = 2


@dataclass(frozen=True)
class SceneAnalysis:
    """Metadata computed for one scene, confidence included."""

    metadata: SceneMetadata

    @property
    def confidence(self) -> Dict[str, float]:
        return self.metadata.confidence


# ── Content type ─────────────────────────────────────────────────────────────


def _cell_count(scene: Scene) -> int:
    return sum(1 for layer in scene.layers if layer.slot and layer.slot.startswith("cell-"))


def _all_foreground_text(scene: Scene) -> bool:
    foreground = scene.foreground_layers
    background = scene.background_layers
    return (
        bool(foreground)
        and all(layer.type == "text" for layer in foreground)
        and len(background) <= 1
        and all(layer.type in ("html", "video") for layer in background)
    )


def _foreground_text_or_html(scene: Scene) -> bool:
    return any(layer.type in ("text", "html") for layer in scene.foreground_layers)


def _video_with_overlay(scene: Scene) -> bool:
    return scene.has_video_background() and _foreground_text_or_html(scene)


def _single_html_foreground(scene: Scene) -> bool:
    foreground = scene.foreground_layers
    return len(foreground) == 1 and foreground[0].type == "html"


def _id_matches(pattern: re.Pattern, scene: Scene) -> bool:
    return bool(pattern.search(scene.scene_id or ""))


def _image_count(scene: Scene) -> int:
    return sum(1 for layer in scene.layers if layer.type == "image")


CONTENT_TYPE_RULES: List[Rule] = [
    Rule(lambda s: s.template == "device-mockup", ContentType.DEVICE_MOCKUP, 0.95),
    Rule(lambda s: s.template == "split-panel", ContentType.SPLIT_PANEL, 0.95),
    Rule(lambda s: s.template == "masonry-grid" and _cell_count(s) >= 4, ContentType.COLLAGE, 0.90),
    Rule(lambda s: s.template == "masonry-grid", ContentType.MOODBOARD, 0.85),
    Rule(lambda s: s.template == "full-bleed", ContentType.PRODUCT_SHOT, 0.85),
    Rule(lambda s: s.template == "hero-center", ContentType.BRAND_MARK, 0.80),
    Rule(_all_foreground_text, ContentType.TYPOGRAPHY, 0.90),
    Rule(
        lambda s: _video_with_overlay(s) and _id_matches(PORTRAIT_KEYWORDS, s),
        ContentType.PORTRAIT,
        0.75,
    ),
    Rule(
        lambda s: _single_html_foreground(s) and _id_matches(BRAND_KEYWORDS, s),
        ContentType.BRAND_MARK,
        0.80,
    ),
    Rule(
        lambda s: _single_html_foreground(s) and _id_matches(NOTIFICATION_KEYWORDS, s),
        ContentType.NOTIFICATION,
        0.80,
    ),
    Rule(
        lambda s: _image_count(s) > 0 and _id_matches(UI_KEYWORDS, s),
        ContentType.UI_SCREENSHOT,
        0.70,
    ),
    Rule(
        lambda s: _image_count(s) >= 2 and not any(layer.type == "text" for layer in s.layers),
        ContentType.MOODBOARD,
        0.65,
    ),
    Rule(_video_with_overlay, ContentType.PRODUCT_SHOT, 0.50),
]

# Total ambiguity, not a real classification
CONTENT_TYPE_FALLBACK = Classification(ContentType.UI_SCREENSHOT, 0.20)


def classify_content_type(scene: Scene) -> Classification:
    """Classify what a scene shows, strongest signal first."""
    return first_match(CONTENT_TYPE_RULES, scene) or CONTENT_TYPE_FALLBACK


# ── Visual weight ────────────────────────────────────────────────────────────


def luminance_samples(scene: Scene) -> List[float]:
    """Collect luminance samples from layer colors.

    A layer's ``style.color`` is inverted because light text implies a dark
    scene. Colors declared in inline HTML styles count directly.
    """
    samples: List[float] = []
    for layer in scene.layers:
        text_luminance = hex_to_luminance(layer.style.get("color"))
        if text_luminance is not None:
            samples.append(1 - text_luminance)

        if layer.type == "html" and layer.content:
            for color in extract_colors_from_html(layer.content):
                luminance = hex_to_luminance(color)
                if luminance is not None:
                    samples.append(luminance)
    return samples


def classify_visual_weight(scene: Scene) -> Classification:
    """Classify a scene as dark, light or mixed from its colors."""
    samples = luminance_samples(scene)
    if not samples:
        return Classification(VisualWeight.MIXED, NO_COLOR_CONFIDENCE)

    dark_ratio = sum(1 for lum in samples if lum < DARK_LUMINANCE) / len(samples)
    light_ratio = sum(1 for lum in samples if lum > LIGHT_LUMINANCE) / len(samples)

    if dark_ratio > DOMINANCE_RATIO:
        return Classification(VisualWeight.DARK, 0.70 + dark_ratio * 0.25)
    if light_ratio > DOMINANCE_RATIO:
        return Classification(VisualWeight.LIGHT, 0.70 + light_ratio * 0.25)
    return Classification(VisualWeight.MIXED, MIXED_CONFIDENCE)


# ── Motion energy ────────────────────────────────────────────────────────────


def motion_score(scene: Scene) -> int:
    """Additive motion score from camera, animations, entrances, stagger and video."""
    score = 0

    camera = scene.camera
    if camera and not camera.is_static:
        intensity = camera.intensity if camera.intensity is not None else DEFAULT_CAMERA_INTENSITY
        if intensity < 0.2:
            score += 1
        elif intensity <= 0.5:
            score += 2
        else:
            score += 3

    for layer in scene.layers:
        score += ANIMATION_SCORES.get(layer.animation or "", 0)

    entrances = [layer for layer in scene.layers if layer.entrance and layer.entrance.primitive]
    if len(entrances) >= 3:
        score += 3
    elif entrances:
        score += 1

    delays = {
        layer.entrance.delay_ms
        for layer in scene.layers
        if layer.entrance and layer.entrance.delay_ms is not None and layer.entrance.delay_ms > 0
    }
    if len(delays) >= 3:
        score += 2
    elif len(delays) == 2:
        score += 1

    if any(layer.type == "video" for layer in scene.layers):
        score += 1

    return score


def classify_motion_energy(scene: Scene) -> Classification:
    """Bucket the motion score: 0 static, 1 subtle, 2-5 moderate, 6+ high."""
    score = motion_score(scene)
    if score == 0:
        return Classification(MotionEnergy.STATIC, 0.90)

    if score <= 1:
        energy = MotionEnergy.SUBTLE
    elif score <= 5:
        energy = MotionEnergy.MODERATE
    else:
        energy = MotionEnergy.HIGH
    return Classification(energy, min(0.50 + score * 0.08, 0.95))


# ── Intent tags ──────────────────────────────────────────────────────────────

CONTENT_TYPE_TAGS: Dict[ContentType, List[IntentTag]] = {
    ContentType.UI_SCREENSHOT: [IntentTag.DETAIL],
    ContentType.DEVICE_MOCKUP: [IntentTag.DETAIL],
    ContentType.DATA_VISUALIZATION: [IntentTag.DETAIL, IntentTag.INFORMATIONAL],
    ContentType.PORTRAIT: [IntentTag.EMOTIONAL],
    ContentType.COLLAGE: [IntentTag.INFORMATIONAL],
    ContentType.MOODBOARD: [IntentTag.INFORMATIONAL],
    ContentType.SPLIT_PANEL: [IntentTag.INFORMATIONAL],
}


def infer_intent_tags(
    scene: Scene,
    content_type: Optional[ContentType],
    motion_energy: Optional[MotionEnergy],
) -> Classification:
    """Infer narrative roles from content type and scene structure.

    Several tags may apply at once. Returns a list of tags as the value.
    """
    tags: List[IntentTag] = []
    foreground = scene.foreground_layers

    if content_type == ContentType.BRAND_MARK:
        tags.append(IntentTag.HERO)
        if len(foreground) <= 1:
            tags.append(IntentTag.OPENING)
    elif content_type == ContentType.TYPOGRAPHY:
        text_layers = [layer for layer in foreground if layer.type == "text"]
        if len(text_layers) == 1:
            if motion_energy == MotionEnergy.HIGH:
                tags.append(IntentTag.HERO)
            elif text_layers[0].animation == "word-reveal":
                tags.append(IntentTag.OPENING)
            else:
                tags.append(IntentTag.DETAIL)
    else:
        tags.extend(CONTENT_TYPE_TAGS.get(content_type, []))

    has_text_foreground = any(layer.type == "text" for layer in foreground)
    if scene.has_video_background() and has_text_foreground and IntentTag.EMOTIONAL not in tags:
        tags.append(IntentTag.EMOTIONAL)

    if scene.duration_s <= TRANSITION_MAX_DURATION_S and len(scene.layers) <= TRANSITION_MAX_LAYERS:
        tags.append(IntentTag.TRANSITION)

    confidence = 0.30 if not tags else min(0.55 + len(tags) * 0.10, 0.90)
    return Classification(tags, confidence)


# ── Orchestration ────────────────────────────────────────────────────────────


def analyze_scene(
    scene: Union[Scene, Dict[str, Any]],
    catalog: Optional[Catalog] = None,
) -> SceneAnalysis:
    """Analyze one scene and produce metadata with per-field confidence.

    Args:
        scene: A Scene, or a mapping in the scene JSON shape.
        catalog: Catalog supplying shot grammar affinities.

    Returns:
        The computed metadata. Authored metadata on the scene is ignored.

    Raises:
        InvalidInputError: If the input is not a scene object.
    """
    scene = coerce_scene(scene, "analyze_scene")

    content_type = classify_content_type(scene)
    visual_weight = classify_visual_weight(scene)
    motion_energy = classify_motion_energy(scene)
    intent_tags = infer_intent_tags(scene, content_type.value, motion_energy.value)

    metadata = SceneMetadata(
        content_type=content_type.value,
        visual_weight=visual_weight.value,
        motion_energy=motion_energy.value,
        intent_tags=intent_tags.value,
    )
    shot = classify_shot_grammar(scene.with_metadata(metadata), catalog)

    metadata = metadata.model_copy(
        update={
            "shot_grammar": shot.grammar,
            "confidence": {
                "content_type": content_type.confidence,
                "visual_weight": visual_weight.confidence,
                "motion_energy": motion_energy.confidence,
                "intent_tags": intent_tags.confidence,
                "shot_grammar": shot.overall_confidence,
            },
        }
    )

    logger.debug(
        f"Analyzed {scene.scene_id or '<unnamed>'}: {content_type.value.value} "
        f"({content_type.confidence:.2f}), {visual_weight.value.value}, "
        f"{motion_energy.value.value}, tags={[tag.value for tag in intent_tags.value]}"
    )
    return SceneAnalysis(metadata=metadata)


def low_confidence_fields(confidence: Dict[str, float]) -> List[str]:
    """Fields whose confidence falls below the trustworthy band."""
    return [name for name, value in confidence.items() if value < LOW_CONFIDENCE]
