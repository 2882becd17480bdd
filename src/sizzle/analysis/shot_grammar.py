"""Shot grammar classification, personality validation and CSS resolution."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from ..catalog import Catalog, default_catalog
from ..models.scene import Angle, Framing, IntentTag, ContentType, Scene, ShotGrammar, ShotSize
from .rules import Classification, Rule, first_match

logger = logging.getLogger(__name__)

FALLBACK_SIZE = ShotSize.MEDIUM
FALLBACK_ANGLE = Angle.EYE_LEVEL
FALLBACK_FRAMING = Framing.CENTER

AFFINITY_CONFIDENCE = 0.75


def _template_is(*names: str) -> Callable[[Scene], bool]:
    return lambda scene: scene.template in names


def _single_text_foreground(scene: Scene) -> bool:
    foreground = scene.foreground_layers
    return len(foreground) == 1 and foreground[0].type == "text"


def _tagged(*tags: IntentTag) -> Callable[[Scene], bool]:
    return lambda scene: scene.meta.has_any_tag(*tags)


def _content_is(content_type: ContentType) -> Callable[[Scene], bool]:
    return lambda scene: scene.meta.content_type == content_type


def _device_side(scene: Scene) -> str:
    return scene.layout.config.get("deviceSide", "right") if scene.layout else "right"


LAYOUT_SIZE_RULES: List[Rule] = [
    Rule(_template_is("masonry-grid", "split-panel"), ShotSize.WIDE, 0.90),
    Rule(_template_is("device-mockup"), ShotSize.MEDIUM, 0.90),
    Rule(
        lambda s: s.template == "hero-center" and _single_text_foreground(s),
        ShotSize.CLOSE_UP,
        0.85,
    ),
    Rule(_template_is("hero-center"), ShotSize.MEDIUM, 0.80),
    Rule(_template_is("full-bleed"), ShotSize.MEDIUM, 0.80),
]

LAYER_COUNT_SIZE_RULES: List[Rule] = [
    Rule(lambda s: len(s.foreground_layers) >= 4, ShotSize.WIDE, 0.55),
    Rule(lambda s: len(s.foreground_layers) == 1, ShotSize.CLOSE_UP, 0.55),
    Rule(lambda s: True, ShotSize.MEDIUM, 0.50),
]

ANGLE_RULES: List[Rule] = [
    Rule(_tagged(IntentTag.HERO, IntentTag.OPENING), Angle.LOW, 0.75),
    Rule(_tagged(IntentTag.INFORMATIONAL, IntentTag.DETAIL), Angle.HIGH, 0.70),
    Rule(_content_is(ContentType.PORTRAIT), Angle.EYE_LEVEL, 0.85),
    Rule(_content_is(ContentType.DATA_VISUALIZATION), Angle.HIGH, 0.75),
    Rule(lambda s: True, Angle.EYE_LEVEL, 0.60),
]

FRAMING_RULES: List[Rule] = [
    Rule(_template_is("split-panel"), Framing.RULE_OF_THIRDS_LEFT, 0.85),
    Rule(
        lambda s: s.template == "device-mockup" and _device_side(s) == "left",
        Framing.RULE_OF_THIRDS_LEFT,
        0.85,
    ),
    Rule(_template_is("device-mockup"), Framing.RULE_OF_THIRDS_RIGHT, 0.85),
    Rule(_tagged(IntentTag.HERO, IntentTag.OPENING), Framing.CENTER, 0.80),
    Rule(lambda s: True, Framing.CENTER, 0.60),
]


@dataclass(frozen=True)
class ShotGrammarResult:
    """Classified grammar with one confidence per axis."""

    grammar: ShotGrammar
    confidence: Dict[str, float]

    @property
    def overall_confidence(self) -> float:
        """The weakest axis confidence."""
        return min(self.confidence.values())


@dataclass(frozen=True)
class GrammarValidation:
    """Outcome of checking a grammar against a personality's restrictions."""

    valid: bool
    result: ShotGrammar
    corrections: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ShotGrammarCSS:
    """Concrete transform values handed to the renderer."""

    scale: float = 1.0
    perspective_origin: str = "50% 50%"
    rotate_x: float = 0.0
    rotate_z: float = 0.0
    transform_origin: str = "50% 50%"

    @property
    def has_rotation(self) -> bool:
        return self.rotate_x != 0 or self.rotate_z != 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "scale": self.scale,
            "perspectiveOrigin": self.perspective_origin,
            "rotateX": self.rotate_x,
            "rotateZ": self.rotate_z,
            "transformOrigin": self.transform_origin,
        }


def classify_shot_size(scene: Scene, catalog: Optional[Catalog] = None) -> Classification:
    """Classify shot size from layout, then content-type affinity, then layer count."""
    catalog = catalog or default_catalog()

    match = first_match(LAYOUT_SIZE_RULES, scene)
    if match:
        return match

    affinity = catalog.shot_grammar.affinity(scene.meta.content_type)
    if affinity is not None:
        return Classification(affinity, AFFINITY_CONFIDENCE)

    return first_match(LAYER_COUNT_SIZE_RULES, scene)


def classify_angle(scene: Scene) -> Classification:
    return first_match(ANGLE_RULES, scene)


def classify_framing(scene: Scene) -> Classification:
    return first_match(FRAMING_RULES, scene)


def classify_shot_grammar(scene: Scene, catalog: Optional[Catalog] = None) -> ShotGrammarResult:
    """Classify all three shot grammar axes.

    The scene's metadata (content type and intent tags) must already be set
    for the angle, framing and affinity rules to fire.
    """
    size = classify_shot_size(scene, catalog)
    angle = classify_angle(scene)
    framing = classify_framing(scene)
    return ShotGrammarResult(
        grammar=ShotGrammar(shot_size=size.value, angle=angle.value, framing=framing.value),
        confidence={
            "shot_size": size.confidence,
            "angle": angle.confidence,
            "framing": framing.confidence,
        },
    )


def validate_shot_grammar(
    grammar: ShotGrammar,
    personality: str,
    catalog: Optional[Catalog] = None,
) -> GrammarValidation:
    """Check a grammar against a personality, correcting disallowed axes.

    Disallowed values are replaced with safe fallbacks: medium, eye_level
    and center. A personality with no restrictions accepts everything.

    Args:
        grammar: Classified shot grammar.
        personality: Personality slug.
        catalog: Catalog to read restrictions from.

    Returns:
        The validation outcome with the corrected grammar.
    """
    catalog = catalog or default_catalog()
    restrictions = catalog.shot_grammar.personality_restrictions.get(personality)
    if restrictions is None:
        return GrammarValidation(valid=True, result=grammar)

    corrections: List[str] = []
    update = {}

    axes = (
        ("shot_size", grammar.shot_size, restrictions.allowed_sizes, FALLBACK_SIZE),
        ("angle", grammar.angle, restrictions.allowed_angles, FALLBACK_ANGLE),
        ("framing", grammar.framing, restrictions.allowed_framings, FALLBACK_FRAMING),
    )
    for axis, value, allowed, fallback in axes:
        if value is not None and value not in allowed:
            corrections.append(
                f'{axis} "{value.value}" not allowed for {personality}, corrected to "{fallback.value}"'
            )
            update[axis] = fallback

    if corrections:
        logger.debug(f"Shot grammar corrected for {personality}: {'; '.join(corrections)}")

    return GrammarValidation(
        valid=not corrections,
        result=grammar.model_copy(update=update) if update else grammar,
        corrections=corrections,
    )


def shot_grammar_css(grammar: ShotGrammar, catalog: Optional[Catalog] = None) -> ShotGrammarCSS:
    """Resolve grammar to CSS values with no personality restrictions applied."""
    taxonomy = (catalog or default_catalog()).shot_grammar
    size = taxonomy.size_entry(grammar.shot_size)
    angle = taxonomy.angle_entry(grammar.angle)
    framing = taxonomy.framing_entry(grammar.framing)

    css = ShotGrammarCSS()
    return ShotGrammarCSS(
        scale=size.css.scale if size else css.scale,
        perspective_origin=angle.css.perspective_origin if angle else css.perspective_origin,
        rotate_x=angle.css.rotate_x if angle else css.rotate_x,
        rotate_z=angle.css.rotate_z if angle else css.rotate_z,
        transform_origin=framing.css.transform_origin if framing else css.transform_origin,
    )


def resolve_shot_grammar_css(
    grammar: ShotGrammar,
    personality: str,
    catalog: Optional[Catalog] = None,
) -> ShotGrammarCSS:
    """Resolve grammar to CSS values within a personality's limits.

    Scale is capped at the personality's ``max_scale``; personalities that
    forbid 3D rotation get zero rotation and a centered perspective origin.
    """
    catalog = catalog or default_catalog()
    css = shot_grammar_css(grammar, catalog)
    restrictions = catalog.shot_grammar.personality_restrictions.get(personality)
    if restrictions is None:
        return css

    scale = css.scale
    if restrictions.max_scale is not None:
        scale = min(scale, restrictions.max_scale)

    if not restrictions.use_3d_rotation:
        return ShotGrammarCSS(scale=scale, transform_origin=css.transform_origin)

    return ShotGrammarCSS(
        scale=scale,
        perspective_origin=css.perspective_origin,
        rotate_x=css.rotate_x,
        rotate_z=css.rotate_z,
        transform_origin=css.transform_origin,
    )
