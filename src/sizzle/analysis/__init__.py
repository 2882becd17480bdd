"""Scene analysis and shot grammar classification."""

from .analyzer import (
    SceneAnalysis,
    analyze_scene,
    classify_content_type,
    classify_motion_energy,
    classify_visual_weight,
    infer_intent_tags,
    low_confidence_fields,
)
from .color import extract_colors_from_html, hex_to_luminance
from .rules import Classification
from .shot_grammar import (
    GrammarValidation,
    ShotGrammarCSS,
    ShotGrammarResult,
    classify_angle,
    classify_framing,
    classify_shot_grammar,
    classify_shot_size,
    resolve_shot_grammar_css,
    shot_grammar_css,
    validate_shot_grammar,
)

__all__ = [
    "SceneAnalysis",
    "analyze_scene",
    "classify_content_type",
    "classify_motion_energy",
    "classify_visual_weight",
    "infer_intent_tags",
    "low_confidence_fields",
    "extract_colors_from_html",
    "hex_to_luminance",
    "Classification",
    "GrammarValidation",
    "ShotGrammarCSS",
    "ShotGrammarResult",
    "classify_angle",
    "classify_framing",
    "classify_shot_grammar",
    "classify_shot_size",
    "resolve_shot_grammar_css",
    "shot_grammar_css",
    "validate_shot_grammar",
]
