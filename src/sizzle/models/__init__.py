"""Data models for the sizzle reel pipeline."""

from .scene import (
    Angle,
    CameraMove,
    ContentType,
    Framing,
    IntentTag,
    Layer,
    Layout,
    MotionEnergy,
    Scene,
    SceneMetadata,
    ShotGrammar,
    ShotSize,
    VisualWeight,
    coerce_scene,
)
from .manifest import ManifestEntry, RenderProps, Resolution, SequenceManifest, TransitionIn
from .catalog import (
    CameraGuardrails,
    CameraRules,
    Personality,
    ShotGrammarTaxonomy,
    StylePack,
    TransitionRules,
)

__all__ = [
    "Angle",
    "CameraMove",
    "ContentType",
    "Framing",
    "IntentTag",
    "Layer",
    "Layout",
    "MotionEnergy",
    "Scene",
    "SceneMetadata",
    "ShotGrammar",
    "ShotSize",
    "VisualWeight",
    "coerce_scene",
    "ManifestEntry",
    "RenderProps",
    "Resolution",
    "SequenceManifest",
    "TransitionIn",
    "CameraGuardrails",
    "CameraRules",
    "Personality",
    "ShotGrammarTaxonomy",
    "StylePack",
    "TransitionRules",
]
