"""Sequence planning: order, time, transition and frame analyzed scenes."""

import hashlib
import logging
import re
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple
from pydantic import BaseModel, Field

from ..catalog import Catalog, default_catalog
from ..config import config
from ..errors import InvalidArgumentError, PlanningError
from ..models.catalog import StylePack
from ..models.manifest import ManifestEntry, Resolution, SequenceManifest, TransitionIn
from ..models.scene import (
    CameraMove,
    IntentTag,
    MotionEnergy,
    Scene,
    ShotGrammar,
    coerce_scene,
)
from ..analysis.shot_grammar import validate_shot_grammar
from .rules import resolve_camera, resolve_transition

logger = logging.getLogger(__name__)

# Highest priority first; a scene lands in the bucket of its highest tag
INTENT_PRIORITY = [
    IntentTag.CLOSING,
    IntentTag.OPENING,
    IntentTag.HERO,
    IntentTag.EMOTIONAL,
    IntentTag.DETAIL,
    IntentTag.INFORMATIONAL,
    IntentTag.TRANSITION,
]
UNTAGGED = "untagged"

# Moves every personality accepts
UNIVERSAL_MOVES = ("static", "drift")

CONTENT_LOOKAHEAD = 3
WEIGHT_LOOKAHEAD = 3
ENERGY_LOOKAHEAD = 3

SEQUENCE_ID_HASH_LENGTH = 10


class PlanNotes(BaseModel):
    """Editorial summary returned alongside a planned manifest."""

    total_duration_s: float = Field(..., description="Running time with transition overlaps removed")
    scene_count: int = Field(..., description="Number of scenes in the sequence")
    style_personality: str = Field(..., description="Personality of the sequence-level style pack")
    ordering_rationale: str = Field(..., description="Short explanation of the chosen order")
    transition_summary: Dict[str, int] = Field(
        default_factory=dict,
        description="Count of each transition type used"
    )
    style_overrides: Optional[List[str]] = Field(
        None,
        description="Style packs used by per-scene overrides"
    )
    shot_grammar_corrections: List[str] = Field(
        default_factory=list,
        description="Shot grammar values replaced to satisfy the personality"
    )


class SequencePlan(BaseModel):
    """A planned manifest and its notes."""

    manifest: SequenceManifest
    notes: PlanNotes


# ── Style resolution ─────────────────────────────────────────────────────────


def resolve_scene_pack(scene: Scene, default: StylePack, catalog: Catalog) -> StylePack:
    """Effective style pack for one scene.

    Raises:
        InvalidArgumentError: If the scene's ``style_override`` names no pack.
    """
    override = scene.meta.style_override
    if not override:
        return default
    pack = catalog.find_style_pack(override)
    if pack is None:
        raise InvalidArgumentError(
            f'Unknown style_override "{override}" on scene {scene.scene_id}. '
            f"Valid: {', '.join(catalog.style_names())}"
        )
    return pack


def _scene_packs(scenes: Sequence[Scene], style: str, catalog: Catalog) -> List[StylePack]:
    default = catalog.style_pack(style)
    return [resolve_scene_pack(scene, default, catalog) for scene in scenes]


# ── Ordering ─────────────────────────────────────────────────────────────────


def highest_intent(scene: Scene) -> Optional[IntentTag]:
    for tag in INTENT_PRIORITY:
        if tag in scene.meta.intent_tags:
            return tag
    return None


def _intent_confidence(scene: Scene) -> float:
    return scene.meta.confidence.get("intent_tags", 0.0)


def _swap(scenes: List[Scene], i: int, j: int, reason: str) -> None:
    logger.debug(f"Swapping positions {i} and {j} ({reason})")
    scenes[i], scenes[j] = scenes[j], scenes[i]


def _interleave(middle: List[Scene], emotional: List[Scene]) -> List[Scene]:
    """Spread emotional scenes at even intervals through the middle section."""
    if not emotional or not middle:
        return middle + emotional

    interval = max(1, len(middle) // (len(emotional) + 1))
    remaining = list(emotional)
    result: List[Scene] = []
    for i, scene in enumerate(middle):
        result.append(scene)
        if remaining and (i + 1) % interval == 0:
            result.append(remaining.pop(0))
    return result + remaining


def apply_variety_rules(scenes: List[Scene]) -> None:
    """Best-effort local repairs, in place.

    1. No two adjacent scenes share a content type.
    2. No three consecutive scenes share a visual weight.
    3. The sequence does not open at high energy unless the opener is a
       hero or opening scene.
    """
    count = len(scenes)
    if count > 2:
        _separate_neighbours(scenes)
    if count >= 2:
        _calm_opener(scenes)


def _separate_neighbours(scenes: List[Scene]) -> None:
    count = len(scenes)
    for i in range(count - 1):
        current = scenes[i].meta.content_type
        if current is None or scenes[i + 1].meta.content_type != current:
            continue
        for j in range(i + 2, min(i + 2 + CONTENT_LOOKAHEAD, count)):
            if scenes[j].meta.content_type != current:
                _swap(scenes, i + 1, j, f"adjacent {current.value}")
                break

    for i in range(count - 2):
        weight = scenes[i].meta.visual_weight
        if weight is None:
            continue
        if scenes[i + 1].meta.visual_weight != weight or scenes[i + 2].meta.visual_weight != weight:
            continue
        for j in range(i + 3, min(i + 3 + WEIGHT_LOOKAHEAD, count)):
            if scenes[j].meta.visual_weight != weight:
                _swap(scenes, i + 2, j, f"three {weight.value} scenes in a row")
                break


def _calm_opener(scenes: List[Scene]) -> None:
    count = len(scenes)
    opener = scenes[0].meta
    if opener.motion_energy == MotionEnergy.HIGH and not opener.has_any_tag(
        IntentTag.HERO, IntentTag.OPENING
    ):
        for j in range(1, min(1 + ENERGY_LOOKAHEAD, count)):
            if scenes[j].meta.motion_energy in (
                MotionEnergy.MODERATE,
                MotionEnergy.SUBTLE,
                MotionEnergy.STATIC,
            ):
                _swap(scenes, 0, j, "high-energy opener")
                break


def order_scenes(scenes: Sequence[Scene]) -> List[Scene]:
    """Order scenes by narrative role, then repair for variety.

    Assembly: opening, hero, the middle (detail, informational, transition
    and untagged scenes with emotional scenes spread through it), closing.
    Within a bucket, higher intent confidence comes first.

    Returns:
        A new list; the input is left untouched.
    """
    if len(scenes) <= 1:
        return list(scenes)

    buckets: Dict[object, List[Scene]] = {tag: [] for tag in INTENT_PRIORITY}
    buckets[UNTAGGED] = []
    for scene in scenes:
        buckets[highest_intent(scene) or UNTAGGED].append(scene)

    for key, bucket in buckets.items():
        buckets[key] = sorted(bucket, key=_intent_confidence, reverse=True)

    middle = (
        buckets[IntentTag.DETAIL]
        + buckets[IntentTag.INFORMATIONAL]
        + buckets[IntentTag.TRANSITION]
        + buckets[UNTAGGED]
    )
    ordered = (
        buckets[IntentTag.OPENING]
        + buckets[IntentTag.HERO]
        + _interleave(middle, buckets[IntentTag.EMOTIONAL])
        + buckets[IntentTag.CLOSING]
    )

    apply_variety_rules(ordered)
    return ordered


# ── Durations, transitions, camera, shot grammar ─────────────────────────────


def hold_duration(scene: Scene, pack: StylePack) -> float:
    """Table-driven hold for one scene, clamped to the pack's ceiling."""
    energy = scene.meta.motion_energy or MotionEnergy.MODERATE
    duration = pack.hold_durations[energy]
    if pack.max_hold_duration is not None:
        duration = min(duration, pack.max_hold_duration)
    return duration


def assign_durations(
    ordered: Sequence[Scene],
    style: str,
    catalog: Optional[Catalog] = None,
) -> List[float]:
    """Hold duration per scene from each scene's effective style pack."""
    catalog = catalog or default_catalog()
    packs = _scene_packs(ordered, style, catalog)
    return [hold_duration(scene, pack) for scene, pack in zip(ordered, packs)]


def select_transitions(
    ordered: Sequence[Scene],
    style: str,
    catalog: Optional[Catalog] = None,
) -> List[Optional[TransitionIn]]:
    """Transition into each scene; the first scene always gets None.

    The incoming scene's effective style pack decides each cut.
    """
    catalog = catalog or default_catalog()
    packs = _scene_packs(ordered, style, catalog)

    transitions: List[Optional[TransitionIn]] = [None] if ordered else []
    for i in range(1, len(ordered)):
        transitions.append(
            resolve_transition(packs[i].transitions, ordered[i - 1], ordered[i], i)
        )
    return transitions


def allowed_by_personality(move: CameraMove, personality_slug: str, catalog: Catalog) -> bool:
    """Whether the personality permits the move. Static and drift always pass."""
    if move.move in UNIVERSAL_MOVES:
        return True
    personality = catalog.personality(personality_slug)
    return personality is not None and personality.allows_move(move.move)


def assign_camera_overrides(
    ordered: Sequence[Scene],
    style: str,
    catalog: Optional[Catalog] = None,
) -> List[Optional[CameraMove]]:
    """Camera override per scene, downgraded to None when the personality forbids it."""
    catalog = catalog or default_catalog()
    packs = _scene_packs(ordered, style, catalog)

    overrides: List[Optional[CameraMove]] = []
    for scene, pack in zip(ordered, packs):
        move = resolve_camera(pack.camera_overrides, scene)
        if move is not None and not allowed_by_personality(move, pack.personality, catalog):
            logger.debug(
                f"Downgrading {move.move} on {scene.scene_id}: not allowed by {pack.personality}"
            )
            move = None
        overrides.append(move)
    return overrides


def assign_shot_grammar(
    ordered: Sequence[Scene],
    style: str,
    catalog: Optional[Catalog] = None,
) -> Tuple[List[Optional[ShotGrammar]], List[str]]:
    """Each scene's classified shot grammar, corrected for its personality.

    Returns:
        The per-scene grammar (None when the scene has none) and the list of
        corrections made, each prefixed with the scene id.
    """
    catalog = catalog or default_catalog()
    packs = _scene_packs(ordered, style, catalog)

    grammars: List[Optional[ShotGrammar]] = []
    corrections: List[str] = []
    for scene, pack in zip(ordered, packs):
        grammar = scene.meta.shot_grammar
        if grammar is None:
            grammars.append(None)
            continue
        validation = validate_shot_grammar(grammar, pack.personality, catalog)
        grammars.append(validation.result)
        corrections.extend(f"{scene.scene_id}: {c}" for c in validation.corrections)
    return grammars, corrections


# ── Orchestration ────────────────────────────────────────────────────────────


def derive_sequence_id(style: str, scene_ids: Sequence[str]) -> str:
    """Stable sequence id from the style and the ordered scene ids."""
    slug = re.sub(r"[^a-z0-9_]+", "_", style.lower()).strip("_") or "style"
    digest = hashlib.sha1("\n".join(scene_ids).encode("utf-8")).hexdigest()
    return f"seq_{slug}_{digest[:SEQUENCE_ID_HASH_LENGTH]}"


def build_ordering_rationale(ordered: Sequence[Scene]) -> str:
    if not ordered:
        return "Empty sequence"

    parts = []
    first = highest_intent(ordered[0])
    if first:
        parts.append(f"Opens with {first.value} scene")

    last = highest_intent(ordered[-1])
    if last and len(ordered) > 1:
        parts.append(f"closes with {last.value} scene")

    content_types = {scene.meta.content_type for scene in ordered if scene.meta.content_type}
    parts.append(f"{len(content_types)} content type(s) across {len(ordered)} scenes")
    return "; ".join(parts)


def plan_sequence(
    scenes: Sequence[Scene],
    style: str,
    sequence_id: Optional[str] = None,
    catalog: Optional[Catalog] = None,
) -> SequencePlan:
    """Plan a sequence manifest from analyzed scenes.

    Args:
        scenes: Scenes carrying metadata.
        style: Name of the sequence-level style pack.
        sequence_id: Manifest id. Derived from the style and order when omitted.
        catalog: Catalog to plan against.

    Returns:
        The manifest and its editorial notes.

    Raises:
        InvalidInputError: If an item is not a scene object.
        InvalidArgumentError: If scenes is empty, two scenes share an id, the
            style is unknown, or a scene's style override is unknown.
        PlanningError: If the assembled manifest fails structural validation.
    """
    catalog = catalog or default_catalog()
    if not scenes:
        raise InvalidArgumentError("scenes must be non-empty")
    scenes = [coerce_scene(scene, "plan_sequence") for scene in scenes]
    duplicates = sorted(
        scene_id for scene_id, n in Counter(s.scene_id for s in scenes if s.scene_id).items() if n > 1
    )
    if duplicates:
        raise InvalidArgumentError(f"Duplicate scene_id: {', '.join(duplicates)}")
    pack = catalog.style_pack(style)
    # Fail on bad overrides before doing any work
    _scene_packs(scenes, style, catalog)

    ordered = order_scenes(scenes)
    durations = assign_durations(ordered, style, catalog)
    transitions = select_transitions(ordered, style, catalog)
    cameras = assign_camera_overrides(ordered, style, catalog)
    grammars, corrections = assign_shot_grammar(ordered, style, catalog)

    scene_ids = [scene.scene_id or f"scene_{i}" for i, scene in enumerate(ordered)]
    entries = [
        ManifestEntry(
            scene=scene_ids[i],
            duration_s=durations[i],
            transition_in=transitions[i],
            camera_override=cameras[i],
            shot_grammar=grammars[i],
        )
        for i in range(len(ordered))
    ]

    manifest = SequenceManifest(
        sequence_id=sequence_id or derive_sequence_id(style, scene_ids),
        resolution=Resolution(w=config.width, h=config.height),
        fps=config.fps,
        style=style,
        scenes=entries,
    )

    errors = manifest.validation_errors()
    if errors:
        raise PlanningError(f"Generated manifest failed validation: {'; '.join(errors)}")

    overrides = sorted({s.meta.style_override for s in ordered if s.meta.style_override})
    notes = PlanNotes(
        total_duration_s=round(manifest.total_duration_s(), 1),
        scene_count=len(ordered),
        style_personality=pack.personality,
        ordering_rationale=build_ordering_rationale(ordered),
        transition_summary=dict(Counter(t.type for t in transitions if t is not None)),
        style_overrides=overrides or None,
        shot_grammar_corrections=corrections,
    )

    logger.info(
        f"Planned {manifest.sequence_id}: {notes.scene_count} scenes, "
        f"{notes.total_duration_s}s, style {style}"
    )
    return SequencePlan(manifest=manifest, notes=notes)
