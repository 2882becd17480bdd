"""Scenes folder to renderer props: load, analyze, plan, validate, evaluate."""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence
from pydantic import ValidationError

from .analysis import analyze_scene, classify_shot_grammar
from .catalog import Catalog, default_catalog
from .errors import InvalidInputError
from .evaluation import EvaluationResult, evaluate_sequence
from .guardrails import ManifestVerdict, validate_full_manifest
from .models import RenderProps, Scene, SceneMetadata, SequenceManifest
from .planning import SequencePlan, plan_sequence

logger = logging.getLogger(__name__)

# Metadata fields an author may pin by hand
AUTHORED_FIELDS = ("content_type", "visual_weight", "motion_energy", "intent_tags", "shot_grammar")
AUTHORED_CONFIDENCE = 1.0


@dataclass
class PipelineResult:
    """Everything one pipeline run produced."""

    scenes: List[Scene]
    plan: SequencePlan
    guardrails: ManifestVerdict
    evaluation: EvaluationResult
    props: RenderProps

    @property
    def manifest(self) -> SequenceManifest:
        return self.plan.manifest


def scene_id_from_filename(path: Path) -> str:
    """Derive ``sc_<name>`` from a file name, lowercased with runs of other characters as ``_``."""
    sanitized = re.sub(r"[^a-z0-9]+", "_", path.stem.lower()).strip("_")
    return f"sc_{sanitized}"


def load_scenes(directory: Path) -> List[Scene]:
    """Load every ``*.json`` scene in a directory, in file name order.

    Scenes without a ``scene_id`` get one derived from their file name.

    Args:
        directory: Folder of scene JSON files.

    Returns:
        The parsed scenes.

    Raises:
        InvalidInputError: If the folder is missing or empty, or a file is
            not valid JSON or not a valid scene.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise InvalidInputError(f'"{directory}" is not a directory')

    files = sorted(p for p in directory.iterdir() if p.suffix == ".json" and p.is_file())
    if not files:
        raise InvalidInputError(f"No .json files found in {directory}")

    scenes: List[Scene] = []
    for path in files:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidInputError(f"Invalid JSON in {path.name}: {e}") from e

        if not isinstance(data, dict):
            raise InvalidInputError(f"Scene validation failed for {path.name}: not a JSON object")
        if not data.get("scene_id"):
            data["scene_id"] = scene_id_from_filename(path)

        try:
            scene = Scene.model_validate(data)
        except ValidationError as e:
            raise InvalidInputError(f"Scene validation failed for {path.name}: {e}") from e

        errors = scene.validation_errors()
        if errors:
            raise InvalidInputError(f"Scene validation failed for {path.name}: {'; '.join(errors)}")

        scenes.append(scene)

    logger.info(f"Loaded {len(scenes)} scenes from {directory}")
    return scenes


def merge_metadata(
    scene: Scene,
    computed: SceneMetadata,
    catalog: Optional[Catalog] = None,
) -> SceneMetadata:
    """Overlay authored metadata on computed metadata.

    Fields the author set win at full confidence and ``style_override`` is
    carried over. Shot grammar is reclassified when the author pinned
    content type or intent tags but not the grammar itself.
    """
    authored = scene.metadata
    if authored is None:
        return computed

    pinned = [name for name in AUTHORED_FIELDS if name in authored.model_fields_set]
    update: Dict[str, object] = {name: getattr(authored, name) for name in pinned}
    confidence = dict(computed.confidence)
    confidence.update({name: AUTHORED_CONFIDENCE for name in pinned})
    if authored.style_override:
        update["style_override"] = authored.style_override

    merged = computed.model_copy(update=update)
    if "shot_grammar" not in pinned and {"content_type", "intent_tags"} & set(pinned):
        shot = classify_shot_grammar(scene.with_metadata(merged), catalog)
        update["shot_grammar"] = shot.grammar
        confidence["shot_grammar"] = shot.overall_confidence

    update["confidence"] = confidence
    if pinned:
        logger.debug(f"{scene.scene_id}: authored metadata kept for {', '.join(pinned)}")
    return computed.model_copy(update=update)


def analyze_all(scenes: Sequence[Scene], catalog: Optional[Catalog] = None) -> List[Scene]:
    """Attach metadata to every scene, returning new scene objects."""
    catalog = catalog or default_catalog()
    analyzed = []
    for scene in scenes:
        computed = analyze_scene(scene, catalog).metadata
        analyzed.append(scene.with_metadata(merge_metadata(scene, computed, catalog)))
    return analyzed


def assemble_props(manifest: SequenceManifest, scenes: Sequence[Scene]) -> RenderProps:
    """Renderer props: the manifest plus every referenced scene definition.

    Raises:
        InvalidInputError: If the manifest references a scene that is not given.
    """
    by_id = {scene.scene_id: scene for scene in scenes if scene.scene_id}
    missing = [scene_id for scene_id in manifest.scene_ids() if scene_id not in by_id]
    if missing:
        raise InvalidInputError(f"Manifest references unknown scenes: {', '.join(missing)}")

    scene_defs = {scene_id: by_id[scene_id].to_dict() for scene_id in manifest.scene_ids()}
    return RenderProps(manifest=manifest, scene_defs=scene_defs)


def run_pipeline(
    directory: Path,
    style: str,
    sequence_id: Optional[str] = None,
    catalog: Optional[Catalog] = None,
) -> PipelineResult:
    """Load, analyze, plan, validate and evaluate a folder of scenes.

    Rendering stays with the external renderer; the returned props are its input.
    """
    catalog = catalog or default_catalog()
    scenes = analyze_all(load_scenes(directory), catalog)
    plan = plan_sequence(scenes, style, sequence_id=sequence_id, catalog=catalog)
    verdict = validate_full_manifest(plan.manifest, catalog=catalog)
    evaluation = evaluate_sequence(plan.manifest, scenes, style, catalog=catalog)
    props = assemble_props(plan.manifest, scenes)
    return PipelineResult(
        scenes=scenes,
        plan=plan,
        guardrails=verdict,
        evaluation=evaluation,
        props=props,
    )
