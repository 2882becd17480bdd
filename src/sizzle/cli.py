"""CLI entry point for the sizzle reel pipeline."""

import json
import logging
import typer
from pathlib import Path
from typing import Optional

from . import __version__
from .config import config
from .errors import SizzleError
from .models import Scene, SequenceManifest

app = typer.Typer(
    name="sizzle",
    help="Editorial decision pipeline for sizzle reels",
    no_args_is_help=True
)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"sizzle version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """Sizzle - Order, time and transition scenes into a reel."""
    pass


def _catalog():
    from .catalog import load_catalog

    try:
        config.validate_required()
        return load_catalog(config.catalog_dir)
    except (ValueError, SizzleError) as e:
        typer.echo(f"❌ Catalog error: {e}")
        raise typer.Exit(1)


def _save_manifest(manifest: SequenceManifest, output: Path) -> None:
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        manifest.save(output)
    except OSError as e:
        typer.echo(f"❌ Error saving manifest: {e}")
        raise typer.Exit(1)
    typer.echo(f"✅ Manifest saved: {output}")


def _load_manifest(path: Path) -> SequenceManifest:
    try:
        return SequenceManifest.load(path)
    except Exception as e:
        typer.echo(f"❌ Error loading manifest: {e}")
        raise typer.Exit(1)


@app.command()
def styles() -> None:
    """List style packs and personalities."""
    catalog = _catalog()

    typer.echo("🎨 Style packs:")
    for pack in catalog.style_packs.values():
        typer.echo(f"   • {pack.name} ({pack.personality})")
        if pack.description:
            typer.echo(f"     {pack.description}")

    typer.echo("\n🎭 Personalities:")
    for personality in catalog.personalities.values():
        moves = ", ".join(personality.camera_behavior.allowed_movements) or "none"
        typer.echo(f"   • {personality.slug}: loop {personality.loop_time or '?'}, camera {moves}")


@app.command()
def analyze(
    scene_file: Path = typer.Argument(
        ...,
        help="Scene JSON file",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
) -> None:
    """Classify one scene and print its metadata."""
    from .analysis import analyze_scene
    from .analysis.analyzer import low_confidence_fields

    setup_logging(verbose)
    catalog = _catalog()

    try:
        scene = Scene.from_json(scene_file)
        analysis = analyze_scene(scene, catalog)
    except Exception as e:
        typer.echo(f"❌ Error analyzing scene: {e}")
        raise typer.Exit(1)

    typer.echo(json.dumps(analysis.metadata.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2))

    uncertain = low_confidence_fields(analysis.confidence)
    if uncertain:
        typer.echo(f"⚠️  Low confidence: {', '.join(uncertain)}")


@app.command()
def plan(
    scenes_dir: Path = typer.Argument(
        ...,
        help="Directory of scene JSON files",
        exists=True,
        file_okay=False,
        dir_okay=True
    ),
    style: str = typer.Option(..., "--style", "-s", help="Style pack name"),
    sequence_id: Optional[str] = typer.Option(
        None,
        "--sequence-id",
        help="Manifest sequence id (derived from the scenes when omitted)"
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Manifest path, .json or .yaml"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
) -> None:
    """Plan a sequence manifest from a folder of scenes."""
    from .pipeline import analyze_all, load_scenes
    from .planning import plan_sequence

    setup_logging(verbose)
    catalog = _catalog()

    try:
        scenes = analyze_all(load_scenes(scenes_dir), catalog)
        result = plan_sequence(scenes, style, sequence_id=sequence_id, catalog=catalog)
    except SizzleError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)

    manifest, notes = result.manifest, result.notes
    typer.echo(f"🎬 {manifest.sequence_id} ({style}, {notes.style_personality})")
    typer.echo(f"   Scenes: {notes.scene_count}")
    typer.echo(f"   Total duration: {notes.total_duration_s:.1f}s")
    typer.echo(f"   Order: {' → '.join(manifest.scene_ids())}")
    typer.echo(f"   Rationale: {notes.ordering_rationale}")
    if notes.transition_summary:
        summary = " + ".join(f"{count} {kind}" for kind, count in notes.transition_summary.items())
        typer.echo(f"   Transitions: {summary}")
    for correction in notes.shot_grammar_corrections:
        typer.echo(f"   ↳ {correction}")

    output = output or config.output_dir / f"{manifest.sequence_id}.json"
    _save_manifest(manifest, output)


@app.command()
def validate(
    manifest_file: Path = typer.Argument(
        ...,
        help="Manifest file, .json or .yaml",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    personality: Optional[str] = typer.Option(
        None,
        "--personality",
        "-p",
        help="Personality slug (defaults to the manifest style's personality)"
    )
) -> None:
    """Check a manifest's camera moves against the guardrails."""
    from .guardrails import Verdict, validate_full_manifest

    catalog = _catalog()
    manifest = _load_manifest(manifest_file)

    errors = manifest.validation_errors()
    if errors:
        typer.echo("❌ Manifest is invalid:")
        for error in errors:
            typer.echo(f"   - {error}")
        raise typer.Exit(1)

    try:
        result = validate_full_manifest(manifest, personality, catalog)
    except SizzleError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)

    for scene_result, entry in zip(result.scene_results, manifest.scenes):
        for issue in scene_result.blocks:
            typer.echo(f"   ⛔ {entry.scene}: {issue.message}")
        for issue in scene_result.warnings:
            typer.echo(f"   ⚠️  {entry.scene}: {issue.message}")
    for finding in result.cumulative_findings:
        typer.echo(f"   ⚠️  {finding.message}")

    icon = {"PASS": "✅", "WARN": "⚠️ ", "BLOCK": "❌"}[result.verdict.value]
    typer.echo(f"{icon} Verdict: {result.verdict.value}")
    if result.verdict == Verdict.BLOCK:
        raise typer.Exit(1)


@app.command()
def evaluate(
    manifest_file: Path = typer.Argument(
        ...,
        help="Manifest file, .json or .yaml",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    scenes_dir: Path = typer.Argument(
        ...,
        help="Directory of the manifest's scene JSON files",
        exists=True,
        file_okay=False,
        dir_okay=True
    ),
    style: Optional[str] = typer.Option(
        None,
        "--style",
        "-s",
        help="Style pack (defaults to the manifest's style)"
    )
) -> None:
    """Score a manifest on pacing, variety, flow and style adherence."""
    from .evaluation import evaluate_sequence
    from .pipeline import analyze_all, load_scenes

    catalog = _catalog()
    manifest = _load_manifest(manifest_file)

    try:
        scenes = analyze_all(load_scenes(scenes_dir), catalog)
        result = evaluate_sequence(manifest, scenes, style, catalog=catalog)
    except SizzleError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)

    typer.echo(f"📊 Score: {result.score}/100")
    for name, dimension in result.dimensions.items():
        typer.echo(f"   {name}: {dimension.score}")
    for finding in result.findings:
        where = f" (scene {finding.scene_index + 1})" if finding.scene_index is not None else ""
        typer.echo(f"   [{finding.severity.value}] {finding.dimension}: {finding.message}{where}")


@app.command()
def run(
    scenes_dir: Path = typer.Argument(
        ...,
        help="Directory of scene JSON files",
        exists=True,
        file_okay=False,
        dir_okay=True
    ),
    style: str = typer.Option(..., "--style", "-s", help="Style pack name"),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Renderer props JSON path"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
) -> None:
    """Analyze, plan, validate and evaluate, then write renderer props."""
    from .guardrails import Verdict
    from .pipeline import run_pipeline

    setup_logging(verbose)
    catalog = _catalog()

    typer.echo("🎬 Sizzle pipeline")
    typer.echo(f"   Input: {scenes_dir}")
    typer.echo(f"   Style: {style}")

    try:
        result = run_pipeline(scenes_dir, style, catalog=catalog)
    except SizzleError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)

    notes = result.plan.notes
    typer.echo(f"   Scenes: {notes.scene_count}, {notes.total_duration_s:.1f}s total")
    if verbose:
        for scene in result.scenes:
            meta = scene.meta
            tags = ", ".join(tag.value for tag in meta.intent_tags)
            typer.echo(
                f"   {scene.scene_id}: {meta.content_type.value if meta.content_type else '?'}, "
                f"{meta.visual_weight.value if meta.visual_weight else '?'}, "
                f"{meta.motion_energy.value if meta.motion_energy else '?'}, [{tags}]"
            )
        typer.echo(f"   Order: {' → '.join(result.manifest.scene_ids())}")

    typer.echo(f"   Guardrails: {result.guardrails.verdict.value}")
    typer.echo(f"   Evaluation: {result.evaluation.score}/100")

    if result.guardrails.verdict == Verdict.BLOCK:
        typer.echo("❌ Guardrails blocked the sequence; nothing written")
        raise typer.Exit(1)

    output = output or config.output_dir / f"{result.manifest.sequence_id}.props.json"
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        result.props.to_json(output)
    except OSError as e:
        typer.echo(f"❌ Error saving props: {e}")
        raise typer.Exit(1)
    typer.echo(f"\n✅ Renderer props saved: {output}")


if __name__ == "__main__":
    app()
