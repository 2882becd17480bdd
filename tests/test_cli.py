"""Tests for the sizzle command line."""

import json

from typer.testing import CliRunner

from sizzle import __version__
from sizzle.cli import app
from sizzle.models import SequenceManifest

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"sizzle version {__version__}" in result.output


def test_styles():
    result = runner.invoke(app, ["styles"])
    assert result.exit_code == 0
    assert "prestige (editorial)" in result.output
    assert "neutral-light" in result.output


def test_analyze(scenes_dir):
    result = runner.invoke(app, ["analyze", str(scenes_dir / "01-brand.json")])
    assert result.exit_code == 0
    assert '"content_type": "brand_mark"' in result.output


def test_plan_writes_yaml(scenes_dir, tmp_path):
    output = tmp_path / "out" / "plan.yaml"
    result = runner.invoke(
        app, ["plan", str(scenes_dir), "--style", "prestige", "--sequence-id", "seq_launch", "-o", str(output)]
    )
    assert result.exit_code == 0, result.output
    assert "Manifest saved" in result.output
    manifest = SequenceManifest.load(output)
    assert manifest.sequence_id == "seq_launch"
    assert len(manifest.scenes) == 5


def test_plan_unknown_style(scenes_dir, tmp_path):
    result = runner.invoke(app, ["plan", str(scenes_dir), "--style", "noir", "-o", str(tmp_path / "p.json")])
    assert result.exit_code == 1
    assert "Unknown style pack: noir" in result.output


def test_validate_and_evaluate(scenes_dir, tmp_path):
    manifest_path = tmp_path / "energy.json"
    runner.invoke(app, ["plan", str(scenes_dir), "--style", "energy", "-o", str(manifest_path)])

    result = runner.invoke(app, ["validate", str(manifest_path)])
    assert result.exit_code == 0
    assert "Verdict: PASS" in result.output

    result = runner.invoke(app, ["evaluate", str(manifest_path), str(scenes_dir)])
    assert result.exit_code == 0
    assert "Score:" in result.output
    assert "adherence: 100" in result.output


def test_validate_blocks(scenes_dir, tmp_path):
    manifest_path = tmp_path / "dramatic.json"
    runner.invoke(app, ["plan", str(scenes_dir), "--style", "dramatic", "-o", str(manifest_path)])

    result = runner.invoke(app, ["validate", str(manifest_path), "--personality", "neutral-light"])
    assert result.exit_code == 1
    assert "Verdict: BLOCK" in result.output


def test_validate_rejects_malformed_manifest(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"sequence_id": "seq_bad", "fps": 25, "scenes": []}), encoding="utf-8")
    result = runner.invoke(app, ["validate", str(path)])
    assert result.exit_code == 1
    assert "Manifest is invalid" in result.output


def test_run_writes_props(scenes_dir, tmp_path):
    output = tmp_path / "props.json"
    result = runner.invoke(app, ["run", str(scenes_dir), "--style", "prestige", "-o", str(output), "-v"])
    assert result.exit_code == 0, result.output
    props = json.loads(output.read_text(encoding="utf-8"))
    assert set(props) == {"manifest", "sceneDefs"}
    assert len(props["sceneDefs"]) == 5


def test_run_missing_folder(tmp_path):
    result = runner.invoke(app, ["run", str(tmp_path / "nope"), "--style", "prestige"])
    assert result.exit_code != 0
