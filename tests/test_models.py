"""Tests for scene and manifest models."""

import pytest
from pydantic import ValidationError

from sizzle.models import (
    CameraMove,
    ManifestEntry,
    RenderProps,
    Scene,
    SceneMetadata,
    SequenceManifest,
    TransitionIn,
)


def _manifest(**overrides) -> SequenceManifest:
    data = {
        "sequence_id": "seq_test",
        "fps": 60,
        "style": "prestige",
        "scenes": [
            {"scene": "sc_a", "duration_s": 3.0},
            {"scene": "sc_b", "duration_s": 2.5, "transition_in": {"type": "crossfade", "duration_ms": 400}},
            {"scene": "sc_c", "duration_s": 3.5, "transition_in": {"type": "hard_cut"}},
        ],
    }
    data.update(overrides)
    return SequenceManifest.from_dict(data)


class TestScene:
    def test_valid_scene_has_no_errors(self):
        scene = Scene(scene_id="sc_ok", layers=[{"id": "a", "type": "text"}])
        assert scene.validation_errors() == []

    def test_reports_bad_id_duration_and_layers(self):
        scene = Scene(
            scene_id="Bad-Id",
            duration_s=45,
            layers=[
                {"id": "a", "type": "text"},
                {"id": "a", "type": "audio", "depth_class": "ceiling"},
            ],
        )
        errors = scene.validation_errors()
        assert any("scene_id" in e for e in errors)
        assert any("duration_s" in e for e in errors)
        assert any('duplicate layer.id "a"' in e for e in errors)
        assert any('.type "audio"' in e for e in errors)
        assert any('.depth_class "ceiling"' in e for e in errors)

    def test_camera_errors_are_reported(self):
        scene = Scene(
            scene_id="sc_cam",
            layers=[{"id": "a", "type": "image"}],
            camera={"move": "orbit", "intensity": 2, "easing": "bounce"},
        )
        errors = scene.validation_errors()
        assert len(errors) == 3

    def test_layers_are_required(self):
        with pytest.raises(ValidationError):
            Scene.model_validate({"scene_id": "sc_x"})

    def test_with_metadata_leaves_original_untouched(self):
        scene = Scene(scene_id="sc_a", layers=[])
        analyzed = scene.with_metadata(SceneMetadata(content_type="typography"))
        assert scene.metadata is None
        assert analyzed.meta.content_type.value == "typography"

    def test_confidence_serializes_with_underscore_key(self):
        scene = Scene(
            scene_id="sc_a",
            layers=[],
            metadata=SceneMetadata(content_type="portrait", confidence={"content_type": 0.75}),
        )
        data = scene.to_dict()
        assert data["metadata"]["_confidence"] == {"content_type": 0.75}

    def test_authored_confidence_key_is_read(self):
        scene = Scene.model_validate(
            {"scene_id": "sc_a", "layers": [], "metadata": {"_confidence": {"content_type": 1.0}}}
        )
        assert scene.meta.confidence == {"content_type": 1.0}

    def test_unknown_fields_survive_for_the_renderer(self):
        scene = Scene.model_validate(
            {"scene_id": "sc_a", "layers": [{"id": "a", "type": "text", "font": "Inter"}], "notes": "x"}
        )
        data = scene.to_dict()
        assert data["notes"] == "x"
        assert data["layers"][0]["font"] == "Inter"


class TestSequenceManifest:
    def test_valid_manifest(self):
        assert _manifest().validation_errors() == []

    def test_total_duration_subtracts_soft_transitions(self):
        assert _manifest().total_duration_s() == pytest.approx(8.6)

    def test_first_scene_must_not_have_transition(self):
        manifest = _manifest(
            scenes=[{"scene": "sc_a", "duration_s": 3, "transition_in": {"type": "crossfade"}}]
        )
        errors = manifest.validation_errors()
        assert any("scenes[0].transition_in must be absent" in e for e in errors)

    def test_bad_fps_sequence_id_and_entries(self):
        manifest = _manifest(
            sequence_id="sequence one",
            fps=25,
            scenes=[
                {"scene": "sc_a", "duration_s": 0.2},
                {"scene": "sc_b", "duration_s": 3, "transition_in": {"type": "iris", "duration_ms": 5000}},
            ],
        )
        errors = manifest.validation_errors()
        assert any("sequence_id" in e for e in errors)
        assert any("fps" in e for e in errors)
        assert any("scenes[0].duration_s" in e for e in errors)
        assert any('"iris" is not valid' in e for e in errors)
        assert any("duration_ms must be between 0 and 2000" in e for e in errors)

    def test_empty_scenes(self):
        errors = _manifest(scenes=[]).validation_errors()
        assert errors == ["scenes array is required and must have at least 1 entry"]

    def test_json_and_yaml_files(self, tmp_path):
        manifest = _manifest()
        for name in ("plan.json", "plan.yaml"):
            path = tmp_path / name
            manifest.save(path)
            assert SequenceManifest.load(path) == manifest

    def test_to_dict_omits_unset_fields(self):
        data = _manifest().to_dict()
        assert "transition_in" not in data["scenes"][0]
        assert "camera_override" not in data["scenes"][1]

    def test_render_props_use_camel_case_key(self):
        manifest = SequenceManifest(
            sequence_id="seq_x",
            scenes=[ManifestEntry(scene="sc_a", duration_s=3, camera_override=CameraMove(move="drift"))],
        )
        props = RenderProps(manifest=manifest, scene_defs={"sc_a": {"scene_id": "sc_a"}})
        data = props.to_dict()
        assert set(data) == {"manifest", "sceneDefs"}
        assert data["manifest"]["scenes"][0]["camera_override"] == {"move": "drift"}

    def test_transition_is_immutable(self):
        transition = TransitionIn(type="hard_cut")
        with pytest.raises(ValidationError):
            transition.type = "crossfade"
