"""Tests for sequence planning."""

import pytest

from sizzle.errors import InvalidArgumentError, InvalidInputError
from sizzle.models import CameraMove, MotionEnergy, Scene
from sizzle.models.catalog import CameraRules
from sizzle.planning import (
    assign_camera_overrides,
    assign_durations,
    assign_shot_grammar,
    order_scenes,
    plan_sequence,
    resolve_camera,
    select_transitions,
)


def _ids(scenes):
    return [scene.scene_id for scene in scenes]


def _with_personality(catalog, style, personality):
    pack = catalog.style_packs[style].model_copy(update={"personality": personality})
    return catalog.model_copy(update={"style_packs": {**catalog.style_packs, style: pack}})


@pytest.fixture
def reel(make_scene):
    return [
        make_scene("sc_detail", "ui_screenshot", "light", "static", ["detail"]),
        make_scene("sc_closer", "typography", "dark", "subtle", ["closing"]),
        make_scene("sc_feeling", "portrait", "mixed", "subtle", ["emotional"]),
        make_scene("sc_logo", "brand_mark", "dark", "subtle", ["hero", "opening"]),
        make_scene("sc_grid", "moodboard", "light", "static", ["informational"]),
    ]


class TestOrdering:
    def test_narrative_assembly(self, reel):
        ordered = order_scenes(reel)
        assert ordered[0].scene_id == "sc_logo"
        assert ordered[-1].scene_id == "sc_closer"
        assert set(_ids(ordered)) == set(_ids(reel))

    def test_emotional_scene_is_spread_into_the_middle(self, reel):
        ordered = _ids(order_scenes(reel))
        assert ordered == ["sc_logo", "sc_detail", "sc_feeling", "sc_grid", "sc_closer"]

    def test_input_is_not_mutated(self, reel):
        before = _ids(reel)
        order_scenes(reel)
        assert _ids(reel) == before

    def test_higher_confidence_first_within_bucket(self, make_scene):
        scenes = [
            make_scene("sc_weak", "typography", intent_tags=["detail"], confidence={"intent_tags": 0.4}),
            make_scene("sc_strong", "ui_screenshot", intent_tags=["detail"], confidence={"intent_tags": 0.9}),
        ]
        assert _ids(order_scenes(scenes)) == ["sc_strong", "sc_weak"]

    def test_adjacent_content_types_are_separated(self, make_scene):
        scenes = [
            make_scene("sc_a", "typography", "dark", intent_tags=["detail"]),
            make_scene("sc_b", "typography", "light", intent_tags=["detail"]),
            make_scene("sc_c", "moodboard", "dark", intent_tags=["detail"]),
        ]
        ordered = order_scenes(scenes)
        types = [s.meta.content_type for s in ordered]
        assert all(a != b for a, b in zip(types, types[1:]))

    def test_three_same_weights_are_broken_up(self, make_scene):
        scenes = [
            make_scene("sc_a", "typography", "dark"),
            make_scene("sc_b", "portrait", "dark"),
            make_scene("sc_c", "moodboard", "dark"),
            make_scene("sc_d", "collage", "light"),
        ]
        weights = [s.meta.visual_weight.value for s in order_scenes(scenes)]
        assert weights[:3] != ["dark", "dark", "dark"]

    def test_high_energy_opener_is_swapped(self, make_scene):
        scenes = [
            make_scene("sc_loud", "collage", motion_energy="high"),
            make_scene("sc_calm", "typography", motion_energy="subtle"),
            make_scene("sc_other", "portrait", motion_energy="high"),
        ]
        assert order_scenes(scenes)[0].scene_id == "sc_calm"

    def test_two_scene_high_energy_opener_is_swapped(self, make_scene):
        scenes = [
            make_scene("sc_loud", "collage", motion_energy="high", intent_tags=["detail"]),
            make_scene("sc_calm", "typography", motion_energy="subtle", intent_tags=["informational"]),
        ]
        assert _ids(order_scenes(scenes)) == ["sc_calm", "sc_loud"]

    def test_two_scene_hero_opener_keeps_its_place(self, make_scene):
        scenes = [
            make_scene("sc_hero", "brand_mark", motion_energy="high", intent_tags=["hero"]),
            make_scene("sc_calm", "typography", motion_energy="subtle", intent_tags=["detail"]),
        ]
        assert _ids(order_scenes(scenes)) == ["sc_hero", "sc_calm"]

    def test_single_scene(self, make_scene):
        scene = make_scene("sc_only", "typography")
        assert order_scenes([scene]) == [scene]


class TestDurations:
    def test_table_lookup_by_energy(self, make_scene, catalog):
        scenes = [
            make_scene("sc_a", motion_energy="static"),
            make_scene("sc_b", motion_energy="high"),
            make_scene("sc_c"),
        ]
        assert assign_durations(scenes, "prestige", catalog) == [3.5, 2.5, 3.0]

    def test_max_hold_clamps(self, make_scene, catalog):
        pack = catalog.style_packs["energy"]
        slow = pack.model_copy(update={"hold_durations": {**pack.hold_durations, MotionEnergy.STATIC: 6.0}})
        custom = catalog.model_copy(update={"style_packs": {**catalog.style_packs, "energy": slow}})
        durations = assign_durations([make_scene("sc_a", motion_energy="static")], "energy", custom)
        assert durations == [4.0]

    def test_style_override_uses_its_own_pack(self, make_scene, catalog):
        scenes = [
            make_scene("sc_a", motion_energy="static"),
            make_scene("sc_b", motion_energy="static", style_override="energy"),
        ]
        assert assign_durations(scenes, "prestige", catalog) == [3.5, 2.0]


class TestTransitions:
    def test_first_scene_has_no_transition(self, reel, catalog):
        for style in catalog.style_names():
            assert select_transitions(reel, style, catalog)[0] is None

    def test_same_weight_beats_intent_in_dramatic(self, make_scene, catalog):
        scenes = [
            make_scene("sc_a", visual_weight="dark"),
            make_scene("sc_b", visual_weight="dark", intent_tags=["emotional"]),
        ]
        assert select_transitions(scenes, "dramatic", catalog)[1].type == "hard_cut"
        prestige = select_transitions(scenes, "prestige", catalog)[1]
        assert prestige.type == "crossfade"
        assert prestige.duration_ms == 400

    def test_weight_change(self, make_scene, catalog):
        scenes = [make_scene("sc_a", visual_weight="dark"), make_scene("sc_b", visual_weight="light")]
        assert select_transitions(scenes, "prestige", catalog)[1].type == "crossfade"
        assert select_transitions(scenes, "dramatic", catalog)[1].duration_ms == 400

    def test_unknown_weight_skips_weight_rules(self, make_scene, catalog):
        scenes = [make_scene("sc_a"), make_scene("sc_b", visual_weight="light")]
        assert select_transitions(scenes, "prestige", catalog)[1].type == "hard_cut"

    def test_pattern_fires_every_third_cut(self, make_scene, catalog):
        scenes = [make_scene(f"sc_{i}", visual_weight="dark") for i in range(7)]
        transitions = select_transitions(scenes, "energy", catalog)
        assert [t.type for t in transitions[1:]] == [
            "hard_cut", "hard_cut", "whip_left", "hard_cut", "hard_cut", "whip_right"
        ]
        assert transitions[3].duration_ms == 250


class TestCamera:
    def test_force_static(self, reel, catalog):
        cameras = assign_camera_overrides(reel, "energy", catalog)
        assert all(camera.move == "static" for camera in cameras)

    def test_content_type_rules(self, make_scene, catalog):
        scenes = [
            make_scene("sc_a", "portrait"),
            make_scene("sc_b", "ui_screenshot"),
            make_scene("sc_c", "typography"),
        ]
        cameras = assign_camera_overrides(scenes, "prestige", catalog)
        assert cameras[0] == CameraMove(move="push_in", intensity=0.2)
        assert cameras[1].move == "drift"
        assert cameras[2] is None

    def test_intent_rules_follow_rule_order(self, make_scene, catalog):
        scene = make_scene("sc_a", intent_tags=["detail", "emotional"])
        assert assign_camera_overrides([scene], "dramatic", catalog)[0].move == "push_in"

    def test_content_type_beats_intent(self, make_scene):
        rules = CameraRules(
            by_content_type={"portrait": {"move": "pull_out"}},
            by_intent={"emotional": {"move": "push_in"}},
        )
        scene = make_scene("sc_a", "portrait", intent_tags=["emotional"])
        assert resolve_camera(rules, scene).move == "pull_out"

    def test_personality_downgrades_forbidden_moves(self, make_scene, catalog):
        custom = _with_personality(catalog, "prestige", "neutral-light")
        scenes = [make_scene("sc_a", "portrait"), make_scene("sc_b", "ui_screenshot")]
        cameras = assign_camera_overrides(scenes, "prestige", custom)
        assert cameras[0] is None
        assert cameras[1].move == "drift"


class TestShotGrammar:
    def test_corrections_are_reported_per_scene(self, make_scene, catalog):
        scenes = [
            make_scene("sc_a", shot_grammar={"shot_size": "wide", "angle": "low", "framing": "center"}),
            make_scene("sc_b"),
        ]
        grammars, corrections = assign_shot_grammar(scenes, "prestige", catalog)
        assert grammars[0].angle.value == "eye_level"
        assert grammars[1] is None
        assert corrections == ['sc_a: angle "low" not allowed for editorial, corrected to "eye_level"']


class TestPlanSequence:
    def test_plan(self, reel, catalog):
        plan = plan_sequence(reel, "prestige", catalog=catalog)
        manifest, notes = plan.manifest, plan.notes

        assert manifest.validation_errors() == []
        assert manifest.style == "prestige"
        assert manifest.scenes[0].transition_in is None
        assert notes.scene_count == 5
        assert notes.style_personality == "editorial"
        assert notes.total_duration_s == pytest.approx(manifest.total_duration_s(), abs=0.05)
        assert sum(notes.transition_summary.values()) == 4
        assert notes.ordering_rationale.startswith("Opens with opening scene")
        assert notes.style_overrides is None

    def test_durations_stay_within_bounds(self, reel, catalog):
        for style in catalog.style_names():
            manifest = plan_sequence(reel, style, catalog=catalog).manifest
            assert all(0.5 <= entry.duration_s <= 30 for entry in manifest.scenes)

    def test_deterministic(self, reel, catalog):
        first = plan_sequence(reel, "dramatic", catalog=catalog)
        second = plan_sequence(list(reel), "dramatic", catalog=catalog)
        assert first == second
        assert first.manifest.sequence_id.startswith("seq_dramatic_")

    def test_explicit_sequence_id(self, reel, catalog):
        plan = plan_sequence(reel, "energy", sequence_id="seq_launch", catalog=catalog)
        assert plan.manifest.sequence_id == "seq_launch"

    def test_style_overrides_are_noted(self, make_scene, catalog):
        scenes = [make_scene("sc_a"), make_scene("sc_b", style_override="energy")]
        notes = plan_sequence(scenes, "prestige", catalog=catalog).notes
        assert notes.style_overrides == ["energy"]

    def test_empty_scenes(self, catalog):
        with pytest.raises(InvalidArgumentError, match="non-empty"):
            plan_sequence([], "prestige", catalog=catalog)

    def test_unknown_style(self, reel, catalog):
        with pytest.raises(InvalidArgumentError, match="Unknown style pack: noir"):
            plan_sequence(reel, "noir", catalog=catalog)

    def test_unknown_style_override(self, make_scene, catalog):
        scenes = [make_scene("sc_a", style_override="noir")]
        with pytest.raises(InvalidArgumentError, match='Unknown style_override "noir"'):
            plan_sequence(scenes, "prestige", catalog=catalog)

    def test_unanalyzed_scene_still_plans(self, catalog):
        scene = Scene(scene_id="sc_raw", layers=[{"id": "a", "type": "image"}])
        manifest = plan_sequence([scene], "prestige", catalog=catalog).manifest
        assert manifest.scenes[0].duration_s == 3.0

    def test_accepts_scene_mappings(self, reel, catalog):
        data = [scene.to_dict() for scene in reel]
        expected = plan_sequence(reel, "prestige", catalog=catalog)
        assert plan_sequence(data, "prestige", catalog=catalog) == expected

    def test_rejects_non_scene_items(self, catalog):
        with pytest.raises(InvalidInputError, match="plan_sequence requires a scene object, got str"):
            plan_sequence(["sc_a"], "prestige", catalog=catalog)

    def test_rejects_duplicate_scene_ids(self, make_scene, catalog):
        scenes = [make_scene("sc_a", "typography"), make_scene("sc_a", "portrait")]
        with pytest.raises(InvalidArgumentError, match="Duplicate scene_id: sc_a"):
            plan_sequence(scenes, "prestige", catalog=catalog)
