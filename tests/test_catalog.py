"""Tests for catalog loading and cross-reference checks."""

import json
import shutil
from pathlib import Path

import pytest

from sizzle.catalog import load_catalog
from sizzle.config import PACKAGED_CATALOG_DIR
from sizzle.errors import CatalogError, InvalidArgumentError
from sizzle.models import ContentType, IntentTag, MotionEnergy, ShotSize


@pytest.fixture
def catalog_copy(tmp_path: Path) -> Path:
    directory = tmp_path / "catalog"
    shutil.copytree(PACKAGED_CATALOG_DIR, directory)
    return directory


def _edit_packs(directory: Path, edit) -> None:
    path = directory / "style-packs.json"
    data = json.loads(path.read_text(encoding="utf-8"))
    edit(data["style_packs"])
    path.write_text(json.dumps(data), encoding="utf-8")


def test_packaged_catalog_loads(catalog):
    assert catalog.style_names() == ["prestige", "energy", "dramatic"]
    assert set(catalog.personalities) == {"cinematic-dark", "editorial", "neutral-light", "montage"}


def test_every_pack_resolves_to_a_personality(catalog):
    for pack in catalog.style_packs.values():
        assert catalog.personality(pack.personality) is not None


def test_rule_lists_are_folded(catalog):
    energy = catalog.style_pack("energy")
    assert energy.transitions.pattern.every_n == 3
    assert energy.transitions.pattern.cycle[0] == "whip_left"
    assert energy.transitions.default.type == "hard_cut"
    assert energy.camera_overrides.force_static is True
    assert energy.max_hold_duration == 4.0

    dramatic = catalog.style_pack("dramatic")
    assert dramatic.transitions.on_intent.tags == [IntentTag.EMOTIONAL]
    assert list(dramatic.camera_overrides.by_intent) == [
        IntentTag.EMOTIONAL,
        IntentTag.HERO,
        IntentTag.DETAIL,
    ]


def test_hold_durations_cover_every_energy(catalog):
    for pack in catalog.style_packs.values():
        assert set(pack.hold_durations) == set(MotionEnergy)


def test_unknown_style_pack_lists_valid_names(catalog):
    with pytest.raises(InvalidArgumentError, match="Unknown style pack: noir. Valid: prestige, energy, dramatic"):
        catalog.style_pack("noir")
    assert catalog.find_style_pack("noir") is None


def test_personality_helpers(catalog):
    editorial = catalog.personality("editorial")
    assert editorial.loop_time == "12-16s"
    assert editorial.allows_move("pan_left")
    assert editorial.allows_move("push-in")
    assert not editorial.allows_move("drift")


def test_shot_grammar_affinity(catalog):
    taxonomy = catalog.shot_grammar
    assert taxonomy.affinity(ContentType.MOODBOARD) == ShotSize.WIDE
    assert taxonomy.affinity(ContentType.NOTIFICATION) == ShotSize.EXTREME_CLOSE_UP
    assert taxonomy.affinity(None) is None


def test_guardrail_constants(catalog):
    constants = catalog.guardrails.camera_constants
    assert constants.pan_max_px == 80
    assert constants.scale_factor == 0.08
    assert catalog.guardrails.personality_boundaries["editorial"].max_translate_xy == 30


def test_unknown_personality_reference(catalog_copy):
    def edit(packs):
        packs[0]["personality"] = "vaporwave"

    _edit_packs(catalog_copy, edit)
    with pytest.raises(CatalogError, match='unknown personality "vaporwave"'):
        load_catalog(catalog_copy)


def test_missing_default_transition(catalog_copy):
    def edit(packs):
        packs[0]["transitions"] = [r for r in packs[0]["transitions"] if "default" not in r]

    _edit_packs(catalog_copy, edit)
    with pytest.raises(CatalogError, match="default"):
        load_catalog(catalog_copy)


def test_missing_energy_level(catalog_copy):
    def edit(packs):
        del packs[1]["hold_durations"]["high"]

    _edit_packs(catalog_copy, edit)
    with pytest.raises(CatalogError, match="missing energy levels: high"):
        load_catalog(catalog_copy)


def test_pattern_every_n_must_be_positive(catalog_copy):
    def edit(packs):
        packs[1]["transitions"][0]["pattern"]["every_n"] = 0

    _edit_packs(catalog_copy, edit)
    with pytest.raises(CatalogError, match="every_n"):
        load_catalog(catalog_copy)


def test_rule_with_two_keys_is_rejected(catalog_copy):
    def edit(packs):
        packs[0]["transitions"][-1] = {"default": {"type": "hard_cut"}, "pattern": {"every_n": 2, "cycle": ["whip_up"]}}

    _edit_packs(catalog_copy, edit)
    with pytest.raises(CatalogError, match="exactly one key"):
        load_catalog(catalog_copy)


def test_missing_file(catalog_copy):
    (catalog_copy / "camera-guardrails.json").unlink()
    with pytest.raises(CatalogError, match="not found"):
        load_catalog(catalog_copy)


def test_invalid_json(catalog_copy):
    (catalog_copy / "personalities.json").write_text("{", encoding="utf-8")
    with pytest.raises(CatalogError, match="Invalid JSON in personalities.json"):
        load_catalog(catalog_copy)


def test_missing_directory(tmp_path):
    with pytest.raises(CatalogError, match="Catalog directory not found"):
        load_catalog(tmp_path / "nowhere")
