"""Shared fixtures for the sizzle test suite."""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import pytest

from sizzle.catalog import Catalog, load_catalog
from sizzle.config import PACKAGED_CATALOG_DIR
from sizzle.models import Scene, SceneMetadata, ShotGrammar


@pytest.fixture(scope="session")
def catalog() -> Catalog:
    return load_catalog(PACKAGED_CATALOG_DIR)


@pytest.fixture
def make_scene():
    """Build an analyzed scene from just the metadata a test cares about."""

    def _make(
        scene_id: str,
        content_type: Optional[str] = None,
        visual_weight: Optional[str] = None,
        motion_energy: Optional[str] = None,
        intent_tags=(),
        shot_grammar: Optional[Dict[str, str]] = None,
        style_override: Optional[str] = None,
        confidence: Optional[Dict[str, float]] = None,
        duration_s: float = 3.0,
    ) -> Scene:
        metadata = SceneMetadata(
            content_type=content_type,
            visual_weight=visual_weight,
            motion_energy=motion_energy,
            intent_tags=list(intent_tags),
            shot_grammar=ShotGrammar(**shot_grammar) if shot_grammar else None,
            style_override=style_override,
            confidence=confidence or {},
        )
        return Scene(
            scene_id=scene_id,
            duration_s=duration_s,
            layers=[{"id": "bg", "type": "html", "depth_class": "background"}],
            metadata=metadata,
        )

    return _make


def brand_scene() -> Dict[str, Any]:
    return {
        "scene_id": "sc_brand_logo",
        "duration_s": 3,
        "layout": {"template": "hero-center"},
        "layers": [
            {
                "id": "bg",
                "type": "html",
                "depth_class": "background",
                "content": '<div style="background: #0a0a0a"></div>',
            },
            {
                "id": "logo",
                "type": "html",
                "depth_class": "foreground",
                "content": '<svg style="color: #111111"></svg>',
                "entrance": {"primitive": "fade-up", "delay_ms": 0},
            },
        ],
    }


def headline_scene() -> Dict[str, Any]:
    return {
        "scene_id": "sc_headline",
        "duration_s": 3,
        "layers": [
            {
                "id": "bg",
                "type": "html",
                "depth_class": "background",
                "content": '<div style="background-color: #0a0a0a"></div>',
            },
            {
                "id": "title",
                "type": "text",
                "depth_class": "foreground",
                "content": "Made for makers",
                "style": {"color": "#ffffff"},
                "animation": "word-reveal",
            },
        ],
    }


def dashboard_scene() -> Dict[str, Any]:
    return {
        "scene_id": "sc_dashboard_ui",
        "duration_s": 4,
        "layers": [
            {
                "id": "bg",
                "type": "html",
                "depth_class": "background",
                "content": '<div style="background: #f5f5f5"></div>',
            },
            {"id": "shot", "type": "image", "depth_class": "foreground"},
        ],
    }


def portrait_scene() -> Dict[str, Any]:
    return {
        "scene_id": "sc_portrait_founder",
        "duration_s": 5,
        "layers": [
            {"id": "footage", "type": "video", "depth_class": "background"},
            {
                "id": "caption",
                "type": "html",
                "depth_class": "foreground",
                "content": '<p style="color: #ffffff">Built by hand</p>',
            },
            {
                "id": "name",
                "type": "text",
                "depth_class": "foreground",
                "content": "Ada, founder",
                "style": {"color": "#ffffff"},
            },
        ],
    }


def moodboard_scene() -> Dict[str, Any]:
    return {
        "scene_id": "sc_moodboard",
        "duration_s": 3,
        "layout": {"template": "masonry-grid"},
        "layers": [
            {"id": "a", "type": "image", "slot": "cell-1"},
            {"id": "b", "type": "image", "slot": "cell-2"},
        ],
    }


SAMPLE_SCENES = {
    "01-brand.json": brand_scene,
    "02-headline.json": headline_scene,
    "03-dashboard.json": dashboard_scene,
    "04-portrait.json": portrait_scene,
    "05-moodboard.json": moodboard_scene,
}


@pytest.fixture
def scenes_dir(tmp_path: Path) -> Path:
    """A folder holding five sample scene files."""
    directory = tmp_path / "scenes"
    directory.mkdir()
    for filename, factory in SAMPLE_SCENES.items():
        (directory / filename).write_text(json.dumps(factory()), encoding="utf-8")
    return directory


@pytest.fixture
def sample_scenes() -> Dict[str, Dict[str, Any]]:
    return {factory()["scene_id"]: factory() for factory in SAMPLE_SCENES.values()}
