"""Sequence manifest data model."""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
import yaml

from .scene import CameraMove, ShotGrammar, MIN_DURATION_S, MAX_DURATION_S

TRANSITION_TYPES = ("hard_cut", "crossfade", "whip_left", "whip_right", "whip_up", "whip_down")
VALID_FPS = (24, 30, 60)
MAX_TRANSITION_MS = 2000

SEQUENCE_ID_PATTERN = re.compile(r"^seq_[a-z0-9_]+$")


class TransitionIn(BaseModel):
    """Transition bridging the previous scene into this one."""

    type: str = Field(..., description="Transition type")
    duration_ms: Optional[int] = Field(None, description="Transition duration in milliseconds")

    class Config:
        """Pydantic config."""
        frozen = True


class ManifestEntry(BaseModel):
    """One scene slot of a sequence manifest."""

    scene: str = Field(..., description="Referenced scene_id")
    duration_s: float = Field(..., description="Hold duration in seconds")
    transition_in: Optional[TransitionIn] = Field(None, description="Incoming transition")
    camera_override: Optional[CameraMove] = Field(None, description="Camera move replacing the authored one")
    shot_grammar: Optional[ShotGrammar] = Field(None, description="Shot grammar for the renderer")

    class Config:
        """Pydantic config."""
        frozen = True


class Resolution(BaseModel):
    """Output resolution."""

    w: int = Field(1920, description="Width in pixels")
    h: int = Field(1080, description="Height in pixels")


class SequenceManifest(BaseModel):
    """Ordered, timed and transitioned instruction set for rendering a sequence."""

    sequence_id: str = Field(..., description="Sequence identifier")
    resolution: Resolution = Field(default_factory=Resolution, description="Output resolution")
    fps: int = Field(default=60, description="Frames per second")
    style: Optional[str] = Field(None, description="Style pack the sequence was planned with")
    scenes: List[ManifestEntry] = Field(default_factory=list, description="Ordered scene entries")

    class Config:
        """Pydantic config."""
        frozen = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SequenceManifest":
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, path: Path) -> "SequenceManifest":
        """Load manifest from JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Path) -> "SequenceManifest":
        """Load manifest from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls(**data)

    @classmethod
    def load(cls, path: Path) -> "SequenceManifest":
        """Load manifest from a JSON or YAML file, chosen by suffix."""
        if path.suffix.lower() in (".yaml", ".yml"):
            return cls.from_yaml(path)
        return cls.from_json(path)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the manifest JSON shape, omitting unset fields."""
        return self.model_dump(mode="json", exclude_none=True)

    def to_json(self, path: Path) -> None:
        """Save manifest to JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
            f.write("\n")

    def to_yaml(self, path: Path) -> None:
        """Save manifest to YAML file."""
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def save(self, path: Path) -> None:
        """Save manifest as JSON or YAML, chosen by suffix."""
        if path.suffix.lower() in (".yaml", ".yml"):
            self.to_yaml(path)
        else:
            self.to_json(path)

    def scene_ids(self) -> List[str]:
        return [entry.scene for entry in self.scenes]

    def total_duration_s(self) -> float:
        """Total running time with transition overlaps removed."""
        total = sum(entry.duration_s for entry in self.scenes)
        overlap = sum(
            entry.transition_in.duration_ms / 1000
            for entry in self.scenes
            if entry.transition_in
            and entry.transition_in.type != "hard_cut"
            and entry.transition_in.duration_ms
        )
        return total - overlap

    def validation_errors(self) -> List[str]:
        """Check the manifest against the sequence manifest format.

        Returns:
            A list of human-readable problems, empty when the manifest is valid.
        """
        errors: List[str] = []

        if not self.sequence_id:
            errors.append("sequence_id is required")
        elif not SEQUENCE_ID_PATTERN.match(self.sequence_id):
            errors.append(
                f'sequence_id "{self.sequence_id}" must match {SEQUENCE_ID_PATTERN.pattern}'
            )

        if self.fps not in VALID_FPS:
            errors.append(f"fps must be 24, 30, or 60 (got {self.fps})")

        if not self.scenes:
            errors.append("scenes array is required and must have at least 1 entry")
            return errors

        if self.scenes[0].transition_in is not None:
            errors.append("scenes[0].transition_in must be absent (nothing precedes the first scene)")

        for i, entry in enumerate(self.scenes):
            prefix = f"scenes[{i}]"

            if not entry.scene:
                errors.append(f"{prefix}.scene is required")

            if not MIN_DURATION_S <= entry.duration_s <= MAX_DURATION_S:
                errors.append(
                    f"{prefix}.duration_s must be between {MIN_DURATION_S} and "
                    f"{MAX_DURATION_S} (got {entry.duration_s})"
                )

            transition = entry.transition_in
            if transition:
                if transition.type not in TRANSITION_TYPES:
                    errors.append(f'{prefix}.transition_in.type "{transition.type}" is not valid')
                if transition.duration_ms is not None and not 0 <= transition.duration_ms <= MAX_TRANSITION_MS:
                    errors.append(
                        f"{prefix}.transition_in.duration_ms must be between 0 and {MAX_TRANSITION_MS}"
                    )

            if entry.camera_override:
                errors.extend(entry.camera_override.validation_errors(f"{prefix}.camera_override"))

        return errors


class RenderProps(BaseModel):
    """Props handed to the external renderer."""

    manifest: SequenceManifest = Field(..., description="Planned sequence manifest")
    scene_defs: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        alias="sceneDefs",
        description="Full scene definitions keyed by scene_id"
    )

    class Config:
        """Pydantic config."""
        populate_by_name = True

    def to_dict(self) -> Dict[str, Any]:
        return {"manifest": self.manifest.to_dict(), "sceneDefs": self.scene_defs}

    def to_json(self, path: Path) -> None:
        """Save props to JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
            f.write("\n")
