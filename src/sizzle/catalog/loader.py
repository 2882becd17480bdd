"""Catalog loading and cross-reference checks."""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ValidationError

from ..config import config
from ..errors import CatalogError, InvalidArgumentError
from ..models.catalog import CameraGuardrails, Personality, ShotGrammarTaxonomy, StylePack

logger = logging.getLogger(__name__)

STYLE_PACKS_FILE = "style-packs.json"
PERSONALITIES_FILE = "personalities.json"
SHOT_GRAMMAR_FILE = "shot-grammar.json"
GUARDRAILS_FILE = "camera-guardrails.json"


class Catalog(BaseModel):
    """Read-only bundle of every catalog the pipeline consumes."""

    style_packs: Dict[str, StylePack] = Field(..., description="Style packs keyed by name")
    personalities: Dict[str, Personality] = Field(..., description="Personalities keyed by slug")
    shot_grammar: ShotGrammarTaxonomy = Field(..., description="Shot grammar taxonomy")
    guardrails: CameraGuardrails = Field(..., description="Camera guardrail thresholds")

    class Config:
        """Pydantic config."""
        frozen = True

    def style_pack(self, name: str) -> StylePack:
        """Look up a style pack by name.

        Raises:
            InvalidArgumentError: If no pack has that name.
        """
        pack = self.style_packs.get(name)
        if pack is None:
            raise InvalidArgumentError(
                f"Unknown style pack: {name}. Valid: {', '.join(self.style_names())}"
            )
        return pack

    def find_style_pack(self, name: Optional[str]) -> Optional[StylePack]:
        """Look up a style pack, returning None when it does not exist."""
        if not name:
            return None
        return self.style_packs.get(name)

    def personality(self, slug: str) -> Optional[Personality]:
        return self.personalities.get(slug)

    def style_names(self) -> List[str]:
        return list(self.style_packs)


def _read_json(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise CatalogError(f"Catalog file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise CatalogError(f"Invalid JSON in {path.name}: {e}") from e


def _entries(data: Any, key: str, filename: str) -> List[Any]:
    """Accept either ``{"<key>": [...]}`` or a bare list."""
    if isinstance(data, dict):
        data = data.get(key)
    if not isinstance(data, list):
        raise CatalogError(f'{filename} must contain a "{key}" array')
    return data


def _validation_message(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


def load_personalities(path: Path) -> Dict[str, Personality]:
    """Load personalities keyed by slug."""
    personalities: Dict[str, Personality] = {}
    for i, raw in enumerate(_entries(_read_json(path), "personalities", path.name)):
        try:
            personality = Personality.model_validate(raw)
        except ValidationError as e:
            raise CatalogError(f"{path.name}[{i}]: {_validation_message(e)}") from e
        if personality.slug in personalities:
            raise CatalogError(f'{path.name}: duplicate personality slug "{personality.slug}"')
        personalities[personality.slug] = personality
    return personalities


def load_style_packs(path: Path, personality_slugs: List[str]) -> Dict[str, StylePack]:
    """Load style packs keyed by name, checking each personality reference.

    Args:
        path: Path to the style packs JSON file.
        personality_slugs: Slugs every pack's ``personality`` must resolve to.

    Returns:
        Style packs keyed by name, in file order.

    Raises:
        CatalogError: If a pack is malformed or references an unknown personality.
    """
    packs: Dict[str, StylePack] = {}
    for i, raw in enumerate(_entries(_read_json(path), "style_packs", path.name)):
        label = raw.get("name", i) if isinstance(raw, dict) else i
        try:
            pack = StylePack.model_validate(raw)
        except ValidationError as e:
            raise CatalogError(f'{path.name} pack "{label}": {_validation_message(e)}') from e

        if pack.personality not in personality_slugs:
            raise CatalogError(
                f'Style pack "{pack.name}" references unknown personality "{pack.personality}". '
                f"Valid: {', '.join(personality_slugs)}"
            )
        if pack.name in packs:
            raise CatalogError(f'{path.name}: duplicate style pack "{pack.name}"')
        packs[pack.name] = pack
    return packs


def load_shot_grammar(path: Path) -> ShotGrammarTaxonomy:
    try:
        return ShotGrammarTaxonomy.model_validate(_read_json(path))
    except ValidationError as e:
        raise CatalogError(f"{path.name}: {_validation_message(e)}") from e


def load_guardrails(path: Path) -> CameraGuardrails:
    try:
        return CameraGuardrails.model_validate(_read_json(path))
    except ValidationError as e:
        raise CatalogError(f"{path.name}: {_validation_message(e)}") from e


def load_catalog(path: Optional[Path] = None) -> Catalog:
    """Load and cross-check every catalog file in a directory.

    Args:
        path: Catalog directory. Defaults to the configured catalog directory.

    Returns:
        The loaded catalog.

    Raises:
        CatalogError: If any file is missing, malformed, or inconsistent.
    """
    directory = Path(path) if path is not None else config.catalog_dir
    if not directory.is_dir():
        raise CatalogError(f"Catalog directory not found: {directory}")

    personalities = load_personalities(directory / PERSONALITIES_FILE)
    style_packs = load_style_packs(directory / STYLE_PACKS_FILE, list(personalities))
    shot_grammar = load_shot_grammar(directory / SHOT_GRAMMAR_FILE)
    guardrails = load_guardrails(directory / GUARDRAILS_FILE)

    for slug in shot_grammar.personality_restrictions:
        if slug not in personalities:
            logger.warning(f'Shot grammar restrictions name unknown personality "{slug}"')
    for slug in guardrails.personality_boundaries:
        if slug not in personalities:
            logger.warning(f'Guardrail boundaries name unknown personality "{slug}"')

    logger.info(
        f"Loaded catalog from {directory}: {len(style_packs)} style packs, "
        f"{len(personalities)} personalities"
    )
    return Catalog(
        style_packs=style_packs,
        personalities=personalities,
        shot_grammar=shot_grammar,
        guardrails=guardrails,
    )


@lru_cache(maxsize=1)
def default_catalog() -> Catalog:
    """Process-wide catalog loaded from the configured directory on first use."""
    return load_catalog()
