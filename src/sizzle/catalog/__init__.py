"""Catalog Store: style packs, personalities, shot grammar and guardrails."""

from .loader import Catalog, default_catalog, load_catalog

__all__ = ["Catalog", "default_catalog", "load_catalog"]
