"""Editorial decision pipeline for sizzle reel sequences."""

__version__ = "0.1.0"
