"""Configuration management."""

import os
from pathlib import Path
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

PACKAGED_CATALOG_DIR = Path(__file__).parent / "catalog" / "data"


class Config(BaseModel):
    """Application configuration."""

    # Paths
    catalog_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("SIZZLE_CATALOG_DIR", str(PACKAGED_CATALOG_DIR))),
        description="Directory holding the catalog JSON files"
    )
    output_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("SIZZLE_OUTPUT_DIR", "renders")),
        description="Default directory for manifests and renderer props"
    )

    # Manifest defaults
    fps: int = Field(
        default_factory=lambda: int(os.getenv("SIZZLE_FPS", "60")),
        description="Frames per second written into planned manifests"
    )
    width: int = Field(
        default_factory=lambda: int(os.getenv("SIZZLE_WIDTH", "1920")),
        description="Output width in pixels"
    )
    height: int = Field(
        default_factory=lambda: int(os.getenv("SIZZLE_HEIGHT", "1080")),
        description="Output height in pixels"
    )

    class Config:
        """Pydantic config."""
        frozen = False

    def validate_required(self) -> None:
        """Validate that the catalog directory is usable.

        Raises:
            ValueError: If the catalog directory does not exist.
        """
        if not self.catalog_dir.is_dir():
            raise ValueError(
                f"Catalog directory not found: {self.catalog_dir}. "
                "Set SIZZLE_CATALOG_DIR or unset it to use the packaged catalog."
            )


# Global config instance
config = Config()
