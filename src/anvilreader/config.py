"""Configuration for reading Anvil worlds."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .anvil import BlockRegistry

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ReaderConfig:
    """Configuration for region decoding."""
    # Decode the 1024 cells of a region on a thread pool
    parallel: bool = False
    parallel_workers: Optional[int] = None

    # Share equal blocks across every region read with one config
    share_blocks: bool = True

    # Logging
    log_level: str = "WARNING"

    # Region files picked up when scanning a world directory
    region_glob: str = "r.*.*.mca"

    def validate(self) -> None:
        """Validate the configuration."""
        if self.parallel_workers is not None and self.parallel_workers <= 0:
            raise ValueError(f"parallel_workers must be positive: {self.parallel_workers}")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}: {self.log_level}")
        if not self.region_glob:
            raise ValueError("region_glob must not be empty")

    @property
    def workers(self) -> Optional[int]:
        """Worker count to hand to Region.parse_bytes (None means sequential)."""
        if not self.parallel:
            return None
        return self.parallel_workers or os.cpu_count() or 1

    @property
    def level(self) -> int:
        """The logging level as a number."""
        return getattr(logging, self.log_level.upper())

    def make_registry(self) -> Optional[BlockRegistry]:
        """Get the registry to decode with, or None for one per region."""
        return BlockRegistry() if self.share_blocks else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "parallel": self.parallel,
            "parallel_workers": self.parallel_workers,
            "share_blocks": self.share_blocks,
            "log_level": self.log_level,
            "region_glob": self.region_glob,
        }

    def save(self, filepath: Path) -> None:
        """Save configuration to JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: Path) -> "ReaderConfig":
        """Load configuration from JSON file."""
        with open(filepath) as f:
            data = json.load(f)

        config = cls(
            parallel=data.get("parallel", False),
            parallel_workers=data.get("parallel_workers"),
            share_blocks=data.get("share_blocks", True),
            log_level=data.get("log_level", "WARNING"),
            region_glob=data.get("region_glob", "r.*.*.mca"),
        )
        config.validate()
        return config
