#!/usr/bin/env python3
"""
AnvilReader - Inspect Anvil region files without installing the package.

Usage:
    python3 main.py info world/region/r.0.0.mca        # Region summary
    python3 main.py chunk world/region/r.0.0.mca 3 7   # One chunk's sections
    python3 main.py block world/region/r.0.0.mca 4 64 9 --chunk-x 3 --chunk-z 7
    python3 main.py scan world                         # Every region of a world
    python3 main.py --help                             # Show help
"""

import sys
from pathlib import Path

# Add src to path so we can import without installing
sys.path.insert(0, str(Path(__file__).parent / "src"))

from anvilreader.cli import app  # noqa: E402


if __name__ == "__main__":
    app()
