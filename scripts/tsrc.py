#!/usr/bin/env python3
"""
Tsrc Runner Script.

Compiles a TypeScript project, optionally watching it for changes.
Requires Python 3.11+.

Usage:
    python scripts/tsrc.py --watch --ignore node_modules
"""

import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from orchestrator.cli import main


if __name__ == "__main__":
    sys.exit(main())
