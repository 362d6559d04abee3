#!/usr/bin/env python3
"""Test Lab step entrypoint -- run without pip install.

Usage:
    python run.py run
    python run.py --help
"""

import sys
from pathlib import Path

# Add src/ to import path so the firebase_testlab package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from firebase_testlab.cli import app

if __name__ == "__main__":
    app()
