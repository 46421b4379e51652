"""Pytest configuration for the Metalox test suite."""

import sys
from pathlib import Path

# Add src directory to path for metalox imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
