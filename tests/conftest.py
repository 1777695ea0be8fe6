"""
Pytest configuration for the sandwich scanner tests.
"""

import sys
from pathlib import Path

# Make the in-memory fakes importable as `fakes`
TESTS_DIR = Path(__file__).parent
sys.path.insert(0, str(TESTS_DIR))
