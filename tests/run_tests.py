#!/usr/bin/env python3
"""
Test runner for the Billow backend.

Usage:
    python tests/run_tests.py              # Run all tests
    python tests/run_tests.py -v           # Verbose output
    python tests/run_tests.py -k invoice   # Run tests matching 'invoice'
"""

import sys
import os
import unittest

# Ensure correct paths
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT_DIR)
sys.path.insert(0, os.path.join(ROOT_DIR, 'backend'))

# Configure the test database BEFORE any app code
import tests.support  # noqa: E402, F401


def _patterns() -> list[str]:
    if '-k' in sys.argv:
        index = sys.argv.index('-k')
        if index + 1 < len(sys.argv):
            return [f"*{sys.argv[index + 1]}*"]
    return []


def run_all_tests():
    """Discover and run all tests."""
    loader = unittest.TestLoader()
    loader.testNamePatterns = _patterns() or None
    suite = loader.discover(
        start_dir=os.path.join(ROOT_DIR, 'tests'),
        pattern='test_*.py',
        top_level_dir=ROOT_DIR,
    )

    verbosity = 2 if '-v' in sys.argv else 1
    runner = unittest.TextTestRunner(verbosity=verbosity)
    result = runner.run(suite)
    return result


if __name__ == '__main__':
    result = run_all_tests()
    sys.exit(0 if result.wasSuccessful() else 1)
