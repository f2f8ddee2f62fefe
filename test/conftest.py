"""
Pytest configuration and fixtures for clustermap tests.
"""

import logging
import os
import sys
from pathlib import Path

import pytest

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# The clustermap logger reads its level once, at import.
os.environ.setdefault("CLUSTERMAP_LOG_LEVEL", "WARNING")

import clustermap.logger  # noqa: E402,F401

# Configure logging for tests
logging.basicConfig(
    level=logging.DEBUG, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Let caplog see clustermap records.
logging.getLogger("clustermap").propagate = True


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated tests")
    config.addinivalue_line(
        "markers", "integration: Integration tests - test component interactions"
    )
    config.addinivalue_line("markers", "ray: Tests that require a live Ray runtime")
    config.addinivalue_line("markers", "slow: Slow tests - may take several minutes")


def pytest_runtest_setup(item):
    """Skip Ray tests unless --ray is given."""
    if "ray" in item.keywords and not item.config.getoption("--ray"):
        pytest.skip("Ray tests require --ray flag")


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--ray", action="store_true", default=False, help="Run tests needing Ray"
    )


def pytest_report_header(config):
    """Add custom information to pytest header."""
    return "\n".join(
        [
            "clustermap Test Suite",
            f"Python: {sys.version.split()[0]}",
            f"Platform: {sys.platform}",
        ]
    )
