"""
Pytest configuration and shared fixtures for all rsbundle tests.

Parser construction loads the tree-sitter grammar once per session; the
parser itself holds no per-file state, so sharing it is safe.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from rsbundle.compiler.driver import BundleDriver
from rsbundle.frontend.parser import Parser


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def session_parser():
    """Session-scoped parser shared across ALL tests."""
    return Parser()


@pytest.fixture(scope="session")
def session_driver(session_parser):
    """Session-scoped driver; bundling keeps no state between runs."""
    return BundleDriver(parser=session_parser)


@pytest.fixture(scope="class")
def parser(session_parser):
    """Class-scoped parser - returns session parser (stateless, safe to share)."""
    return session_parser


@pytest.fixture(scope="class")
def driver(session_driver):
    """Class-scoped driver - returns session driver (stateless, safe to share)."""
    return session_driver


# =============================================================================
# Environment
# =============================================================================

@pytest.fixture(autouse=True)
def plain_diagnostics(monkeypatch):
    """Diagnostics render without ANSI colors unless a test opts back in."""
    monkeypatch.setenv("NO_COLOR", "1")


def pytest_configure(config):
    """Register custom markers for test organization."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
