"""
Pytest configuration and shared fixtures for claims tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")

FixedClock = _common.FixedClock
make_addresses = _common.make_addresses
make_tree = _common.make_tree
make_controller = _common.make_controller
make_campaign = _common.make_campaign


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def clock():
    """Provide a manually advanced clock starting at T0."""
    return FixedClock()


@pytest.fixture
def addresses():
    """Provide five distinct checksum addresses."""
    return make_addresses(5)


@pytest.fixture
def tree(addresses):
    """Provide a padded-encoding allowlist tree over ``addresses``."""
    return make_tree(addresses)


@pytest.fixture
def controller(clock):
    """Provide an AdmissionController driven by ``clock``."""
    return make_controller(clock=clock)


@pytest.fixture
def campaign(controller, tree):
    """Provide an active campaign (starts in 1h, lasts 1h, capacity 10)."""
    return make_campaign(controller, tree)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep CLAIMS_* variables from the developer's shell out of tests."""
    import os
    for key in list(os.environ):
        if key.startswith("CLAIMS_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


# =============================================================================
# Test Helpers (available to all tests via fixtures)
# =============================================================================

@pytest.fixture
def assert_check_passed():
    """Helper to assert a specific check passed in VerificationResult."""
    def _assert(result, check_id: str):
        checks = [c for c in result.checks if c.check_id == check_id]
        assert len(checks) == 1, f"Expected check '{check_id}' not found in {[c.check_id for c in result.checks]}"
        assert checks[0].ok, f"Check '{check_id}' failed: {checks[0].message}"
    return _assert


@pytest.fixture
def assert_check_failed():
    """Helper to assert a specific check failed in VerificationResult."""
    def _assert(result, check_id: str):
        checks = [c for c in result.checks if c.check_id == check_id]
        assert len(checks) == 1, f"Expected check '{check_id}' not found in {[c.check_id for c in result.checks]}"
        assert not checks[0].ok, f"Check '{check_id}' unexpectedly passed"
    return _assert
