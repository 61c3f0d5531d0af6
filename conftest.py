"""Root conftest.py for pytest configuration.

This file configures pytest for the entire project, ensuring:
- Proper Python path setup for imports
- Local-only Logfire configuration (no token needed)
- Shared fixtures across all tests
"""

import sys
from pathlib import Path

import logfire
import pytest


# ============================================================================
# Python Path Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom settings and ensure project root is in sys.path."""

    # Add project root to sys.path so 'pipeline' and 'tests' are importable
    project_root = Path(__file__).parent.resolve()
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))

    # Register custom markers
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests that exercise the API surface end to end"
    )
    config.addinivalue_line(
        "markers",
        "unit: marks tests as unit tests (fast, no external dependencies)"
    )

    # Spans and logs stay in-process during tests
    logfire.configure(
        service_name="email_handoff_pipeline_tests",
        environment="test",
        send_to_logfire=False,
        console=False,
    )


# ============================================================================
# Shared Fixtures
# ============================================================================

@pytest.fixture(scope="session")
def project_root():
    """Return the absolute path to the project root directory."""
    return Path(__file__).parent.resolve()


@pytest.fixture
def validator():
    from pipeline.validation.handoff_validator import HandoffValidator

    return HandoffValidator()


@pytest.fixture
def valid_chain():
    """Fresh content/design/quality/delivery dicts sharing one trace_id."""
    from tests.factories import valid_chain as build_chain

    return build_chain()


@pytest.fixture
def artifact_store():
    from services.artifact_store import InMemoryArtifactStore

    return InMemoryArtifactStore()


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Fixture to mock environment variables for testing.

    Usage:
        def test_something(mock_env_vars):
            mock_env_vars({"MAX_CORRECTION_ATTEMPTS": "3"})
    """
    def _set_env_vars(env_dict: dict):
        for key, value in env_dict.items():
            monkeypatch.setenv(key, value)

    return _set_env_vars
