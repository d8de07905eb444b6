"""Pytest configuration and shared fixtures."""

import pytest

from calendar_engine.services.planner import source_breaker


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (deselect with '-m \"not integration\"')"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture(autouse=True)
def reset_source_breaker():
    """The breaker is process-wide; start and leave every test with all sources enabled."""
    source_breaker.reset()
    source_breaker.failure_threshold = 1
    yield
    source_breaker.reset()
    source_breaker.failure_threshold = 1
