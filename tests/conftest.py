"""Pytest configuration and shared fixtures."""

from collections.abc import Iterator

import pytest

# The timewarp testing plugin is registered via a ``pytest11`` entry
# point (pyproject.toml) for external consumers.  In our own test
# suite we disable it (``-p no:timewarp``) and load explicitly here
# instead, because conftest-based loading is processed during
# ``pytest_load_initial_conftests``, after ``pytest-cov`` starts
# coverage tracing, so the timewarp import chain is measured.
pytest_plugins = ["timewarp.testing._plugin"]


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (end-to-end scenarios)"
    )


@pytest.fixture(autouse=True)
def _reset_default_traveler() -> Iterator[None]:
    """Clear overrides a test leaves on the process-default traveler."""
    yield
    from timewarp import get_traveler

    get_traveler().reset()


@pytest.fixture
def _restore_root_logger() -> Iterator[None]:
    """Save and restore root logger handlers and level.

    Ensures tests that call ``configure_logging()`` don't leak
    state across subsequent tests.
    """
    import logging

    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    for h in root.handlers:
        if h not in original_handlers:
            h.close()
    root.handlers = original_handlers
    root.setLevel(original_level)
