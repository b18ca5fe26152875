"""pytest configuration and fixtures for runtime tests."""

from typing import List

import pytest

from lazyreactor.core.config import ENV_VARS


@pytest.fixture
def trace() -> List:
    """Ordered record of events shared by driver and routine."""
    return []


@pytest.fixture
def clean_env(monkeypatch):
    """Remove LAZYREACTOR_* settings from the environment.

    Yields:
        The monkeypatch fixture, for setting variables in the test.
    """
    for var in ENV_VARS.values():
        monkeypatch.delenv(var, raising=False)
    yield monkeypatch
