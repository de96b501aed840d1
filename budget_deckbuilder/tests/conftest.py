"""Shared pytest fixtures."""

import os

import pytest

from budget_deckbuilder.tagging.synergy_schema import clear_cache


@pytest.fixture(autouse=True)
def ensure_test_environment():
    """Snapshot os.environ and start every test with cold YAML caches."""
    original_env = os.environ.copy()
    clear_cache()

    yield

    os.environ.clear()
    os.environ.update(original_env)
    clear_cache()
