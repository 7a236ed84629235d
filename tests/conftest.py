"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.interrogation import InMemoryStorage, SessionManager  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FakeClock:
    """Deterministic clock; every call advances by ``step``."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(minutes=1)):
        self.now = start or datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def storage():
    """Empty in-memory key-value store."""
    return InMemoryStorage()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager(storage, clock):
    """Fresh session manager per test."""
    return SessionManager(storage, clock=clock)


@pytest.fixture
def detailed_answer():
    """A long, causal answer that passes every automatic length check."""
    return (
        "Photosynthese ist wichtig, weil sie die Grundlage für das Leben auf der Erde bildet. "
        "Sie produziert Sauerstoff, den wir zum Atmen brauchen, und wandelt Lichtenergie in "
        "chemische Energie um, die in Pflanzen gespeichert wird. Zum Beispiel nutzen Bäume "
        "die Photosynthese, um zu wachsen und Früchte zu produzieren."
    )
