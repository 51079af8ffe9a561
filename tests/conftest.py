"""Pytest configuration and fixtures for all tests."""

import pytest

from smart_alerts.infrastructure.config import get_settings
from tests.fakes import InMemoryAlertStateRepository, RecordingDisplay, RecordingSoundPlayer


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Each test reads the environment afresh."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def repository():
    return InMemoryAlertStateRepository()


@pytest.fixture
def display():
    return RecordingDisplay()


@pytest.fixture
def sound_player():
    return RecordingSoundPlayer()
