"""Shared pytest fixtures for WifiMon tests."""

import pytest
from PySide6.QtCore import QCoreApplication


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """Create QCoreApplication instance for tests that use timers and signals."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app
