"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration and fixtures.
For standard test utilities, see tests/__init__.py
"""

import pytest

from database.repository import PlacementRepository
from tests import make_session_factory


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "db: marks tests as requiring database (deselect with '-m \"not db\"')"
    )


@pytest.fixture
def session_factory():
    """Session factory bound to a fresh in-memory store."""
    engine, factory = make_session_factory()
    yield factory
    engine.dispose()


@pytest.fixture
def repo(session_factory):
    """PlacementRepository on a session that is rolled back after the test."""
    session = session_factory()
    yield PlacementRepository(session)
    session.rollback()
    session.close()
