"""Pytest configuration for plainsql tests.

Key Principles:
- No MySQL server: Session runs against the fakes in fixtures.fake_connection
- Each test gets a fresh fake connection stack
"""

import sys
from pathlib import Path

import pytest

# tests directory (for fixtures.*)
tests_root = Path(__file__).parent
if str(tests_root) not in sys.path:
    sys.path.insert(0, str(tests_root))

from fixtures.fake_connection import (  # noqa: E402
    FakeConnection,
    FakeDBAPIConnection,
    FakeEngine,
)


@pytest.fixture
def dbapi_conn():
    return FakeDBAPIConnection(thread_id=42)


@pytest.fixture
def fake_conn(dbapi_conn):
    return FakeConnection(dbapi_conn)


@pytest.fixture
def fake_engine(fake_conn):
    return FakeEngine(fake_conn)


@pytest.fixture
def engine_factory(monkeypatch, fake_engine):
    """Route Session's engine construction to the fake engine.

    Records the arguments each Session passed to create_session_engine.
    """
    calls = []

    def _create(*args, **kwargs):
        calls.append((args, kwargs))
        return fake_engine

    monkeypatch.setattr("plainsql.session.create_session_engine", _create)
    return calls


@pytest.fixture
def session(engine_factory, mock_logger):
    """Open Session over the fake stack."""
    from plainsql.session import Session

    return Session("db.test", "app", "secret", "shop", logger=mock_logger)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (may use mocks)"
    )
