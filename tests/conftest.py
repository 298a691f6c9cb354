"""
tests/conftest.py -- Shared test fixtures for tokengate tests.

This module provides:
  - clock, lookup: FakeClock and DictLookup (see helpers.py) per test
  - api_client: TestClient over create_app() with alice@example.com seeded

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from helpers import ALICE, DictLookup, FakeClock, make_settings, make_store


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def lookup() -> DictLookup:
    return DictLookup(ALICE)


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, str], None, None]:
    """Yield (client, alice_subject_id) for API integration tests.

    The store is seeded with alice@example.com / hunter2 before the client
    starts. Tests obtain tokens through POST /login like a real client.
    """
    store = make_store("api")
    alice = store.find_user_by_identifier("alice@example.com")
    if alice is None:
        alice = store.create_user("alice@example.com", "hunter2", display_name="Alice")

    app = create_app(make_settings(), user_store=store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, alice.subject_id

    store.close()
