"""
Fixtures for API tests: a fresh app per test with the database session
replaced, so no PostgreSQL is needed.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from app.core.db.base import get_session


async def _fake_session():
    yield AsyncMock()


@pytest.fixture
def app():
    from main import create_app

    application = create_app()
    application.dependency_overrides[get_session] = _fake_session
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
