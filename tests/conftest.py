"""
Shared pytest fixtures for the test suite.
Environment defaults are set before anything imports ``app.core.config``.
"""

import os
import tempfile
from pathlib import Path
from types import SimpleNamespace

import pytest

# Minimal env so that pydantic-settings can validate on import
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_DB_PORT", "5432")
os.environ.setdefault("POSTGRES_DB_NAME", "flashcards_test")
os.environ.setdefault("POSTGRES_DB_USER", "test")
os.environ.setdefault("POSTGRES_DB_PASSWORD", "test")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")
os.environ.setdefault(
    "JWT_PRIVATE_KEY_PATH",
    str(Path(tempfile.gettempdir()) / "flashcards-test-jwt.pem"),
)


SOURCE_TEXT = ("Photosynthesis converts light energy into chemical energy. " * 40)[:1500]


@pytest.fixture
def source_text():
    return SOURCE_TEXT


@pytest.fixture
def fake_user():
    """A user object suitable for dependency overrides in API tests."""
    return SimpleNamespace(id=1, email="alice@example.com", is_active=True)
