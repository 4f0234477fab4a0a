"""Shared fixtures: a fresh SQLite database per test."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from sqlmodel import Session

import voice_chat.db.repository as repo_module
from voice_chat.db.repository import get_engine, init_db


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Reset the global engine
    original_engine = repo_module._engine
    repo_module._engine = None

    with TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        init_db(db_path)
        engine = get_engine(db_path)
        yield engine

        engine.dispose()
        # Reset engine after test
        repo_module._engine = original_engine


@pytest.fixture
def session(temp_db):
    """Create a database session for testing."""
    with Session(temp_db) as session:
        yield session
