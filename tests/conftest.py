"""
Global fixtures for the test suite.

This `conftest.py` file provides fixtures that are available to all tests
in the `tests/` directory and its subdirectories.

Fixtures:
- `engine`: An in-memory SQLite engine with every table created. A
  `StaticPool` keeps the single in-memory database alive across sessions.
- `session`: A `Session` bound to `engine`.
- `fixture_session`: A session with the author_addresses, authors and posts
  fixture sets loaded (3 authors, author 1 has two posts).
- `clean_record_callbacks`: Resets the callbacks registered on the table
  models once the test finishes, so registrations never leak between tests.

Tests against MySQL/MariaDB and PostgreSQL live in
`tests/storage/adapters/` and only run when `MYSQL_DATABASE_URL` or
`POSTGRES_DATABASE_URL` points at a reachable server.

Run all tests with:
    pytest -v
"""

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from orm_lifecycle.callbacks import reset_callbacks
from orm_lifecycle.storage.fixtures import load_fixtures
from orm_lifecycle.storage.models import Author, AuthorAddress, Post


@pytest.fixture
def engine():
    """Create an in-memory SQLite database with all tables."""
    engine = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def fixture_session(session):
    """Session with every fixture set loaded."""
    load_fixtures(session)
    return session


@pytest.fixture
def clean_record_callbacks():
    yield
    for model in (AuthorAddress, Author, Post):
        for name in ("save", "create", "update", "destroy"):
            reset_callbacks(model, name)
