"""
Fixture sets for the authors schema.

Fixtures are written straight to the tables (no model callbacks run) after
clearing them, in dependency order so foreign keys always resolve.

Usage:

    >>> from orm_lifecycle.storage.fixtures import load_fixtures
    >>> load_fixtures(session, "authors", "author_addresses")
    >>> load_fixtures(session)  # every fixture set
"""

from sqlalchemy import delete, insert
from sqlmodel import Session

from orm_lifecycle.errors import FixtureNotFoundError
from orm_lifecycle.storage.models import Author, AuthorAddress, Post

FIXTURES = {
    "author_addresses": (
        AuthorAddress,
        [
            {"id": 1},
            {"id": 2},
            {"id": 3},
        ],
    ),
    "authors": (
        Author,
        [
            {"id": 1, "name": "David", "author_address_id": 1},
            {"id": 2, "name": "Mary", "author_address_id": 2},
            {"id": 3, "name": "Bob", "author_address_id": 3},
        ],
    ),
    "posts": (
        Post,
        [
            {"id": 1, "author_id": 1, "title": "Welcome to the weblog", "body": "Such a lovely day"},
            {"id": 2, "author_id": 1, "title": "So I was thinking", "body": "Like I hopefully always am"},
            {"id": 3, "author_id": 2, "title": "I don't have any comments", "body": "I just don't want to"},
            {"id": 4, "author_id": 3, "title": "sti comments", "body": "hello"},
        ],
    ),
}

# Parents before children.
FIXTURE_ORDER = ("author_addresses", "authors", "posts")


def load_fixtures(session: Session, *names: str) -> None:
    """Replace the contents of the named fixture tables (all when no names are given)."""
    for name in names:
        if name not in FIXTURES:
            raise FixtureNotFoundError(f"No fixture set named {name!r}; available: {', '.join(FIXTURE_ORDER)}")
    selected = [name for name in FIXTURE_ORDER if not names or name in names]

    connection = session.connection()
    for name in reversed(selected):
        model, _ = FIXTURES[name]
        connection.execute(delete(model.__table__))
    for name in selected:
        model, rows = FIXTURES[name]
        connection.execute(insert(model.__table__), rows)
    session.flush()
