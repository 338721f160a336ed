"""
Storage layer: SQLModel tables, relations and explain adapters.

Key Components:

- **models**: `Record` base with lifecycle callbacks and the author tables
- **relation**: chainable `Relation` with where / includes / explain
- **adapters**: per-vendor EXPLAIN clauses and plan printers
- **fixtures**: fixture sets for the author tables
- **factory**: engine and session factory driven by DATABASE_URL

Example:

    >>> from sqlmodel import Session, SQLModel, create_engine
    >>> from orm_lifecycle.storage.fixtures import load_fixtures
    >>> from orm_lifecycle.storage.models import Author
    >>>
    >>> engine = create_engine("sqlite://")
    >>> SQLModel.metadata.create_all(engine)
    >>> with Session(engine) as session:
    ...     load_fixtures(session)
    ...     print(Author.query(session).where(id=1).includes("posts").explain())
"""

__all__ = [
    "adapters",
    "factory",
    "fixtures",
    "models",
    "relation",
]
