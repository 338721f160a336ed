"""
SQLModel persistence models.

Available Models:

- **record**: `Record`, the callback-aware base every table model extends
- **author**: `AuthorAddress`, `Author` and `Post` tables

Example:

    >>> from orm_lifecycle.storage.models import Author
    >>> Author.query(session).where(id=1).includes("posts").load()
"""

from .author import Author, AuthorAddress, Post
from .record import Record

__all__ = [
    "Record",
    "AuthorAddress",
    "Author",
    "Post",
]
