"""
SQLModel tables for authors, their addresses and their posts.

These are the tables the explain suite runs against:

- author_addresses: one row per postal address
- authors: belongs to an address, has many posts
- posts: belongs to an author through author_id

posts.author_id is a plain integer column with no foreign key constraint and no
index (InnoDB would index a foreign key), so a lookup by author scans the
table (type ALL in MySQL plans, SCAN in SQLite plans). The join is declared on
the relationships instead.
"""

from typing import Optional

from sqlmodel import Field, Relationship

from .record import Record

POSTS_JOIN = "Author.id == foreign(Post.author_id)"


class AuthorAddress(Record, table=True):
    """Postal address shared by one or more authors."""

    __tablename__ = "author_addresses"

    id: Optional[int] = Field(default=None, primary_key=True)

    authors: list["Author"] = Relationship(back_populates="author_address")


class Author(Record, table=True):
    """
    Author of blog posts.

    Attributes:
        id: Primary key
        name: Display name
        author_address_id: Foreign key to author_addresses.id
        posts: Posts written by this author (one-to-many)
        author_address: Address of this author (many-to-one)
    """

    __tablename__ = "authors"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    author_address_id: Optional[int] = Field(default=None, foreign_key="author_addresses.id")

    author_address: Optional[AuthorAddress] = Relationship(back_populates="authors")
    posts: list["Post"] = Relationship(
        back_populates="author",
        sa_relationship_kwargs={"primaryjoin": POSTS_JOIN},
    )


class Post(Record, table=True):
    __tablename__ = "posts"

    id: Optional[int] = Field(default=None, primary_key=True)
    author_id: Optional[int] = None
    title: str
    body: str = ""

    author: Optional[Author] = Relationship(
        back_populates="posts",
        sa_relationship_kwargs={"primaryjoin": POSTS_JOIN},
    )
