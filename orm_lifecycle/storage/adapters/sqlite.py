"""
SQLite explain adapter.

SQLite has no EXPLAIN options; plans come from EXPLAIN QUERY PLAN and are
printed one row per line with columns joined by "|":

    EXPLAIN for: SELECT "authors".* FROM "authors" WHERE "authors"."id" = 1
    2|0|0|SEARCH authors USING INTEGER PRIMARY KEY (rowid=?)
"""

from typing import Any, Iterable

from .base import ExplainAdapter


class SQLiteAdapter(ExplainAdapter):
    """Explain adapter for SQLite connections."""

    name = "sqlite"

    def explain(self, sql: str, options: Iterable[Any] = ()) -> str:
        self.normalize_explain_options(options)
        _, rows = self._execute(f"EXPLAIN QUERY PLAN {sql}")
        return "\n".join("|".join(str(value) for value in row) for row in rows) + "\n"
