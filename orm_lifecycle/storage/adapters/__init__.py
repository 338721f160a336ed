"""
Explain adapters, one per database vendor.

Available Adapters:

- **sqlite**: EXPLAIN QUERY PLAN, rows joined with "|"
- **mysql**: MySQL and MariaDB, mysql client style tables
- **postgres**: PostgreSQL, psql style QUERY PLAN output

Example:

    >>> from orm_lifecycle.storage.adapters import adapter_for
    >>> with engine.connect() as connection:
    ...     adapter = adapter_for(connection)
    ...     adapter.build_explain_clause(["analyze"])
    'EXPLAIN ANALYZE'
"""

from orm_lifecycle.errors import UnsupportedAdapterError

from .base import ExplainAdapter, ExplainOption, collecting_queries_for_explain, record_query
from .mysql import MySQLAdapter, MySQLExplainPrettyPrinter
from .postgres import PostgresAdapter, PostgresExplainPrettyPrinter
from .sqlite import SQLiteAdapter

ADAPTERS: dict[str, type[ExplainAdapter]] = {
    "sqlite": SQLiteAdapter,
    "mysql": MySQLAdapter,
    "mariadb": MySQLAdapter,
    "postgresql": PostgresAdapter,
}


def adapter_for(connection) -> ExplainAdapter:
    """Return the explain adapter matching the connection's dialect."""
    dialect_name = connection.dialect.name
    try:
        adapter_class = ADAPTERS[dialect_name]
    except KeyError:
        raise UnsupportedAdapterError(f"No explain adapter for dialect {dialect_name!r}") from None
    return adapter_class(connection)


__all__ = [
    "ADAPTERS",
    "ExplainAdapter",
    "ExplainOption",
    "MySQLAdapter",
    "MySQLExplainPrettyPrinter",
    "PostgresAdapter",
    "PostgresExplainPrettyPrinter",
    "SQLiteAdapter",
    "adapter_for",
    "collecting_queries_for_explain",
    "record_query",
]
