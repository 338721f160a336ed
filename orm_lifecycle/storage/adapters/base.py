"""
Explain adapter interface.

An explain adapter knows how one database vendor spells EXPLAIN, which
options it accepts, and how to print the plan rows it returns. Relations
collect the SQL they execute while `collecting_queries_for_explain()` is
active and then hand the list to `exec_explain()`.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

from sqlalchemy import literal

from orm_lifecycle.errors import UnsupportedExplainOptionError

logger = logging.getLogger(__name__)

_collected_queries: ContextVar[Optional[list[str]]] = ContextVar("collected_queries", default=None)


class ExplainOption(str, Enum):
    """Explain options understood by at least one adapter."""

    ANALYZE = "analyze"
    EXTENDED = "extended"
    PARTITIONS = "partitions"
    VERBOSE = "verbose"
    COSTS = "costs"
    BUFFERS = "buffers"


@contextmanager
def collecting_queries_for_explain() -> Iterator[list[str]]:
    """Collect the SQL of every relation query run inside the block."""
    queries: list[str] = []
    token = _collected_queries.set(queries)
    try:
        yield queries
    finally:
        _collected_queries.reset(token)


def record_query(sql: str) -> None:
    """Remember `sql` if an explain collection is active."""
    queries = _collected_queries.get()
    if queries is not None:
        logger.debug("Collected query for explain: %s", sql)
        queries.append(sql)


class ExplainAdapter(ABC):
    """Abstract adapter bound to one SQLAlchemy connection."""

    name = "abstract"
    explain_options: frozenset[str] = frozenset()

    def __init__(self, connection):
        self.connection = connection
        self.dialect = connection.dialect

    @property
    def supports_analyze(self) -> bool:
        """True when ANALYZE replaces EXPLAIN entirely (ANALYZE SELECT ...)."""
        return False

    @property
    def supports_explain_analyze(self) -> bool:
        """True when EXPLAIN ANALYZE executes the query and reports timings."""
        return False

    def quote_identifier(self, name: str) -> str:
        return self.dialect.identifier_preparer.quote_identifier(name)

    def quote_value(self, value: Any) -> str:
        """Render a Python value as a SQL literal for this dialect."""
        return str(literal(value).compile(dialect=self.dialect, compile_kwargs={"literal_binds": True}))

    def normalize_explain_options(self, options: Iterable[Any]) -> list[str]:
        """Upper-case options and reject those this adapter does not support."""
        normalized = []
        for option in options:
            if isinstance(option, Enum):
                value = str(option.value)
            elif isinstance(option, str):
                value = option
            else:
                raise UnsupportedExplainOptionError(f"Explain options must be strings or ExplainOption members, got {option!r}")
            value = value.strip().upper()
            if value not in self.explain_options:
                raise UnsupportedExplainOptionError(f"{self.name} does not support the explain option {value!r}")
            normalized.append(value)
        return normalized

    def build_explain_clause(self, options: Iterable[Any] = ()) -> str:
        """Leading text printed before each explained query."""
        self.normalize_explain_options(options)
        return "EXPLAIN for:"

    @abstractmethod
    def explain(self, sql: str, options: Iterable[Any] = ()) -> str:
        """Run the vendor EXPLAIN for `sql` and return the printed plan."""
        pass

    def exec_explain(self, queries: Iterable[str], options: Iterable[Any] = ()) -> str:
        """Explain each query; blocks are "<clause> <sql>" followed by the plan."""
        options = self.normalize_explain_options(options)
        blocks = []
        for sql in queries:
            blocks.append(f"{self.build_explain_clause(options)} {sql}\n{self.explain(sql, options)}")
        return "\n".join(blocks)

    def _execute(self, sql: str) -> tuple[list[str], list[tuple]]:
        result = self.connection.exec_driver_sql(sql)
        columns = list(result.keys())
        rows = [tuple(row) for row in result.fetchall()]
        return columns, rows
