"""
MySQL / MariaDB explain adapter.

The explain clause depends on the server:

- MariaDB 10.1+ runs `ANALYZE SELECT ...` (supports_analyze)
- MySQL 8.0.18+ runs `EXPLAIN ANALYZE SELECT ...` (supports_explain_analyze)
- older servers accept `EXPLAIN EXTENDED SELECT ...`

Plans are printed the way the mysql command line client prints them:

    +----+-------------+---------+-------+---------------+
    | id | select_type | table   | type  | possible_keys |
    +----+-------------+---------+-------+---------------+
    |  1 | SIMPLE      | authors | const | PRIMARY       |
    +----+-------------+---------+-------+---------------+
    1 row in set (0.00 sec)
"""

import time
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from .base import ExplainAdapter


class MySQLAdapter(ExplainAdapter):
    """Explain adapter for MySQL and MariaDB connections."""

    name = "mysql"
    explain_options = frozenset(
        {
            "ANALYZE",
            "EXTENDED",
            "PARTITIONS",
            "FORMAT=JSON",
            "FORMAT=TREE",
            "FORMAT=TRADITIONAL",
        }
    )

    def __init__(self, connection, server_version: Optional[Sequence[int]] = None, mariadb: Optional[bool] = None):
        """
        Args:
            connection: SQLAlchemy connection to a MySQL or MariaDB server.
            server_version: Version tuple such as (8, 0, 33); read from the
                dialect when omitted.
            mariadb: Whether the server is MariaDB; read from the dialect
                when omitted.
        """
        super().__init__(connection)
        if server_version is None:
            server_version = getattr(self.dialect, "server_version_info", None) or ()
        self.server_version = tuple(part for part in server_version if isinstance(part, int))
        if mariadb is None:
            mariadb = bool(getattr(self.dialect, "is_mariadb", False))
        self.mariadb = mariadb

    @property
    def supports_analyze(self) -> bool:
        return self.mariadb and self.server_version >= (10, 1, 0)

    @property
    def supports_explain_analyze(self) -> bool:
        return not self.mariadb and self.server_version >= (8, 0, 18)

    def build_explain_clause(self, options: Iterable[Any] = ()) -> str:
        options = self.normalize_explain_options(options)
        if not options:
            return "EXPLAIN"
        clause = f"EXPLAIN {' '.join(options)}"
        if self.supports_analyze and "ANALYZE" in options:
            return clause.replace("EXPLAIN ", "", 1)
        return clause

    def explain(self, sql: str, options: Iterable[Any] = ()) -> str:
        started = time.monotonic()
        columns, rows = self._execute(f"{self.build_explain_clause(options)} {sql}")
        elapsed = time.monotonic() - started
        return MySQLExplainPrettyPrinter().pp(columns, rows, elapsed)


class MySQLExplainPrettyPrinter:
    """Prints EXPLAIN results as a mysql client style table."""

    def pp(self, columns: Sequence[str], rows: Sequence[Sequence[Any]], elapsed: float) -> str:
        widths = self.compute_column_widths(columns, rows)
        separator = self.build_separator(widths)

        lines = [separator, self.build_cells(columns, widths), separator]
        lines.extend(self.build_cells(row, widths) for row in rows)
        lines.append(separator)
        lines.append(self.build_footer(len(rows), elapsed))
        return "\n".join(lines) + "\n"

    def compute_column_widths(self, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> list[int]:
        widths = []
        for index, column in enumerate(columns):
            cells = [len(self.cell_text(row[index])) for row in rows]
            widths.append(max([len(column), *cells]))
        return widths

    def build_separator(self, widths: Sequence[int]) -> str:
        return "+" + "+".join("-" * (width + 2) for width in widths) + "+"

    def build_cells(self, items: Sequence[Any], widths: Sequence[int]) -> str:
        cells = []
        for item, width in zip(items, widths):
            text = self.cell_text(item)
            cells.append(text.rjust(width) if self.is_numeric(item) else text.ljust(width))
        return "| " + " | ".join(cells) + " |"

    def build_footer(self, nrows: int, elapsed: float) -> str:
        rows_label = "row" if nrows == 1 else "rows"
        return f"{nrows} {rows_label} in set ({elapsed:.2f} sec)"

    @staticmethod
    def cell_text(value: Any) -> str:
        return "NULL" if value is None else str(value)

    @staticmethod
    def is_numeric(value: Any) -> bool:
        return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)
