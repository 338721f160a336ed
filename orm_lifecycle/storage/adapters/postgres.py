"""
PostgreSQL explain adapter.

Options are passed in the parenthesised form, `EXPLAIN (ANALYZE, VERBOSE)`,
and plans are printed like psql does:

                                QUERY PLAN
    -----------------------------------------------------------------------
     Index Scan using authors_pkey on authors  (cost=0.15..8.17 rows=1 ...)
       Index Cond: (id = 1)
    (2 rows)
"""

from typing import Any, Iterable, Sequence

from .base import ExplainAdapter


class PostgresAdapter(ExplainAdapter):
    """Explain adapter for PostgreSQL connections."""

    name = "postgresql"
    explain_options = frozenset(
        {
            "ANALYZE",
            "VERBOSE",
            "COSTS",
            "SETTINGS",
            "BUFFERS",
            "WAL",
            "TIMING",
            "SUMMARY",
            "FORMAT TEXT",
            "FORMAT JSON",
            "FORMAT XML",
            "FORMAT YAML",
        }
    )

    @property
    def supports_explain_analyze(self) -> bool:
        return True

    def build_explain_clause(self, options: Iterable[Any] = ()) -> str:
        options = self.normalize_explain_options(options)
        if not options:
            return "EXPLAIN"
        return f"EXPLAIN ({', '.join(options)})"

    def explain(self, sql: str, options: Iterable[Any] = ()) -> str:
        columns, rows = self._execute(f"{self.build_explain_clause(options)} {sql}")
        return PostgresExplainPrettyPrinter().pp(columns, rows)


class PostgresExplainPrettyPrinter:
    """Prints the single QUERY PLAN column the way psql does."""

    def pp(self, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> str:
        header = columns[0]
        lines = [str(row[0]) for row in rows]
        width = max(len(line) for line in [header, *lines]) + 2

        output = [header.center(width).rstrip(), "-" * width]
        output.extend(f" {line}" for line in lines)
        rows_label = "row" if len(rows) == 1 else "rows"
        output.append(f"({len(rows)} {rows_label})")
        return "\n".join(output) + "\n"
