"""
Chainable relations over a model's table.

A `Relation` renders its own SQL so the text that is executed is exactly
the text reported by `explain()`:

    >>> relation = Author.query(session).where(id=1).includes("posts")
    >>> relation.to_sql()
    'SELECT "authors".* FROM "authors" WHERE "authors"."id" = 1'
    >>> print(relation.explain())
    EXPLAIN for: SELECT "authors".* FROM "authors" WHERE "authors"."id" = 1
    2|0|0|SEARCH authors USING INTEGER PRIMARY KEY (rowid=?)

    EXPLAIN for: SELECT "posts".* FROM "posts" WHERE "posts"."author_id" = 1
    2|0|0|SCAN posts

Included associations are preloaded with one extra query each, keyed by the
owners' join column, and assigned to the owners without lazy loading.
"""

from collections import defaultdict
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select, text
from sqlalchemy.orm.attributes import set_committed_value
from sqlmodel import Session

from orm_lifecycle.errors import AssociationNotFoundError, UnknownAttributeError
from orm_lifecycle.storage.adapters import ExplainAdapter, adapter_for, collecting_queries_for_explain, record_query


class Relation:
    """An immutable query over one model: conditions plus preloaded associations."""

    def __init__(
        self,
        model: type,
        session: Session,
        conditions: Optional[Mapping[str, Any]] = None,
        preloads: Iterable[str] = (),
        adapter: Optional[ExplainAdapter] = None,
    ):
        self.model = model
        self.session = session
        self.conditions = dict(conditions or {})
        self.preloads = tuple(preloads)
        self._adapter = adapter

    def __repr__(self) -> str:
        return f"<Relation {self.model.__name__} where={self.conditions!r} includes={list(self.preloads)!r}>"

    @property
    def table(self):
        return self.model.__table__

    @property
    def adapter(self) -> ExplainAdapter:
        if self._adapter is None:
            self._adapter = adapter_for(self.session.connection())
        return self._adapter

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def where(self, **conditions: Any) -> "Relation":
        """Add equality conditions. Lists become IN, None becomes IS NULL."""
        for column in conditions:
            if column not in self.table.columns:
                raise UnknownAttributeError(f"{self.table.name} has no column {column!r}")
        return self._spawn(conditions={**self.conditions, **conditions})

    def includes(self, *associations: str) -> "Relation":
        """Preload the named relationships when the relation is loaded."""
        relationships = sa_inspect(self.model).relationships
        for name in associations:
            if name not in relationships:
                raise AssociationNotFoundError(f"Association named {name!r} was not found on {self.model.__name__}")
        preloads = self.preloads + tuple(name for name in associations if name not in self.preloads)
        return self._spawn(preloads=preloads)

    def _spawn(self, **changes: Any) -> "Relation":
        return Relation(
            self.model,
            self.session,
            conditions=changes.get("conditions", self.conditions),
            preloads=changes.get("preloads", self.preloads),
            adapter=self._adapter,
        )

    def to_sql(self) -> str:
        table = self.adapter.quote_identifier(self.table.name)
        sql = f"SELECT {table}.* FROM {table}"
        if self.conditions:
            predicates = [self._predicate(table, column, value) for column, value in self.conditions.items()]
            sql += " WHERE " + " AND ".join(predicates)
        return sql

    def _predicate(self, table: str, column: str, value: Any) -> str:
        target = f"{table}.{self.adapter.quote_identifier(self.table.columns[column].name)}"
        if value is None:
            return f"{target} IS NULL"
        if isinstance(value, (list, tuple, set, frozenset)):
            values = list(value)
            if not values:
                return "1=0"
            if len(values) == 1:
                return f"{target} = {self.adapter.quote_value(values[0])}"
            return f"{target} IN ({', '.join(self.adapter.quote_value(v) for v in values)})"
        return f"{target} = {self.adapter.quote_value(value)}"

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> list:
        """Run the query and its preloads, returning model instances."""
        sql = self.to_sql()
        record_query(sql)
        records = list(self.session.scalars(select(self.model).from_statement(text(sql))).all())
        for name in self.preloads:
            self._preload(records, name)
        return records

    def all(self) -> list:
        return self.load()

    def first(self):
        records = self.load()
        return records[0] if records else None

    def _preload(self, owners: list, name: str) -> None:
        relationship = sa_inspect(self.model).relationships[name]
        target = relationship.mapper.class_
        (local_column, remote_column), *_ = relationship.local_remote_pairs
        owner_key = sa_inspect(self.model).get_property_by_column(local_column).key
        target_key = relationship.mapper.get_property_by_column(remote_column).key

        keys = []
        for owner in owners:
            key = getattr(owner, owner_key)
            if key is not None and key not in keys:
                keys.append(key)

        related = []
        if keys:
            related = Relation(target, self.session, adapter=self._adapter).where(**{target_key: keys}).load()

        grouped = defaultdict(list)
        for record in related:
            grouped[getattr(record, target_key)].append(record)
        for owner in owners:
            matches = grouped.get(getattr(owner, owner_key), [])
            if relationship.uselist:
                set_committed_value(owner, name, matches)
            else:
                set_committed_value(owner, name, matches[0] if matches else None)

    # ------------------------------------------------------------------
    # Explaining
    # ------------------------------------------------------------------

    def explain(self, *options: Any) -> str:
        """Load the relation and return the query plan of every query it ran.

        Args:
            options: ExplainOption members or strings such as "analyze";
                case does not matter.
        """
        options = self.adapter.normalize_explain_options(options)
        with collecting_queries_for_explain() as queries:
            self.load()
        return self.adapter.exec_explain(queries, options)
