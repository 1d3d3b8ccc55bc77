"""SupportQuery: a read derived from a write to fill in an index row."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Iterable

from schemaplan.entity import Entity
from schemaplan.errors import InvalidStatementError
from schemaplan.fields import Field
from schemaplan.graph import EntityGraph
from schemaplan.keypath import KeyPath
from schemaplan.statements.base import Statement, StatementConditions
from schemaplan.statements.conditions import Condition

if TYPE_CHECKING:
    from schemaplan.index import Index


class SupportQuery(StatementConditions, Statement):
    """A read-only query selecting fields a write does not supply itself.

    ``correlation`` ties the query to the (statement, index) pair it was
    derived for, so an executor can schedule the read alongside the write.
    """

    read_only: ClassVar[bool] = True

    def __init__(
        self,
        entity: Entity,
        select: Iterable[Field],
        key_path: KeyPath,
        graph: EntityGraph,
        conditions: Iterable[Condition],
        *,
        statement: Statement,
        index: Index,
        group: str | None = None,
        label: str | None = None,
    ) -> None:
        super().__init__(entity, key_path=key_path, graph=graph, group=group, label=label)
        self.select = frozenset(select)
        if not self.select:
            raise InvalidStatementError("A support query must select at least one field")
        self._populate_conditions(conditions)
        self.statement = statement
        self.index = index
        self.correlation = hash(statement) ^ hash(index)
        self.freeze()

    @property
    def given_fields(self) -> frozenset[Field]:
        return self.condition_fields

    def query_key(self) -> tuple[Any, ...]:
        """Component hashes of the read alone, ignoring where it came from."""
        return (
            "SupportQuery",
            hash(self.graph),
            hash(self.entity),
            hash(self.key_path),
            sorted(f.id for f in self.select),
            sorted(hash(c) for c in self.conditions.values()),
        )

    def structural_key(self) -> tuple[Any, ...]:
        return (*self.query_key(), hash(self.statement), hash(self.index))

    def _structure(self) -> tuple[Any, ...]:
        return (
            self.graph,
            self.entity,
            self.key_path,
            self.select,
            frozenset(self.conditions.values()),
            self.statement,
            self.index,
        )

    def unparse(self) -> str:
        fields = ", ".join(str(f) for f in sorted(self.select, key=lambda f: f.id))
        return f"SELECT {fields} FROM {self.key_path}{self.where_clause()}"
