"""Statement base class and the capabilities shared by write statements."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, Iterable, Mapping, cast

from schemaplan.entity import Entity
from schemaplan.errors import InvalidStatementError, PlanningInvariantError
from schemaplan.fields import Field, ForeignKeyField
from schemaplan.graph import EntityGraph
from schemaplan.hashing import stable_hash
from schemaplan.keypath import KeyPath
from schemaplan.statements.conditions import Condition, FieldSetting

if TYPE_CHECKING:
    from schemaplan.index import Index
    from schemaplan.statements.support import SupportQuery

logger = logging.getLogger(__name__)


class Statement:
    """A statement over a sub-graph of the model, rooted at one entity.

    Equality and hashing are structural, so statements can be used as map
    keys. Statements are frozen once constructed.
    """

    read_only: ClassVar[bool] = False

    def __init__(
        self,
        entity: Entity,
        *,
        key_path: KeyPath | None = None,
        graph: EntityGraph | None = None,
        text: str | None = None,
        group: str | None = None,
        label: str | None = None,
    ) -> None:
        self._frozen = False
        self.entity = entity
        self.key_path = key_path if key_path is not None else KeyPath([entity.id_field])
        if self.key_path.entities[0] != entity:
            raise InvalidStatementError(
                f"Key path '{self.key_path}' does not start at entity '{entity.name}'"
            )
        self.graph = graph if graph is not None else self.key_path.to_graph()
        self.text = text
        self.group = group
        self.label = label
        self.conditions: Mapping[str, Condition] = MappingProxyType({})
        self.settings: tuple[FieldSetting, ...] = ()
        self._hash: int | None = None

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise AttributeError(f"{type(self).__name__} is frozen; cannot set '{name}'")
        super().__setattr__(name, value)

    def freeze(self) -> None:
        self.graph.freeze()
        self._hash = stable_hash(*self.structural_key())
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _structure(self) -> tuple[Any, ...]:
        return (self.graph, self.entity, self.settings, frozenset(self.conditions.values()))

    def structural_key(self) -> tuple[Any, ...]:
        """Ordered tuple of component hashes identifying this statement."""
        return (
            type(self).__name__,
            hash(self.graph),
            hash(self.entity),
            [hash(s) for s in self.settings],
            sorted(hash(c) for c in self.conditions.values()),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Statement):
            return NotImplemented
        return type(self) is type(other) and self._structure() == other._structure()

    def __hash__(self) -> int:
        if self._hash is not None:
            return self._hash
        return stable_hash(*self.structural_key())

    def unparse(self) -> str:
        """Diagnostic text form of this statement."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.unparse()})"


class StatementConditions:
    """Conditions stored uniquely per field."""

    conditions: Mapping[str, Condition]

    def _populate_conditions(self, conditions: Iterable[Condition]) -> None:
        mapping: dict[str, Condition] = {}
        for condition in conditions:
            if condition.field.id in mapping:
                raise InvalidStatementError(
                    f"Multiple conditions on field '{condition.field.id}'"
                )
            mapping[condition.field.id] = condition
        self.conditions = MappingProxyType(mapping)

    @property
    def condition_fields(self) -> frozenset[Field]:
        return frozenset(c.field for c in self.conditions.values())

    def where_clause(self) -> str:
        if not self.conditions:
            return ""
        ordered = sorted(self.conditions.values(), key=lambda c: c.field.id)
        return " WHERE " + " AND ".join(str(c) for c in ordered)


class StatementSettings:
    """An ordered sequence of field settings on the statement's entity."""

    entity: Entity
    settings: tuple[FieldSetting, ...]

    def _populate_settings(self, settings: Iterable[FieldSetting]) -> None:
        settings = tuple(settings)
        seen: set[Field] = set()
        for setting in settings:
            if setting.field.parent != self.entity:
                raise InvalidStatementError(
                    f"Setting for '{setting.field.id}' does not belong to "
                    f"entity '{self.entity.name}'"
                )
            if setting.field in seen:
                raise InvalidStatementError(f"Field '{setting.field.id}' is set more than once")
            seen.add(setting.field)
        self.settings = settings

    @property
    def setting_fields(self) -> frozenset[Field]:
        return frozenset(s.field for s in self.settings)

    def settings_clause(self) -> str:
        return "SET " + ", ".join(str(s) for s in self.settings)


class StatementSupportQuery:
    """The contract write statements expose to update planning.

    ``support_queries`` derives a fresh list on every call; nothing is cached
    on the statement.
    """

    entity: Entity
    group: str | None
    conditions: Mapping[str, Condition]
    setting_fields: frozenset[Field]

    def modifies_index(self, index: Index) -> bool:
        """Whether executing this statement changes rows of ``index``."""
        if self.setting_fields & index.all_fields:
            return True
        if len(index.path) == 1 or self.entity not in index.path.entities:
            return False
        return self._connects_index_path(index)

    def _connects_index_path(self, index: Index) -> bool:
        """Whether some condition key, in either direction, lies on the index path."""
        keys: list[Field] = []
        for condition in self.conditions.values():
            if not condition.field.is_foreign_key:
                continue
            key = cast(ForeignKeyField, condition.field)
            keys.append(key)
            if key.reverse is not None:
                keys.append(key.reverse)
        return any(key in index.path for key in keys)

    def requires_insert(self, index: Index) -> bool:
        return False

    def requires_delete(self, index: Index) -> bool:
        return False

    @property
    def given_fields(self) -> frozenset[Field]:
        raise NotImplementedError

    def support_queries(self, index: Index) -> list[SupportQuery]:
        raise NotImplementedError

    def _support_query(
        self,
        index: Index,
        select: frozenset[Field],
        graph: EntityGraph,
        conditions: Iterable[Condition],
    ) -> SupportQuery:
        """Build the single support query reading ``select`` over ``graph``.

        ``graph`` must be a private clone already pruned to the entities the
        query touches.
        """
        from schemaplan.statements.support import SupportQuery

        missing = sorted(f.id for f in select if graph.find_field_parent(f) is None)
        if missing:
            raise PlanningInvariantError(
                f"Pruned graph lost the owners of fields {missing}",
                entities=sorted(e.name for e in graph.entities),
            )

        key_path = graph.longest_path()
        query = SupportQuery(
            key_path.entities[0],
            select,
            key_path,
            graph,
            conditions,
            statement=self,
            index=index,
            group=self.group,
        )
        logger.debug("Derived support query for %s on index %s: %s", self, index.key, query)
        return query
