"""Insert: create a new entity instance, optionally connected to existing ones."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, cast

from schemaplan.entity import Entity
from schemaplan.errors import InvalidStatementError
from schemaplan.fields import Field, ForeignKeyField
from schemaplan.graph import EntityGraph
from schemaplan.statements.base import (
    Statement,
    StatementConditions,
    StatementSettings,
    StatementSupportQuery,
)
from schemaplan.statements.conditions import Condition, FieldSetting, render_value

if TYPE_CHECKING:
    from schemaplan.index import Index
    from schemaplan.statements.support import SupportQuery

logger = logging.getLogger(__name__)


class Insert(StatementConditions, StatementSettings, StatementSupportQuery, Statement):
    """An insert of one ``entity`` instance.

    Each condition connects the new instance to an existing instance of
    another entity: the condition field is a foreign key of ``entity`` and the
    value is the identifier of the instance connected to.
    """

    def __init__(
        self,
        entity: Entity,
        settings: Iterable[FieldSetting],
        conditions: Iterable[Condition] = (),
        *,
        text: str | None = None,
        group: str | None = None,
        label: str | None = None,
    ) -> None:
        conditions = tuple(conditions)
        graph = EntityGraph([entity])
        for condition in conditions:
            key = condition.field
            if key.parent != entity or not key.is_foreign_key:
                raise InvalidStatementError(
                    f"Insert into '{entity.name}' can only connect through its own "
                    f"foreign keys, got '{key.id}'"
                )
            if condition.operator != "=":
                raise InvalidStatementError(
                    f"Connection on '{key.id}' must use '=', got '{condition.operator}'"
                )
            graph.add_edge(entity, cast(ForeignKeyField, key).entity, key)

        super().__init__(entity, graph=graph, text=text, group=group, label=label)
        self._populate_settings(settings)
        if entity.id_field not in self.setting_fields:
            raise InvalidStatementError("Must insert primary key")
        self._populate_conditions(conditions)
        self.freeze()

    def _connections(self) -> list[tuple[ForeignKeyField, Condition]]:
        return [(cast(ForeignKeyField, c.field), c) for c in self.conditions.values()]

    def _id_value(self) -> Any:
        return next(s.value for s in self.settings if s.field.is_id)

    def unparse(self) -> str:
        insert = f"INSERT INTO {self.entity.name} {self.settings_clause()}"
        if self.conditions:
            connections = ", ".join(
                f"{key.name}({render_value(c.value)})" for key, c in self._connections()
            )
            insert += f" AND CONNECT TO {connections}"
        return insert

    def _modifies_single_entity_index(self, index: Index) -> bool:
        return (
            len(index.path) == 1
            and index.path.entities[0] == self.entity
            and bool(self.setting_fields & index.all_fields)
        )

    def modifies_index(self, index: Index) -> bool:
        if self._modifies_single_entity_index(index):
            return True
        if len(index.path) == 1:
            return False
        if self.entity not in index.path.entities:
            return False

        # The new row only appears in the index when connected along its path
        return self._connects_index_path(index)

    def requires_insert(self, index: Index) -> bool:
        return True

    @property
    def given_fields(self) -> frozenset[Field]:
        """Settings plus the identifiers of every connected entity."""
        connected = frozenset(key.entity.id_field for key, _ in self._connections())
        return self.setting_fields | connected

    def support_queries(self, index: Index) -> list[SupportQuery]:
        """Queries selecting the index fields of the entities connected to.

        Single-entity indexes never need one: the insert supplies the row.
        """
        if not self.modifies_index(index) or self._modifies_single_entity_index(index):
            return []

        select = index.all_fields - self.given_fields
        if not select:
            logger.debug("Insert %s supplies every field of index %s", self, index.key)
            return []

        graph = index.graph.clone()
        for key, _ in self._connections():
            graph.add_edge(cast(Entity, key.parent), key.entity, key)
        owners = {cast(Entity, f.parent) for f in select}
        graph.keep_connecting(owners)

        # Connections to entities still in the graph become identifier lookups
        conditions = [
            Condition(key.entity.id_field, condition.operator, condition.value)
            for key, condition in self._connections()
            if key.entity in graph
        ]
        # An inserted entity kept only to link owners is pinned to the new row
        id_field = self.entity.id_field
        linking = self.entity in graph and self.entity not in owners
        if linking and all(c.field != id_field for c in conditions):
            conditions.append(Condition(id_field, "=", self._id_value()))
        return [self._support_query(index, select, graph, conditions)]
