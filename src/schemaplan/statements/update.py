"""Update: change fields of the instances reached by a key path."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, cast

from schemaplan.entity import Entity
from schemaplan.errors import InvalidStatementError
from schemaplan.fields import Field
from schemaplan.keypath import KeyPath
from schemaplan.statements.base import (
    Statement,
    StatementConditions,
    StatementSettings,
    StatementSupportQuery,
)
from schemaplan.statements.conditions import Condition, FieldSetting

if TYPE_CHECKING:
    from schemaplan.index import Index
    from schemaplan.statements.support import SupportQuery

logger = logging.getLogger(__name__)


class Update(StatementConditions, StatementSettings, StatementSupportQuery, Statement):
    """An update setting fields of ``entity``.

    The instances to update are selected by conditions on entities along
    ``key_path``, which starts at ``entity`` (``UPDATE Tweet FROM Tweet.User
    SET ... WHERE User.City = ?``).
    """

    def __init__(
        self,
        entity: Entity,
        settings: Iterable[FieldSetting],
        conditions: Iterable[Condition] = (),
        *,
        key_path: KeyPath | None = None,
        text: str | None = None,
        group: str | None = None,
        label: str | None = None,
    ) -> None:
        super().__init__(entity, key_path=key_path, text=text, group=group, label=label)

        conditions = tuple(conditions)
        for condition in conditions:
            if self.key_path.find_field_parent(condition.field) is None:
                raise InvalidStatementError(
                    f"Condition on '{condition.field.id}' is not on path '{self.key_path}'"
                )
        self._populate_conditions(conditions)

        self._populate_settings(settings)
        if not self.settings:
            raise InvalidStatementError(f"Update of '{entity.name}' must set at least one field")
        self.freeze()

    def unparse(self) -> str:
        return (
            f"UPDATE {self.entity.name} FROM {self.key_path} "
            f"{self.settings_clause()}{self.where_clause()}"
        )

    def requires_insert(self, index: Index) -> bool:
        """The post-image is always written."""
        return True

    def requires_delete(self, index: Index) -> bool:
        """Changing a hash or order field moves the row, so the old one is removed."""
        return bool(self.setting_fields & _key_fields(index))

    @property
    def given_fields(self) -> frozenset[Field]:
        # Settings are left out: the prior values of the row must be read back
        return self.condition_fields

    def support_queries(self, index: Index) -> list[SupportQuery]:
        if not self.modifies_index(index):
            return []

        set_fields = self.setting_fields
        key_fields = _key_fields(index)

        # Moving the row means rewriting every field, otherwise only the key
        # is needed to find it
        updated_key = bool(set_fields & key_fields)
        select = (index.all_fields if updated_key else key_fields) - set_fields
        select -= self.condition_fields
        if not select:
            logger.debug("Update %s needs no reads for index %s", self, index.key)
            return []

        conditions = [
            c for c in self.conditions.values() if c.field.parent in index.graph
        ]
        entities = {cast(Entity, f.parent) for f in select}
        entities |= {cast(Entity, c.field.parent) for c in conditions}

        graph = index.graph.clone()
        graph.keep_connecting(entities)
        return [self._support_query(index, select, graph, conditions)]


def _key_fields(index: Index) -> frozenset[Field]:
    return index.hash_fields | frozenset(index.order_fields)
