"""Model: the registry of entities and the foreign keys between them."""

from __future__ import annotations

from typing import Iterator

from schemaplan.entity import Entity
from schemaplan.errors import ModelError
from schemaplan.fields import Field, ForeignKeyField


class Model:
    """A logical entity-relationship model."""

    def __init__(self, entities: list[Entity] | None = None) -> None:
        self._entities: dict[str, Entity] = {}
        for entity in entities or []:
            self.add_entity(entity)

    def add_entity(self, entity: Entity) -> Entity:
        if entity.name in self._entities:
            raise ModelError(f"Duplicate entity '{entity.name}'")
        self._entities[entity.name] = entity
        return entity

    @property
    def entities(self) -> dict[str, Entity]:
        return dict(self._entities)

    def __getitem__(self, name: str) -> Entity:
        try:
            return self._entities[name]
        except KeyError:
            raise ModelError(f"Unknown entity '{name}'") from None

    def __contains__(self, name: object) -> bool:
        return name in self._entities

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)

    def find_field(self, reference: str) -> Field:
        """Resolve an ``Entity.Field`` reference."""
        entity_name, sep, field_name = reference.partition(".")
        if not sep or not field_name:
            raise ModelError(f"Field reference '{reference}' must look like Entity.Field")
        return self[entity_name][field_name]

    def connect(
        self,
        entity: Entity | str,
        key_name: str,
        target: Entity | str,
        *,
        reverse_name: str | None = None,
        relationship: str = "one",
        reverse_relationship: str = "many",
    ) -> ForeignKeyField:
        """Create a foreign key from ``entity`` to ``target`` and its reverse.

        The reverse key is named after the source entity unless
        ``reverse_name`` is given. Returns the forward key.
        """
        source = self[entity] if isinstance(entity, str) else entity
        dest = self[target] if isinstance(target, str) else target
        for e in (source, dest):
            if self._entities.get(e.name) is not e:
                raise ModelError(f"Entity '{e.name}' is not part of this model")

        forward = ForeignKeyField(key_name, dest, relationship=relationship)
        source.add_field(forward)

        # A self-referencing key still gets a distinct reverse field
        backward = ForeignKeyField(
            reverse_name or source.name, source, relationship=reverse_relationship
        )
        dest.add_field(backward)

        forward.reverse = backward
        backward.reverse = forward
        return forward
