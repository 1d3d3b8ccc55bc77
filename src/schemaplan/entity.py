"""Entity: a named record type in the logical model."""

from __future__ import annotations

from typing import cast

from schemaplan.errors import ModelError
from schemaplan.fields import Field, FieldKind, ForeignKeyField
from schemaplan.hashing import stable_hash


class Entity:
    """A record type with one identifier field plus data and foreign key fields."""

    def __init__(self, name: str, *, count: int = 1) -> None:
        if not name or "." in name:
            raise ModelError(f"Entity name must be non-empty and contain no '.', got {name!r}")
        self.name = name
        self.count = count
        self.fields: dict[str, Field] = {}

    def add_field(self, field: Field) -> Field:
        """Attach a field to this entity and return it."""
        if field.name in self.fields:
            raise ModelError(f"Entity '{self.name}' already has a field named '{field.name}'")
        if field.kind is FieldKind.ID and any(f.is_id for f in self.fields.values()):
            raise ModelError(f"Entity '{self.name}' already has an ID field")
        if field.parent is not None and field.parent != self:
            raise ModelError(f"Field '{field.id}' already belongs to entity '{field.parent.name}'")
        field.parent = self
        self.fields[field.name] = field
        return field

    @property
    def id_field(self) -> Field:
        for field in self.fields.values():
            if field.is_id:
                return field
        raise ModelError(f"Entity '{self.name}' has no ID field")

    @property
    def foreign_keys(self) -> dict[str, ForeignKeyField]:
        return {
            name: cast(ForeignKeyField, field)
            for name, field in self.fields.items()
            if field.is_foreign_key
        }

    def __getitem__(self, name: str) -> Field:
        try:
            return self.fields[name]
        except KeyError:
            raise ModelError(f"Entity '{self.name}' has no field named '{name}'") from None

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return stable_hash("entity", self.name)

    def __lt__(self, other: Entity) -> bool:
        return self.name < other.name

    def __repr__(self) -> str:
        return f"Entity({self.name!r})"
