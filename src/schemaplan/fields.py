"""Field kinds and typed entity attributes."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from schemaplan.errors import ModelError
from schemaplan.hashing import stable_hash

if TYPE_CHECKING:
    from schemaplan.entity import Entity


class FieldKind(str, Enum):
    """Closed set of field kinds, fixed when the model is built."""

    ID = "id"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    DATE = "date"
    BOOLEAN = "boolean"
    FOREIGN_KEY = "foreign_key"


_ADAPTERS: dict[FieldKind, TypeAdapter[Any]] = {
    FieldKind.ID: TypeAdapter(Union[int, str]),
    FieldKind.INTEGER: TypeAdapter(int),
    FieldKind.FLOAT: TypeAdapter(float),
    FieldKind.STRING: TypeAdapter(str),
    FieldKind.DATE: TypeAdapter(datetime),
    FieldKind.BOOLEAN: TypeAdapter(bool),
    FieldKind.FOREIGN_KEY: TypeAdapter(Union[int, str]),
}

# Default sizes in bytes, used when a field does not declare one
_DEFAULT_SIZES: dict[FieldKind, int] = {
    FieldKind.ID: 16,
    FieldKind.INTEGER: 8,
    FieldKind.FLOAT: 8,
    FieldKind.STRING: 10,
    FieldKind.DATE: 8,
    FieldKind.BOOLEAN: 1,
    FieldKind.FOREIGN_KEY: 16,
}


class Field:
    """A typed attribute of an Entity.

    Identity is ``Entity.Field``; names never contain a dot, so identities
    cannot collide. Two Field objects built for the same attribute compare
    and hash equal.
    """

    def __init__(
        self, name: str, kind: FieldKind = FieldKind.STRING, *, size: int | None = None
    ) -> None:
        if not name or "." in name:
            raise ModelError(f"Field name must be non-empty and contain no '.', got {name!r}")
        self.name = name
        self.kind = FieldKind(kind)
        self.size = size if size is not None else _DEFAULT_SIZES[self.kind]
        self.parent: Entity | None = None

    @property
    def id(self) -> str:
        owner = self.parent.name if self.parent is not None else "?"
        return f"{owner}.{self.name}"

    @property
    def is_id(self) -> bool:
        return self.kind is FieldKind.ID

    @property
    def is_foreign_key(self) -> bool:
        return self.kind is FieldKind.FOREIGN_KEY

    def coerce(self, value: Any) -> Any:
        """Convert a raw value into this field's Python type.

        ``None`` is passed through unchanged since it marks an unbound
        parameter.
        """
        if value is None:
            return None
        try:
            return _ADAPTERS[self.kind].validate_python(value)
        except PydanticValidationError as e:
            raise ModelError(
                f"Invalid value {value!r} for {self.kind.value} field '{self.id}': "
                f"{e.errors()[0]['msg']}"
            ) from e

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Field):
            return NotImplemented
        return self.id == other.id and self.kind is other.kind

    def __hash__(self) -> int:
        return stable_hash("field", self.id)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.id})"

    def __str__(self) -> str:
        owner = self.parent.name if self.parent is not None else "?"
        return f"{owner}.{self.name}"


class ForeignKeyField(Field):
    """A reference from the parent entity to a target entity.

    ``reverse`` is the key on the target pointing back at the parent; it is
    wired by Model.connect once both sides exist.
    """

    def __init__(
        self,
        name: str,
        entity: Entity,
        *,
        relationship: str = "one",
        size: int | None = None,
    ) -> None:
        super().__init__(name, FieldKind.FOREIGN_KEY, size=size)
        if relationship not in ("one", "many"):
            raise ModelError(f"Relationship must be 'one' or 'many', got {relationship!r}")
        self.entity = entity
        self.relationship = relationship
        self.reverse: ForeignKeyField | None = None

    def foreign_key_for(self, other: Entity) -> ForeignKeyField:
        """Return the key that leads towards ``other`` along this relationship."""
        if other == self.entity:
            return self
        if other == self.parent:
            if self.reverse is None:
                raise ModelError(f"Foreign key '{self.id}' has no reverse key")
            return self.reverse
        raise ModelError(f"Foreign key '{self.id}' does not connect to entity '{other.name}'")
