"""KeyPath: an ordered walk over entities connected by foreign keys."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Iterator, Sequence, cast, overload

from schemaplan.entity import Entity
from schemaplan.errors import ModelError
from schemaplan.fields import Field, ForeignKeyField
from schemaplan.hashing import stable_hash

if TYPE_CHECKING:
    from schemaplan.graph import EntityGraph
    from schemaplan.model import Model


class KeyPath(Sequence[Field]):
    """A sequence of keys starting at the ID field of the first entity.

    Every key after the first is a foreign key leaving the entity reached so
    far, e.g. ``[Tweet.TweetId, Tweet.User]`` walks Tweet -> User.
    """

    def __init__(self, keys: Iterable[Field]) -> None:
        keys = tuple(keys)
        if not keys:
            raise ModelError("A key path needs at least one key")
        if not keys[0].is_id or keys[0].parent is None:
            raise ModelError(f"Key path must start at an ID field, got '{keys[0].id}'")

        entities: list[Entity] = [cast(Entity, keys[0].parent)]
        for key in keys[1:]:
            if not key.is_foreign_key:
                raise ModelError(f"Key path step '{key.id}' is not a foreign key")
            if key.parent != entities[-1]:
                raise ModelError(
                    f"Key path step '{key.id}' does not leave entity '{entities[-1].name}'"
                )
            entities.append(cast(ForeignKeyField, key).entity)

        self._keys = keys
        self._entities = tuple(entities)

    @classmethod
    def parse(cls, model: Model, path: str | Sequence[str]) -> KeyPath:
        """Build a path from ``"Tweet.User"`` or ``["Tweet", "User"]``.

        The first name is an entity; every following name is a foreign key of
        the entity reached so far.
        """
        names = path.split(".") if isinstance(path, str) else list(path)
        if not names or not names[0]:
            raise ModelError("Empty key path")
        entity = model[names[0]]
        keys: list[Field] = [entity.id_field]
        for name in names[1:]:
            key = entity[name]
            if not key.is_foreign_key:
                raise ModelError(f"'{key.id}' is not a foreign key")
            keys.append(key)
            entity = cast(ForeignKeyField, key).entity
        return cls(keys)

    @property
    def entities(self) -> tuple[Entity, ...]:
        return self._entities

    @property
    def first(self) -> Field:
        return self._keys[0]

    @property
    def last(self) -> Field:
        return self._keys[-1]

    def reverse(self) -> KeyPath:
        """The same walk traversed from the last entity back to the first."""
        back: list[Field] = [self._entities[-1].id_field]
        for key in reversed(self._keys[1:]):
            reverse = cast(ForeignKeyField, key).reverse
            if reverse is None:
                raise ModelError(f"Foreign key '{key.id}' has no reverse key")
            back.append(reverse)
        return KeyPath(back)

    def find_field_parent(self, field: Field) -> Entity | None:
        """The entity on this path that owns ``field``, if any."""
        if field.parent in self._entities:
            return field.parent
        return None

    def to_graph(self) -> EntityGraph:
        from schemaplan.graph import EntityGraph

        return EntityGraph.from_path(self)

    @overload
    def __getitem__(self, i: int) -> Field: ...

    @overload
    def __getitem__(self, i: slice) -> Sequence[Field]: ...

    def __getitem__(self, i: int | slice) -> Field | Sequence[Field]:
        return self._keys[i]

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[Field]:
        return iter(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyPath):
            return NotImplemented
        return self._keys == other._keys

    def __hash__(self) -> int:
        return stable_hash("keypath", [key.id for key in self._keys])

    def __str__(self) -> str:
        return ".".join([self._entities[0].name] + [key.name for key in self._keys[1:]])

    def __repr__(self) -> str:
        return f"KeyPath({self})"
