"""Index: a denormalized materialized view over a key path."""

from __future__ import annotations

from typing import Iterable

from schemaplan.errors import InvalidIndexError
from schemaplan.fields import Field
from schemaplan.graph import EntityGraph
from schemaplan.hashing import stable_hash
from schemaplan.keypath import KeyPath


def _ids(fields: Iterable[Field]) -> list[str]:
    return sorted(f.id for f in fields)


class Index:
    """A view keyed by hash fields, ordered by order fields, carrying extra fields.

    The view's graph is frozen: planners clone it before pruning.
    """

    def __init__(
        self,
        hash_fields: Iterable[Field],
        order_fields: Iterable[Field],
        extra_fields: Iterable[Field],
        path: KeyPath,
        *,
        key: str | None = None,
    ) -> None:
        self.hash_fields = frozenset(hash_fields)
        self.order_fields = tuple(dict.fromkeys(order_fields))
        self.extra_fields = frozenset(extra_fields) - self.hash_fields - set(self.order_fields)
        self.path = path

        if not self.hash_fields:
            raise InvalidIndexError("An index needs at least one hash field", key=key)
        overlap = self.hash_fields & set(self.order_fields)
        if overlap:
            raise InvalidIndexError(
                f"Fields {_ids(overlap)} cannot be both hash and order fields", key=key
            )
        off_path = [f for f in self.all_fields if path.find_field_parent(f) is None]
        if off_path:
            raise InvalidIndexError(
                f"Fields {_ids(off_path)} are not on index path '{path}'", key=key
            )

        self.graph = EntityGraph.from_path(path).freeze()
        self.key = key or f"i{self._digest():015x}"

    @property
    def all_fields(self) -> frozenset[Field]:
        return self.hash_fields | frozenset(self.order_fields) | self.extra_fields

    def _digest(self) -> int:
        return stable_hash(
            "index",
            _ids(self.hash_fields),
            [f.id for f in self.order_fields],
            _ids(self.extra_fields),
            hash(self.path),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Index):
            return NotImplemented
        return (
            self.hash_fields == other.hash_fields
            and self.order_fields == other.order_fields
            and self.extra_fields == other.extra_fields
            and self.path == other.path
        )

    def __hash__(self) -> int:
        return self._digest()

    def __repr__(self) -> str:
        hash_part = ", ".join(str(f) for f in sorted(self.hash_fields, key=lambda f: f.id))
        order_part = ", ".join(str(f) for f in self.order_fields)
        extra_part = ", ".join(str(f) for f in sorted(self.extra_fields, key=lambda f: f.id))
        return f"Index({self.key}: [{hash_part}][{order_part}]->[{extra_part}] $ {self.path})"
