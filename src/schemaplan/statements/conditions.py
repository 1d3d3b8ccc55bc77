"""Condition and FieldSetting value objects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from schemaplan.errors import InvalidStatementError
from schemaplan.fields import Field
from schemaplan.hashing import stable_hash

OPERATORS = ("=", "!=", "<", "<=", ">", ">=")


def canonical_value(value: Any) -> Any:
    """A type-tagged form of ``value`` used for both equality and hashing.

    Python treats ``1``, ``1.0`` and ``True`` as equal; bound values of
    different types are distinct here.
    """
    if isinstance(value, (list, tuple)):
        return ("list", tuple(canonical_value(v) for v in value))
    if value is None:
        return None
    if isinstance(value, float) and value == 0:
        value = 0.0
    return (type(value).__name__, value)


def render_value(value: Any) -> str:
    if value is None:
        return "?"
    if isinstance(value, str):
        return '"' + value.replace('"', '\\"') + '"'
    return str(value)


@dataclass(frozen=True)
class Condition:
    """A predicate on one field: ``field operator value``.

    ``value`` None means the value is unbound and supplied as a parameter
    when the statement executes.
    """

    field: Field
    operator: str = "="
    value: Any = None

    def __post_init__(self) -> None:
        if self.operator not in OPERATORS:
            raise InvalidStatementError(
                f"Unsupported operator {self.operator!r} on '{self.field.id}'; "
                f"expected one of {list(OPERATORS)}"
            )

    @property
    def is_range(self) -> bool:
        return self.operator != "="

    def __hash__(self) -> int:
        return stable_hash(
            "condition", self.field.id, self.operator, canonical_value(self.value)
        )

    def __eq__(self, other: object) -> bool:  # type: ignore[override]
        if not isinstance(other, Condition):
            return NotImplemented
        return (
            self.field == other.field
            and self.operator == other.operator
            and canonical_value(self.value) == canonical_value(other.value)
        )

    def __str__(self) -> str:
        return f"{self.field} {self.operator} {render_value(self.value)}"


@dataclass(frozen=True)
class FieldSetting:
    """A value a write statement supplies for one field."""

    field: Field
    value: Any = None

    def __hash__(self) -> int:
        return stable_hash("setting", self.field.id, canonical_value(self.value))

    def __eq__(self, other: object) -> bool:  # type: ignore[override]
        if not isinstance(other, FieldSetting):
            return NotImplemented
        return (
            self.field == other.field
            and canonical_value(self.value) == canonical_value(other.value)
        )

    def __str__(self) -> str:
        return f"{self.field.name} = {render_value(self.value)}"
