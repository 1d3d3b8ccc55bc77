"""Structured error types for schemaplan."""

from __future__ import annotations


class SchemaplanError(Exception):
    """Base error for all schemaplan errors."""


class ModelError(SchemaplanError):
    """Raised when the entity model or a key path is malformed."""


class InvalidIndexError(ModelError):
    """Raised when an index references fields that are not on its path."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class InvalidStatementError(SchemaplanError):
    """Raised when a statement fails its structural preconditions."""


class PlanningInvariantError(SchemaplanError):
    """Raised when plan derivation hits an internal-consistency fault.

    Callers that only derive support queries for indexes a statement
    modifies should never see this.
    """

    def __init__(self, message: str, *, entities: list[str] | None = None) -> None:
        self.entities = entities or []
        super().__init__(message)


class WorkloadError(SchemaplanError):
    """Raised when a workload document fails validation."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        self.source = source
        prefix = f"{source}: " if source else ""
        super().__init__(f"{prefix}{message}")
