"""Statements: writes compiled against indexes, and the reads they derive."""

from schemaplan.statements.base import (
    Statement,
    StatementConditions,
    StatementSettings,
    StatementSupportQuery,
)
from schemaplan.statements.conditions import Condition, FieldSetting
from schemaplan.statements.insert import Insert
from schemaplan.statements.support import SupportQuery
from schemaplan.statements.update import Update

__all__ = [
    "Condition",
    "FieldSetting",
    "Statement",
    "StatementConditions",
    "StatementSettings",
    "StatementSupportQuery",
    "Insert",
    "Update",
    "SupportQuery",
]
