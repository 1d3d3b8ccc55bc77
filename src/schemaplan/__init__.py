"""schemaplan: compile write statements against denormalized indexes."""

__version__ = "0.1.0"

from schemaplan.config import PlannerConfig
from schemaplan.entity import Entity
from schemaplan.errors import (
    InvalidIndexError,
    InvalidStatementError,
    ModelError,
    PlanningInvariantError,
    SchemaplanError,
    WorkloadError,
)
from schemaplan.fields import Field, FieldKind, ForeignKeyField
from schemaplan.graph import Edge, EntityGraph
from schemaplan.index import Index
from schemaplan.keypath import KeyPath
from schemaplan.model import Model
from schemaplan.planner import IndexUpdatePlan, UpdatePlanner
from schemaplan.statements import (
    Condition,
    FieldSetting,
    Insert,
    Statement,
    SupportQuery,
    Update,
)
from schemaplan.workload import Workload, load_workload, parse_workload

__all__ = [
    "__version__",
    "Entity",
    "Field",
    "FieldKind",
    "ForeignKeyField",
    "Model",
    "KeyPath",
    "Edge",
    "EntityGraph",
    "Index",
    "Condition",
    "FieldSetting",
    "Statement",
    "Insert",
    "Update",
    "SupportQuery",
    "UpdatePlanner",
    "IndexUpdatePlan",
    "PlannerConfig",
    "Workload",
    "load_workload",
    "parse_workload",
    "SchemaplanError",
    "ModelError",
    "InvalidIndexError",
    "InvalidStatementError",
    "PlanningInvariantError",
    "WorkloadError",
]
