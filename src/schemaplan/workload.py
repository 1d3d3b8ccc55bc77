"""Workload documents: YAML descriptions of a model, its indexes and writes.

Example document:

```yaml
entities:
  User:
    fields:
      UserId: id
      City: {type: string, size: 20}
  Tweet:
    count: 1000
    fields:
      TweetId: id
      Body: {type: string, size: 140}
      User: {type: foreign_key, entity: User, reverse: Tweets}

indexes:
  tweets_by_user:
    path: Tweet.User
    hash: [User.UserId]
    order: [Tweet.TweetId]
    extra: [Tweet.Body]

statements:
  - insert: Tweet
    set: {TweetId: 5, Body: hi}
    connect: {User: 7}
    label: AddTweet
  - update: Tweet
    set: {Body: edited}
    where:
      - {field: Tweet.TweetId, op: "=", value: 5}

config:
  memoize_support_queries: true
```

Foreign keys are declared on one side only; the reverse key is created on the
target entity automatically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, StrictBool, field_validator
from pydantic import Field as PydanticField
from pydantic import ValidationError as PydanticValidationError

from schemaplan.config import PlannerConfig
from schemaplan.entity import Entity
from schemaplan.errors import ModelError, WorkloadError
from schemaplan.fields import Field, FieldKind
from schemaplan.index import Index
from schemaplan.keypath import KeyPath
from schemaplan.model import Model
from schemaplan.planner import UpdatePlanner
from schemaplan.statements import Condition, FieldSetting, Insert, Statement, Update

logger = logging.getLogger(__name__)


# --- Document schema ---


class FieldDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: FieldKind = FieldKind.STRING
    size: int | None = None
    entity: str | None = None
    reverse: str | None = None
    relationship: Literal["one", "many"] = "one"


class EntityDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    count: int = PydanticField(default=1, ge=1)
    fields: dict[str, FieldDoc]

    @field_validator("fields", mode="before")
    @classmethod
    def _expand_shorthand(cls, value: Any) -> Any:
        # `UserId: id` is shorthand for `UserId: {type: id}`
        if isinstance(value, dict):
            return {k: {"type": v} if isinstance(v, str) else v for k, v in value.items()}
        return value


class IndexDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: Union[str, list[str]]
    hash: list[str] = PydanticField(min_length=1)
    order: list[str] = PydanticField(default_factory=list)
    extra: list[str] = PydanticField(default_factory=list)


class ConditionDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    field: str
    op: str = "="
    value: Any = None


class InsertDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    insert: str
    set: dict[str, Any]
    connect: dict[str, Any] = PydanticField(default_factory=dict)
    label: str | None = None
    group: str | None = None


class UpdateDoc(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    update: str
    from_: Union[str, list[str], None] = PydanticField(default=None, alias="from")
    set: dict[str, Any]
    where: list[ConditionDoc] = PydanticField(default_factory=list)
    label: str | None = None
    group: str | None = None


class ConfigDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    dedupe_support_queries: StrictBool = True
    memoize_support_queries: StrictBool = False


class WorkloadDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    entities: dict[str, EntityDoc]
    indexes: dict[str, IndexDoc] = PydanticField(default_factory=dict)
    statements: list[Union[InsertDoc, UpdateDoc]] = PydanticField(default_factory=list)
    config: ConfigDoc = PydanticField(default_factory=ConfigDoc)


# --- Loaded workload ---


@dataclass
class Workload:
    """A model with its candidate indexes and write statements."""

    model: Model
    indexes: dict[str, Index] = field(default_factory=dict)
    statements: list[Statement] = field(default_factory=list)
    config: PlannerConfig = field(default_factory=PlannerConfig)

    def planner(self) -> UpdatePlanner:
        return UpdatePlanner(self.indexes.values(), self.config)

    def statement(self, label: str) -> Statement:
        for statement in self.statements:
            if statement.label == label:
                return statement
        raise KeyError(f"No statement labelled '{label}'")


def load_workload(path: str | Path) -> Workload:
    """Load a workload from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise WorkloadError("File not found", source=str(path))
    return parse_workload(path.read_text(), source=str(path))


def parse_workload(text: str, *, source: str | None = None) -> Workload:
    """Parse a workload from YAML text."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise WorkloadError(f"Invalid YAML: {e}", source=source) from e
    if not isinstance(data, dict):
        raise WorkloadError("Workload document must be a mapping", source=source)
    return build_workload(data, source=source)


def build_workload(data: dict[str, Any], *, source: str | None = None) -> Workload:
    """Validate a workload document and build model objects from it.

    Statements failing their own preconditions raise InvalidStatementError
    unchanged; every other problem is reported as WorkloadError.
    """
    try:
        doc = WorkloadDoc.model_validate(data)
    except PydanticValidationError as e:
        raise WorkloadError(str(e), source=source) from e

    try:
        model = _build_model(doc)
        indexes = {key: _build_index(model, key, idx) for key, idx in doc.indexes.items()}
        statements = [_build_statement(model, s) for s in doc.statements]
    except ModelError as e:
        raise WorkloadError(str(e), source=source) from e

    logger.debug(
        "Loaded workload %s: %d entities, %d indexes, %d statements",
        source or "<text>",
        len(model),
        len(indexes),
        len(statements),
    )
    config = PlannerConfig(**doc.config.model_dump())
    return Workload(model=model, indexes=indexes, statements=statements, config=config)


def _build_model(doc: WorkloadDoc) -> Model:
    model = Model()
    foreign_keys: list[tuple[Entity, str, FieldDoc]] = []
    for name, entity_doc in doc.entities.items():
        entity = model.add_entity(Entity(name, count=entity_doc.count))
        for field_name, field_doc in entity_doc.fields.items():
            if field_doc.type is FieldKind.FOREIGN_KEY:
                foreign_keys.append((entity, field_name, field_doc))
                continue
            if field_doc.entity is not None or field_doc.reverse is not None:
                raise ModelError(
                    f"Only foreign keys may reference an entity: '{name}.{field_name}'"
                )
            entity.add_field(Field(field_name, field_doc.type, size=field_doc.size))

    # Keys are wired once every entity exists so they may point forward
    for entity, field_name, field_doc in foreign_keys:
        if field_doc.entity is None:
            raise ModelError(f"Foreign key '{entity.name}.{field_name}' needs a target entity")
        key = model.connect(
            entity,
            field_name,
            field_doc.entity,
            reverse_name=field_doc.reverse,
            relationship=field_doc.relationship,
        )
        if field_doc.size is not None:
            key.size = field_doc.size
    return model


def _build_index(model: Model, key: str, doc: IndexDoc) -> Index:
    return Index(
        [model.find_field(f) for f in doc.hash],
        [model.find_field(f) for f in doc.order],
        [model.find_field(f) for f in doc.extra],
        KeyPath.parse(model, doc.path),
        key=key,
    )


def _settings(entity: Entity, values: dict[str, Any]) -> list[FieldSetting]:
    settings = []
    for name, value in values.items():
        target = entity[name]
        settings.append(FieldSetting(target, target.coerce(value)))
    return settings


def _build_statement(model: Model, doc: InsertDoc | UpdateDoc) -> Statement:
    if isinstance(doc, InsertDoc):
        entity = model[doc.insert]
        connections = []
        for key_name, value in doc.connect.items():
            key = entity[key_name]
            if not key.is_foreign_key:
                raise ModelError(f"Cannot connect through non-key field '{key.id}'")
            connections.append(Condition(key, "=", key.coerce(value)))
        return Insert(
            entity,
            _settings(entity, doc.set),
            connections,
            group=doc.group,
            label=doc.label,
        )

    entity = model[doc.update]
    key_path = KeyPath.parse(model, doc.from_) if doc.from_ is not None else None
    conditions = []
    for cond in doc.where:
        target = model.find_field(cond.field)
        conditions.append(Condition(target, cond.op, target.coerce(cond.value)))
    return Update(
        entity,
        _settings(entity, doc.set),
        conditions,
        key_path=key_path,
        group=doc.group,
        label=doc.label,
    )
