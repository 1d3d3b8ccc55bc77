"""UpdatePlanner: compile write statements against a set of indexes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from schemaplan.config import PlannerConfig
from schemaplan.errors import InvalidStatementError
from schemaplan.index import Index
from schemaplan.statements.base import Statement, StatementSupportQuery
from schemaplan.statements.support import SupportQuery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexUpdatePlan:
    """What one write statement must do to keep one index current."""

    statement: Statement
    index: Index
    requires_insert: bool
    requires_delete: bool
    support_queries: tuple[SupportQuery, ...] = field(default_factory=tuple)


class UpdatePlanner:
    """Decide, per index, how a write statement is carried out.

    With ``memoize_support_queries`` set, derived queries are kept per
    (statement, index) pair for the planner's lifetime. The memo is not
    bounded; call ``clear_cache`` once planned statements are discarded.

    Logging goes to the ``schemaplan`` logger hierarchy and is left to the
    application to configure.

    Example:
        ```python
        planner = UpdatePlanner([tweets_by_user, users_by_id])
        for plan in planner.plan(insert):
            print(plan.index.key, plan.requires_delete, plan.support_queries)
        ```
    """

    def __init__(self, indexes: Iterable[Index], config: PlannerConfig | None = None) -> None:
        self.indexes = list(dict.fromkeys(indexes))
        self.config = config or PlannerConfig()
        self._memo: dict[tuple[Statement, Index], tuple[SupportQuery, ...]] = {}

    def _writer(self, statement: Statement) -> StatementSupportQuery:
        if statement.read_only or not isinstance(statement, StatementSupportQuery):
            raise InvalidStatementError(
                f"Only write statements can be planned against indexes, got {statement!r}"
            )
        return statement

    def modified_indexes(self, statement: Statement) -> list[Index]:
        writer = self._writer(statement)
        return [index for index in self.indexes if writer.modifies_index(index)]

    def support_queries_for(self, statement: Statement, index: Index) -> tuple[SupportQuery, ...]:
        writer = self._writer(statement)
        if not self.config.memoize_support_queries:
            return tuple(writer.support_queries(index))

        memo_key = (statement, index)
        queries = self._memo.get(memo_key)
        if queries is None:
            queries = tuple(writer.support_queries(index))
            self._memo[memo_key] = queries
        return queries

    def plan(self, statement: Statement) -> list[IndexUpdatePlan]:
        """One plan per index the statement modifies, in index order."""
        writer = self._writer(statement)
        plans = []
        for index in self.modified_indexes(statement):
            plans.append(
                IndexUpdatePlan(
                    statement=statement,
                    index=index,
                    requires_insert=writer.requires_insert(index),
                    requires_delete=writer.requires_delete(index),
                    support_queries=self.support_queries_for(statement, index),
                )
            )
        logger.debug(
            "Planned %s against %d of %d indexes", statement, len(plans), len(self.indexes)
        )
        return plans

    def plan_all(self, statements: Iterable[Statement]) -> dict[Statement, list[IndexUpdatePlan]]:
        return {statement: self.plan(statement) for statement in statements}

    def support_queries(self, statement: Statement) -> list[SupportQuery]:
        """Every support query the statement needs across all indexes.

        With ``dedupe_support_queries`` set, reads that are identical apart
        from the index they serve are returned once, first occurrence wins.
        """
        queries = [q for plan in self.plan(statement) for q in plan.support_queries]
        if not self.config.dedupe_support_queries:
            return queries

        seen: set[tuple[Any, ...]] = set()
        unique = []
        for query in queries:
            key = _freeze_key(query.query_key())
            if key in seen:
                continue
            seen.add(key)
            unique.append(query)
        return unique

    def clear_cache(self) -> None:
        self._memo.clear()


def _freeze_key(key: tuple[Any, ...]) -> tuple[Any, ...]:
    return tuple(tuple(part) if isinstance(part, list) else part for part in key)
