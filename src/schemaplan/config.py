"""Configuration for the update planner."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class PlannerConfig:
    """Configuration for UpdatePlanner."""

    dedupe_support_queries: bool = True
    memoize_support_queries: bool = False
