"""EntityGraph: entities connected by foreign key edges.

The graph is a networkx MultiGraph keyed by entity name. Each node carries its
Entity and each edge its canonical Edge, so cloning a graph only copies
names and references.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations, permutations
from typing import TYPE_CHECKING, Iterable, cast

import networkx as nx

from schemaplan.entity import Entity
from schemaplan.errors import ModelError, PlanningInvariantError
from schemaplan.fields import Field, ForeignKeyField
from schemaplan.hashing import stable_hash

if TYPE_CHECKING:
    from schemaplan.keypath import KeyPath


@dataclass(frozen=True)
class Edge:
    """A foreign key edge from ``source`` to ``target`` (entity names)."""

    source: str
    target: str
    key: ForeignKeyField

    def canonical(self) -> Edge:
        """One orientation per undirected edge: the one with the smaller key id."""
        reverse = self.key.reverse
        if reverse is None or self.key.id <= reverse.id:
            return self
        return Edge(self.target, self.source, reverse)

    def key_from(self, name: str) -> ForeignKeyField | None:
        """The key to follow when leaving entity ``name`` along this edge."""
        if name == self.source:
            return self.key
        return self.key.reverse


class EntityGraph:
    """An undirected multigraph of entities; edges are traversable both ways."""

    def __init__(self, entities: Iterable[Entity] = ()) -> None:
        self._graph = nx.MultiGraph()
        self._frozen = False
        for entity in entities:
            self.add_node(entity)

    @classmethod
    def from_path(cls, path: KeyPath) -> EntityGraph:
        graph = cls(path.entities)
        entities = path.entities
        for i, key in enumerate(path[1:]):
            graph.add_edge(entities[i], entities[i + 1], key)
        return graph

    # --- Mutation ---

    def add_node(self, entity: Entity) -> None:
        self._check_mutable()
        if entity.name not in self._graph:
            self._graph.add_node(entity.name, entity=entity)

    def add_edge(self, source: Entity, target: Entity, key: Field) -> None:
        """Connect ``source`` and ``target`` through ``key``.

        ``key`` may be given from either side of the relationship. Missing
        nodes are added.
        """
        self._check_mutable()
        if not key.is_foreign_key:
            raise ModelError(f"Edge key '{key.id}' is not a foreign key")
        fk = cast(ForeignKeyField, key)
        if fk.parent == source and fk.entity == target:
            edge = Edge(source.name, target.name, fk)
        elif fk.parent == target and fk.entity == source:
            edge = Edge(target.name, source.name, fk)
        else:
            raise ModelError(
                f"Key '{key.id}' does not connect '{source.name}' and '{target.name}'"
            )
        edge = edge.canonical()
        self.add_node(source)
        self.add_node(target)
        # Keyed by key id, so adding the same relationship twice is a no-op
        self._graph.add_edge(edge.source, edge.target, key=edge.key.id, edge=edge)

    def remove_nodes(self, entities: Iterable[Entity | str]) -> None:
        """Remove entities and every edge touching them."""
        self._check_mutable()
        self._graph.remove_nodes_from([e if isinstance(e, str) else e.name for e in entities])

    def keep_connecting(self, entities: Iterable[Entity]) -> None:
        """Keep ``entities`` plus the entities linking them; remove the rest.

        An entity survives when it lies on a shortest path between two of
        ``entities``, so pruning never splits a connected graph.
        """
        self._check_mutable()
        names = sorted({e.name for e in entities if e.name in self._graph})
        keep = set(names)
        for a, b in combinations(names, 2):
            if nx.has_path(self._graph, a, b):
                keep.update(nx.shortest_path(self._graph, a, b))
        self._graph.remove_nodes_from([n for n in list(self._graph) if n not in keep])

    def freeze(self) -> EntityGraph:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def clone(self) -> EntityGraph:
        """An unfrozen copy sharing no mutable state with this graph."""
        copy = EntityGraph()
        copy._graph = self._graph.copy()
        return copy

    def _check_mutable(self) -> None:
        if self._frozen:
            raise PlanningInvariantError(
                "Attempted to modify a frozen entity graph; clone it first",
                entities=sorted(self._graph),
            )

    # --- Queries ---

    def _entity(self, name: str) -> Entity:
        return self._graph.nodes[name]["entity"]

    @property
    def entities(self) -> frozenset[Entity]:
        return frozenset(self._entity(name) for name in self._graph)

    @property
    def edges(self) -> frozenset[Edge]:
        return frozenset(edge for _, _, edge in self._graph.edges(data="edge"))

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def __contains__(self, entity: object) -> bool:
        if isinstance(entity, Entity):
            return entity.name in self._graph and self._entity(entity.name) == entity
        return entity in self._graph

    def find_field_parent(self, field: Field) -> Entity | None:
        """The entity in this graph owning ``field``, if any."""
        if field.parent is not None and field.parent.name in self._graph:
            return self._entity(field.parent.name)
        return None

    def is_connected(self) -> bool:
        if not self._graph:
            return False
        return nx.is_connected(self._graph)

    def longest_path(self) -> KeyPath:
        """The longest simple path through this graph.

        Ties between paths with the same number of entities are broken by the
        lexicographically smallest sequence of entity names, then of key ids.
        """
        from schemaplan.keypath import KeyPath

        if not self._graph:
            raise PlanningInvariantError("Cannot find a path through an empty graph")
        if not self.is_connected():
            raise PlanningInvariantError(
                "Cannot find a single path through a disconnected graph",
                entities=sorted(self._graph),
            )

        # Single-entity fallback; any path of two or more entities ranks first
        best: tuple[int, tuple[str, ...], tuple[str, ...]] = (-1, (min(self._graph),), ())
        best_keys: list[ForeignKeyField] = []
        for source, target in permutations(sorted(self._graph), 2):
            for hops in nx.all_simple_edge_paths(self._graph, source, target):
                names = [source]
                keys: list[ForeignKeyField] = []
                for u, v, key_id in hops:
                    key = self._graph.edges[u, v, key_id]["edge"].key_from(u)
                    if key is None:
                        break
                    names.append(v)
                    keys.append(key)
                else:
                    rank = (-len(names), tuple(names), tuple(k.id for k in keys))
                    if rank < best:
                        best = rank
                        best_keys = keys

        first = best[1][0]
        return KeyPath([self._entity(first).id_field, *best_keys])

    # --- Structural identity ---

    def _canonical_edges(self) -> list[tuple[str, str, str]]:
        return sorted((e.source, e.target, e.key.id) for e in self.edges)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EntityGraph):
            return NotImplemented
        return set(self._graph) == set(other._graph) and self.edges == other.edges

    def __hash__(self) -> int:
        return stable_hash("graph", sorted(self._graph), self._canonical_edges())

    def __repr__(self) -> str:
        edges = ", ".join(f"{s}-[{k}]->{t}" for s, t, k in self._canonical_edges())
        return f"EntityGraph(nodes={sorted(self._graph)}, edges=[{edges}])"
