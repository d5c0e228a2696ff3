"""Dependency graph model and its derived queries.

A graph is built once from nodes and edges and then only queried. Every
analytical property (roots, leaves, depth, cycles, density) is recomputed
from ``nodes`` / ``edges`` on each call; nothing is cached on the instance.
Edges may reference ids that are not nodes of the graph (dangling edges).
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, Iterable, List, Optional


class NodeKind(str, Enum):
    PACKAGE = "package"
    TARGET = "target"
    MODULE = "module"
    FRAMEWORK = "framework"
    LIBRARY = "library"
    BINARY = "binary"
    PRODUCT = "product"
    UNKNOWN = "unknown"


class EdgeType(str, Enum):
    DIRECT = "direct"
    INDIRECT = "indirect"
    WEAK = "weak"
    RUNTIME = "runtime"
    BUILD_TIME = "build-time"
    TEST = "test"
    DYNAMIC_LINK = "dynamic-link"
    STATIC_LINK = "static-link"
    MODULE_IMPORT = "module-import"
    PACKAGE = "package"
    TARGET = "target"
    UNKNOWN = "unknown"

    @property
    def category(self) -> str:
        return _EDGE_CATEGORIES.get(self, "unspecified")


_EDGE_CATEGORIES = {
    EdgeType.DIRECT: "structural",
    EdgeType.INDIRECT: "structural",
    EdgeType.WEAK: "runtime",
    EdgeType.RUNTIME: "runtime",
    EdgeType.BUILD_TIME: "build_time",
    EdgeType.TEST: "build_time",
    EdgeType.DYNAMIC_LINK: "linking",
    EdgeType.STATIC_LINK: "linking",
    EdgeType.MODULE_IMPORT: "modular",
    EdgeType.PACKAGE: "modular",
    EdgeType.TARGET: "modular",
}


@dataclass(frozen=True)
class DependencyNode:
    """A node in the dependency graph (package, target, module, ...)."""
    id: str
    name: str
    version: Optional[str] = None
    path: Optional[str] = None
    kind: NodeKind = NodeKind.UNKNOWN
    metadata: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["kind"] = self.kind.value
        return {k: v for k, v in d.items() if v is not None and v != {}}


@dataclass(frozen=True)
class DependencyEdge:
    """A directed edge ``from_node -> to_node`` (dependent -> dependency)."""
    from_node: str
    to_node: str
    edge_type: EdgeType = EdgeType.UNKNOWN
    weight: float = 1.0
    metadata: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["edge_type"] = self.edge_type.value
        return {k: v for k, v in d.items() if v is not None and v != {}}


class DependencyGraph:
    """Complete dependency graph with nodes and edges.

    Duplicate node ids: the last node with a given id wins, placed at the
    position where that id first appeared.
    """

    def __init__(
        self,
        nodes: Iterable[DependencyNode] = (),
        edges: Iterable[DependencyEdge] = (),
        metadata: Optional[Dict[str, str]] = None,
    ):
        by_id: Dict[str, DependencyNode] = {}
        for node in nodes:
            by_id[node.id] = node
        self._nodes = tuple(by_id.values())
        self._edges = tuple(edges)
        self._metadata = dict(metadata or {})

    @property
    def nodes(self) -> List[DependencyNode]:
        return list(self._nodes)

    @property
    def edges(self) -> List[DependencyEdge]:
        return list(self._edges)

    @property
    def metadata(self) -> Dict[str, str]:
        return dict(self._metadata)

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self._nodes],
            "edges": [e.to_dict() for e in self._edges],
            "metadata": dict(self._metadata),
        }

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    @property
    def is_empty(self) -> bool:
        return not self._nodes

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def node(self, node_id: str) -> Optional[DependencyNode]:
        for n in self._nodes:
            if n.id == node_id:
                return n
        return None

    def node_named(self, name: str) -> Optional[DependencyNode]:
        """First node whose ``name`` equals *name*."""
        for n in self._nodes:
            if n.name == name:
                return n
        return None

    def nodes_of_kind(self, kind: NodeKind) -> List[DependencyNode]:
        return [n for n in self._nodes if n.kind == kind]

    def edges_of_type(self, edge_type: EdgeType) -> List[DependencyEdge]:
        return [e for e in self._edges if e.edge_type == edge_type]

    def outgoing_edges(self, node_id: str) -> List[DependencyEdge]:
        return [e for e in self._edges if e.from_node == node_id]

    def incoming_edges(self, node_id: str) -> List[DependencyEdge]:
        return [e for e in self._edges if e.to_node == node_id]

    def direct_dependencies(self, node_id: str) -> List[DependencyNode]:
        targets = {e.to_node for e in self.outgoing_edges(node_id)}
        return [n for n in self._nodes if n.id in targets]

    def dependents(self, node_id: str) -> List[DependencyNode]:
        sources = {e.from_node for e in self.incoming_edges(node_id)}
        return [n for n in self._nodes if n.id in sources]

    # ------------------------------------------------------------------
    # Adjacency indices (rebuilt per query)
    # ------------------------------------------------------------------

    def outgoing_index(self) -> Dict[str, List[str]]:
        index: Dict[str, List[str]] = defaultdict(list)
        for e in self._edges:
            index[e.from_node].append(e.to_node)
        return index

    def incoming_index(self) -> Dict[str, List[str]]:
        index: Dict[str, List[str]] = defaultdict(list)
        for e in self._edges:
            index[e.to_node].append(e.from_node)
        return index

    def incoming_counts(self) -> Dict[str, int]:
        """Incoming-edge count for every node (0 for nodes nothing points at)."""
        counts = {n.id: 0 for n in self._nodes}
        for e in self._edges:
            if e.to_node in counts:
                counts[e.to_node] += 1
        return counts

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def root_nodes(self) -> List[str]:
        """Ids of nodes with no incoming edges."""
        has_incoming = {e.to_node for e in self._edges}
        return [n.id for n in self._nodes if n.id not in has_incoming]

    def leaf_nodes(self) -> List[str]:
        """Ids of nodes with no outgoing edges."""
        has_outgoing = {e.from_node for e in self._edges}
        return [n.id for n in self._nodes if n.id not in has_outgoing]

    def bottleneck_nodes(self, factor: float = 2.0) -> List[str]:
        """Nodes whose incoming count exceeds *factor* x the average.

        The average is integer-truncated, so on sparse graphs any node with
        at least one dependent can qualify.
        """
        counts = self.incoming_counts()
        average = sum(counts.values()) // max(len(counts), 1)
        return [node_id for node_id, count in counts.items() if count > average * factor]

    @property
    def density(self) -> float:
        n = self.node_count
        if n <= 1:
            return 0.0
        return self.edge_count / (n * (n - 1))

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    def find_cycles(self) -> List[List[str]]:
        """Cycles found by DFS over every unvisited node.

        Each cycle is the slice of the current DFS path from the revisited
        node through the node holding the back edge. Overlapping cycles are
        all reported; there is no de-duplication.
        """
        adjacency = self.outgoing_index()
        visited = set()
        on_stack = set()
        path: List[str] = []
        cycles: List[List[str]] = []

        for start in self._nodes:
            if start.id in visited:
                continue
            visited.add(start.id)
            on_stack.add(start.id)
            path.append(start.id)
            iterators = [iter(adjacency.get(start.id, ()))]

            while iterators:
                target = next(iterators[-1], None)
                if target is None:
                    iterators.pop()
                    on_stack.discard(path.pop())
                    continue
                if target not in visited:
                    visited.add(target)
                    on_stack.add(target)
                    path.append(target)
                    iterators.append(iter(adjacency.get(target, ())))
                elif target in on_stack:
                    cycles.append(path[path.index(target):])

        return cycles

    @property
    def has_cycles(self) -> bool:
        return bool(self.find_cycles())

    # ------------------------------------------------------------------
    # Depth
    # ------------------------------------------------------------------

    def dependency_depths(self) -> Dict[str, int]:
        """Depth of every node that resolves.

        depth = 0 with no incoming edges, else 1 + max depth of its sources.
        Iterates to a fixed point, so members of a cycle (and anything only
        reachable through one) never resolve and are absent from the map.
        Edges from ids outside the graph are ignored.
        """
        known = {n.id for n in self._nodes}
        sources: Dict[str, List[str]] = defaultdict(list)
        for e in self._edges:
            if e.from_node in known and e.to_node in known:
                sources[e.to_node].append(e.from_node)

        depths: Dict[str, int] = {}
        changed = True
        while changed:
            changed = False
            for n in self._nodes:
                if n.id in depths:
                    continue
                incoming = sources.get(n.id)
                if not incoming:
                    depths[n.id] = 0
                    changed = True
                elif all(s in depths for s in incoming):
                    depths[n.id] = 1 + max(depths[s] for s in incoming)
                    changed = True
        return depths

    @property
    def max_depth(self) -> int:
        return max(self.dependency_depths().values(), default=0)
