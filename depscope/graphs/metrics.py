"""Summary metrics computed from a dependency graph."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import List, Optional

from ..config import ComplexityThresholds
from .models import DependencyGraph


@dataclass
class DependencyMetrics:
    total_nodes: int = 0
    total_edges: int = 0
    max_depth: int = 0
    cycles: int = 0
    density: float = 0.0
    average_dependencies: float = 0.0
    complexity: str = "low"  # low | medium | high | extreme
    bottleneck_nodes: List[str] = field(default_factory=list)
    leaf_nodes: List[str] = field(default_factory=list)
    root_nodes: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def compute_metrics(
    graph: DependencyGraph,
    bottleneck_factor: float = 2.0,
    complexity: Optional[ComplexityThresholds] = None,
) -> DependencyMetrics:
    """Compute the summary metrics for *graph*.

    Args:
        graph: Graph to summarize.
        bottleneck_factor: Multiple of the average incoming count a node
            must exceed to count as a bottleneck.
        complexity: Cut-offs for the complexity level.

    Returns:
        DependencyMetrics for the graph.
    """
    total_nodes = graph.node_count
    known = {n.id for n in graph.nodes}
    outgoing = sum(1 for e in graph.edges if e.from_node in known)
    max_depth = graph.max_depth

    return DependencyMetrics(
        total_nodes=total_nodes,
        total_edges=graph.edge_count,
        max_depth=max_depth,
        cycles=len(graph.find_cycles()),
        density=graph.density,
        average_dependencies=outgoing / total_nodes if total_nodes else 0.0,
        complexity=complexity_level(total_nodes, max_depth, complexity),
        bottleneck_nodes=graph.bottleneck_nodes(bottleneck_factor),
        leaf_nodes=graph.leaf_nodes(),
        root_nodes=graph.root_nodes(),
    )


def complexity_level(
    node_count: int,
    max_depth: int,
    thresholds: Optional[ComplexityThresholds] = None,
) -> str:
    t = thresholds or ComplexityThresholds()
    if node_count > t.extreme_nodes or max_depth > t.extreme_depth:
        return "extreme"
    if node_count > t.high_nodes or max_depth > t.high_depth:
        return "high"
    if node_count > t.medium_nodes or max_depth > t.medium_depth:
        return "medium"
    return "low"
