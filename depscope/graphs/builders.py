"""Graph builders: turn parser output into a DependencyGraph.

The graph model knows nothing about manifest formats; these functions are
the only place facts and targets become nodes and edges.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from ..models import DependencyFact, SourceKind
from ..parsers.pbxproj_parser import XcodeTarget
from .models import DependencyEdge, DependencyGraph, DependencyNode, EdgeType, NodeKind

_SOURCE_NODE_KINDS = {
    SourceKind.SOURCE_CONTROL: NodeKind.PACKAGE,
    SourceKind.REGISTRY: NodeKind.PACKAGE,
    SourceKind.LOCAL: NodeKind.PACKAGE,
    SourceKind.BINARY: NodeKind.BINARY,
    SourceKind.TARGET: NodeKind.TARGET,
}

_TARGET_NODE_KINDS = {
    "application": NodeKind.PRODUCT,
    "framework": NodeKind.FRAMEWORK,
    "library": NodeKind.LIBRARY,
    "test": NodeKind.TARGET,
    "bundle": NodeKind.PRODUCT,
}


def build_pinned_graph(
    facts: Iterable[DependencyFact],
    metadata: Optional[Dict[str, str]] = None,
) -> DependencyGraph:
    """One node per pinned dependency, keyed by name. A lock file has no edges."""
    nodes: List[DependencyNode] = []
    for fact in facts:
        node_meta = {"source": fact.kind.value}
        if fact.source_location:
            node_meta["location"] = fact.source_location
        node_meta.update(fact.metadata)
        nodes.append(DependencyNode(
            id=fact.name,
            name=fact.name,
            version=fact.version or None,
            kind=_SOURCE_NODE_KINDS.get(fact.kind, NodeKind.UNKNOWN),
            metadata=node_meta,
        ))
    return DependencyGraph(nodes=nodes, metadata=dict(metadata or {}, graph_type="pinned"))


def build_target_graph(
    targets: Iterable[XcodeTarget],
    metadata: Optional[Dict[str, str]] = None,
) -> DependencyGraph:
    """One node per target; a ``target`` edge for each dependency reference.

    References that did not resolve to a known target stay as dangling edges.
    """
    nodes: List[DependencyNode] = []
    edges: List[DependencyEdge] = []
    for target in targets:
        node_meta = {"target_type": target.target_type}
        if target.product_type:
            node_meta["product_type"] = target.product_type
        if target.product_name:
            node_meta["product_name"] = target.product_name
        nodes.append(DependencyNode(
            id=target.id,
            name=target.name,
            kind=_TARGET_NODE_KINDS.get(target.target_type, NodeKind.TARGET),
            metadata=node_meta,
        ))
        for dep_id in target.dependencies:
            edges.append(DependencyEdge(
                from_node=target.id,
                to_node=dep_id,
                edge_type=EdgeType.TARGET,
            ))
    return DependencyGraph(nodes=nodes, edges=edges, metadata=dict(metadata or {}, graph_type="targets"))
