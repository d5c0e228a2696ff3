"""Relevance ranking of declared dependencies.

Combines four signals into a 0-100 score:

- import frequency: how often and how widely the dependency is imported
- bottleneck: many graph nodes depend on it
- directness: it is a root of the graph
- inverse depth: shallower dependencies rank higher
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from ..config import RankingWeights
from ..graphs.models import DependencyGraph
from ..models import DependencyFact, DependencyScore, ScoreBreakdown
from .models import ImportMetrics


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class DependencyRanker:
    """Scores facts against a graph and the import scan of the project."""

    def __init__(
        self,
        graph: DependencyGraph,
        import_metrics: Optional[Dict[str, ImportMetrics]] = None,
        weights: Optional[RankingWeights] = None,
        bottleneck_factor: float = 2.0,
    ):
        self.graph = graph
        self.import_metrics = dict(import_metrics or {})
        self.weights = weights or RankingWeights()
        self.bottleneck_factor = bottleneck_factor

    def rank(self, facts: Iterable[DependencyFact]) -> List[DependencyScore]:
        """Score every fact and return them highest first.

        Ties keep the input order.
        """
        facts = list(facts)
        depths = self.graph.dependency_depths()
        max_depth = max(depths.values(), default=0)
        roots = set(self.graph.root_nodes())
        bottlenecks = set(self.graph.bottleneck_nodes(self.bottleneck_factor))

        max_total = max(
            (self.import_metrics[f.name].total_imports
             for f in facts if f.name in self.import_metrics),
            default=0,
        )

        scores = []
        for fact in facts:
            node = self.graph.node_named(fact.name)
            node_id = node.id if node is not None else None

            frequency = self._import_frequency(fact, max_total)
            is_bottleneck = node_id in bottlenecks
            is_direct = node_id in roots
            depth_score = 0.0
            if node_id in depths and max_depth > 0:
                depth_score = 1.0 - depths[node_id] / max_depth

            w = self.weights
            raw = (
                frequency * w.import_frequency
                + (1.0 if is_bottleneck else 0.0) * w.bottleneck
                + (1.0 if is_direct else 0.0) * w.direct
                + depth_score * w.depth
            )
            scores.append(DependencyScore(
                name=fact.name,
                score=_clamp(raw * 100.0, 0.0, 100.0),
                breakdown=ScoreBreakdown(
                    import_frequency=frequency,
                    is_bottleneck=is_bottleneck,
                    is_direct=is_direct,
                    transitive_depth=depth_score,
                ),
            ))

        return sorted(scores, key=lambda s: s.score, reverse=True)

    def _import_frequency(self, fact: DependencyFact, max_total: int) -> float:
        metrics = self.import_metrics.get(fact.name)
        if metrics is not None:
            ratio = metrics.total_imports / max_total if max_total > 0 else 0.0
            blended = (
                ratio * self.weights.import_count_blend
                + metrics.files_coverage * self.weights.coverage_blend
            )
            return _clamp(blended)
        if fact.import_count is not None:
            return 1.0 if fact.import_count > 0 else 0.0
        return 0.0
