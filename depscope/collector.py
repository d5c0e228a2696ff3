"""Collector: orchestrates discovery, parsing, graph analysis and ranking."""

from __future__ import annotations

import dataclasses
import os
import time
from typing import Dict, List, Optional

from .config import AnalysisConfig
from .discovery import (
    detect_project_type,
    find_package_manifest,
    find_pbxproj_files,
    find_resolved_files,
)
from .errors import ManifestError, ScanTimeoutError, read_manifest_text
from .graphs.builders import build_pinned_graph, build_target_graph
from .graphs.metrics import DependencyMetrics, compute_metrics
from .graphs.models import DependencyGraph
from .logging import get_logger
from .models import DependencyFact, DependencyIssue, DependencyScore
from .package_analysis.conflicts import (
    analyze_duplicate_pins,
    analyze_requirements,
    detect_conflicts,
)
from .package_analysis.import_analysis import ImportScanner
from .package_analysis.issues import (
    conflict_issue,
    cycle_issue,
    duplicate_issue,
    parse_error_issue,
    requirement_issue,
    sort_issues,
    unused_issues,
)
from .package_analysis.models import ImportScanResult, VersionConflict
from .package_analysis.ranking import DependencyRanker
from .parsers.pbxproj_parser import PbxprojParser, ProjectParseResult
from .parsers.resolved_parser import (
    ParseResult,
    ResolvedParser,
    compare_requirements_with_resolved,
    parse_package_declarations,
)

logger = get_logger("collector")


class AnalysisResult:
    """Container for everything one analysis run produced.

    ``scores`` rank the pinned dependencies against ``pinned_graph``. A lock
    file records no edges between packages, so in that graph every pin is a
    root, none is a bottleneck and the depth term is 0: the scores differ
    only by import frequency from ``import_scan``. Target structure lives in
    ``target_graphs`` and does not feed the ranking.
    """

    def __init__(self, root: str = ""):
        self.root = root
        self.project_type: str = "unknown"
        self.resolved: List[ParseResult] = []
        self.projects: List[ProjectParseResult] = []
        self.facts: List[DependencyFact] = []
        self.pinned_graph: Optional[DependencyGraph] = None
        self.target_graphs: Dict[str, DependencyGraph] = {}
        self.pinned_metrics: Optional[DependencyMetrics] = None
        self.target_metrics: Dict[str, DependencyMetrics] = {}
        self.conflicts: List[VersionConflict] = []
        self.import_scan: Optional[ImportScanResult] = None
        self.scores: List[DependencyScore] = []
        self.issues: List[DependencyIssue] = []
        self.duration_seconds: float = 0.0

    @property
    def has_errors(self) -> bool:
        return any(i.severity.level >= 3 for i in self.issues)

    def to_dict(self) -> dict:
        d = {
            "root": self.root,
            "project_type": self.project_type,
            "resolved": [r.to_dict() for r in self.resolved],
            "projects": [p.to_dict() for p in self.projects],
            "conflicts": [c.to_dict() for c in self.conflicts],
            "scores": [s.to_dict() for s in self.scores],
            "issues": [i.to_dict() for i in self.issues],
            "duration_seconds": round(self.duration_seconds, 3),
        }
        if self.pinned_graph is not None:
            d["pinned_graph"] = self.pinned_graph.to_dict()
        if self.pinned_metrics is not None:
            d["pinned_metrics"] = self.pinned_metrics.to_dict()
        if self.target_graphs:
            d["target_graphs"] = {k: g.to_dict() for k, g in self.target_graphs.items()}
            d["target_metrics"] = {k: m.to_dict() for k, m in self.target_metrics.items()}
        if self.import_scan is not None:
            d["import_scan"] = self.import_scan.to_dict()
        return d


def analyze_project(config: AnalysisConfig) -> AnalysisResult:
    """Main entry point: discover manifests, build graphs, detect issues, rank."""

    start_time = time.time()
    root = config.root
    result = AnalysisResult(root=root)
    issues: List[DependencyIssue] = []

    result.project_type = detect_project_type(root, config.discovery)
    logger.info("Project root: %s (%s)", root, result.project_type)

    # 1. Pinned-version manifests
    resolved_parser = ResolvedParser()
    for path in find_resolved_files(config):
        rel = os.path.relpath(path, root)
        try:
            parsed = resolved_parser.parse_file(path)
        except ManifestError as exc:
            logger.warning("Cannot parse %s: %s", rel, exc.message)
            issues.append(parse_error_issue(exc))
            continue
        result.resolved.append(parsed)
        logger.info("  %s: %d pins (%d skipped)", rel, len(parsed.facts), parsed.skipped)

        for dup in analyze_duplicate_pins(parsed.facts, manifest=rel):
            issues.append(duplicate_issue(dup))
        result.facts.extend(
            dataclasses.replace(f, metadata=dict(f.metadata, declared_by=rel))
            for f in parsed.facts
        )

    # 2. Cross-manifest version conflicts
    result.conflicts = detect_conflicts(result.facts)
    issues.extend(conflict_issue(c) for c in result.conflicts)

    # 3. Package manifest requirements
    manifest_path = find_package_manifest(config)
    if manifest_path:
        try:
            declarations = parse_package_declarations(read_manifest_text(manifest_path))
        except ManifestError as exc:
            logger.warning("Cannot read %s: %s", manifest_path, exc.message)
            issues.append(parse_error_issue(exc))
        else:
            logger.info("  %s: %d package declarations",
                        os.path.relpath(manifest_path, root), len(declarations))
            for conflict in analyze_requirements(declarations):
                issues.append(conflict_issue(conflict))
            requirements = {d.name: d for d in declarations}
            if result.facts:
                for req in compare_requirements_with_resolved(requirements, _unique_by_name(result.facts)):
                    issues.append(requirement_issue(req))

    # 4. Pinned graph
    unique_facts = _unique_by_name(result.facts)
    result.pinned_graph = build_pinned_graph(unique_facts, metadata={"root": root})
    result.pinned_metrics = compute_metrics(
        result.pinned_graph,
        bottleneck_factor=config.thresholds.bottleneck_factor,
        complexity=config.thresholds.complexity,
    )

    # 5. Project files and target graphs
    project_parser = PbxprojParser()
    for path in find_pbxproj_files(config):
        rel = os.path.relpath(path, root)
        try:
            project = project_parser.parse_file(path)
        except ManifestError as exc:
            logger.warning("Cannot parse %s: %s", rel, exc.message)
            issues.append(parse_error_issue(exc))
            continue
        result.projects.append(project)

        graph = build_target_graph(project.targets, metadata={"path": rel})
        metrics = compute_metrics(
            graph,
            bottleneck_factor=config.thresholds.bottleneck_factor,
            complexity=config.thresholds.complexity,
        )
        result.target_graphs[rel] = graph
        result.target_metrics[rel] = metrics
        logger.info("  %s: %d targets, %d edges, complexity %s",
                    rel, graph.node_count, graph.edge_count, metrics.complexity)

        target_names = {n.id: n.name for n in graph.nodes}
        for cycle in graph.find_cycles():
            issues.append(cycle_issue([target_names.get(node_id, node_id) for node_id in cycle]))

    # 6. Import scan
    names = [f.name for f in unique_facts]
    if config.scan.enabled and names:
        scanner = ImportScanner(
            extensions=config.discovery.source_extensions,
            exclude_patterns=config.discovery.exclude_patterns,
            max_workers=config.scan.max_workers,
        )
        try:
            result.import_scan = scanner.scan(root, names, timeout=config.scan.timeout_seconds)
        except ScanTimeoutError as exc:
            logger.warning("Import scan abandoned: %s", exc)
        else:
            logger.info("  Scanned %d source files (%d unreadable)",
                        result.import_scan.files_scanned, result.import_scan.files_failed)
            issues.extend(unused_issues(result.import_scan, names))

    # 7. Ranking (edgeless pinned graph: only import frequency varies)
    ranker = DependencyRanker(
        result.pinned_graph,
        import_metrics=result.import_scan.metrics if result.import_scan else None,
        weights=config.ranking,
        bottleneck_factor=config.thresholds.bottleneck_factor,
    )
    result.scores = ranker.rank(unique_facts)

    result.issues = sort_issues(issues)
    result.duration_seconds = time.time() - start_time
    logger.info("Done: %d dependencies, %d issues in %.2fs",
                len(unique_facts), len(result.issues), result.duration_seconds)
    return result


def _unique_by_name(facts: List[DependencyFact]) -> List[DependencyFact]:
    """First fact per name, in order."""
    seen: Dict[str, DependencyFact] = {}
    for fact in facts:
        seen.setdefault(fact.name, fact)
    return list(seen.values())
