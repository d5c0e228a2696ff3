"""Data models for package-level analysis."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional


@dataclass
class ImportMetrics:
    """Import usage of one declared dependency across the scanned tree."""
    name: str
    total_imports: int = 0
    files_coverage: float = 0.0  # fraction of scanned files importing it
    import_locations: Dict[str, int] = field(default_factory=dict)  # file path -> count

    @property
    def files_importing(self) -> int:
        return sum(1 for count in self.import_locations.values() if count > 0)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ImportScanResult:
    """All per-dependency metrics from one scan, plus the scan size."""
    metrics: Dict[str, ImportMetrics] = field(default_factory=dict)
    files_scanned: int = 0
    files_failed: int = 0

    def to_dict(self) -> dict:
        return {
            "files_scanned": self.files_scanned,
            "files_failed": self.files_failed,
            "metrics": {name: m.to_dict() for name, m in self.metrics.items()},
        }


@dataclass
class VersionConflict:
    """One dependency declared with incompatible versions."""
    dependency: str
    versions: List[str]
    sources: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DependencyRequirement:
    """A requirement declared in the package manifest."""
    name: str
    url: str
    version_requirement: Optional[str] = None
    is_local: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RequirementIssue:
    """A resolved pin that disagrees with the package manifest."""
    package: str
    resolved_version: str
    requirement: Optional[str]
    reason: str  # version-not-satisfied | not-in-manifest

    def to_dict(self) -> dict:
        return asdict(self)
