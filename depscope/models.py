"""Data models shared across parsers, detectors and the ranker."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, List, Optional, Union


# ---------------------------------------------------------------------------
# Dependency facts (parser output)
# ---------------------------------------------------------------------------

class SourceKind(str, Enum):
    """Where a declared dependency comes from."""
    SOURCE_CONTROL = "source-control"
    BINARY = "binary"
    REGISTRY = "registry"
    LOCAL = "local"
    TARGET = "target"


@dataclass(frozen=True)
class DependencyFact:
    """One raw dependency declaration extracted from a manifest."""
    name: str
    version: str
    source_location: Optional[str]
    kind: SourceKind
    metadata: Dict[str, str] = field(default_factory=dict)
    import_count: Optional[int] = None

    def to_dict(self) -> dict:
        d = asdict(self)
        d["kind"] = self.kind.value
        return {k: v for k, v in d.items() if v is not None and v != {}}


@dataclass
class LocalDependency:
    """A pin whose location is a local filesystem path."""
    name: str
    path: str

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Issues
# ---------------------------------------------------------------------------

class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def level(self) -> int:
        return _SEVERITY_LEVELS[self]


_SEVERITY_LEVELS = {
    Severity.INFO: 1,
    Severity.WARNING: 2,
    Severity.ERROR: 3,
    Severity.CRITICAL: 4,
}


class IssueType(str, Enum):
    CIRCULAR_DEPENDENCY = "circular_dependency"
    VERSION_CONFLICT = "version_conflict"
    MISSING_DEPENDENCY = "missing_dependency"
    UNUSED_DEPENDENCY = "unused_dependency"
    REQUIREMENT_MISMATCH = "requirement_mismatch"
    DUPLICATE_DEPENDENCY = "duplicate_dependency"
    PARSE_ERROR = "parse_error"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CyclePayload:
    cycle: List[str]

    @property
    def cycle_length(self) -> int:
        return len(self.cycle)

    def to_dict(self) -> dict:
        return {"cycle": list(self.cycle), "cycle_length": self.cycle_length}


@dataclass(frozen=True)
class VersionConflictPayload:
    dependency: str
    versions: List[str]
    sources: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "dependency": self.dependency,
            "versions": list(self.versions),
            "sources": list(self.sources),
        }


@dataclass(frozen=True)
class RequirementPayload:
    package: str
    resolved_version: str
    requirement: Optional[str]
    reason: str  # version-not-satisfied | not-in-manifest

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class UnusedPayload:
    dependency: str
    files_scanned: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ParseErrorPayload:
    path: str
    kind: str

    def to_dict(self) -> dict:
        return asdict(self)


IssuePayload = Union[
    CyclePayload,
    VersionConflictPayload,
    RequirementPayload,
    UnusedPayload,
    ParseErrorPayload,
]


@dataclass(frozen=True)
class DependencyIssue:
    """A reported problem. ``payload`` carries the kind-specific fields."""
    id: str
    issue_type: IssueType
    severity: Severity
    title: str
    description: str
    affected_nodes: List[str] = field(default_factory=list)
    suggested_fix: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    payload: Optional[IssuePayload] = None

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "type": self.issue_type.value,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "affected_nodes": list(self.affected_nodes),
        }
        if self.suggested_fix:
            d["suggested_fix"] = self.suggested_fix
        if self.metadata:
            d["metadata"] = dict(self.metadata)
        if self.payload is not None:
            d["payload"] = self.payload.to_dict()
        return d


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScoreBreakdown:
    import_frequency: float
    is_bottleneck: bool
    is_direct: bool
    transitive_depth: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DependencyScore:
    name: str
    score: float
    breakdown: ScoreBreakdown

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "score": round(self.score, 2),
            "breakdown": self.breakdown.to_dict(),
        }
