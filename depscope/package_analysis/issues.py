"""Issue construction from analysis signals.

Each builder returns a :class:`DependencyIssue` tagged with its
:class:`IssueType` and carrying the matching payload.
"""

from __future__ import annotations

import hashlib
from typing import Iterable, List, Sequence

from ..errors import ManifestError
from ..models import (
    CyclePayload,
    DependencyIssue,
    IssueType,
    ParseErrorPayload,
    RequirementPayload,
    Severity,
    UnusedPayload,
    VersionConflictPayload,
)
from .models import ImportScanResult, RequirementIssue, VersionConflict


def _digest(parts: Sequence[str]) -> str:
    return hashlib.sha1("\x1f".join(parts).encode("utf-8")).hexdigest()[:12]


def cycle_issue(cycle: Sequence[str]) -> DependencyIssue:
    chain = " → ".join(list(cycle) + [cycle[0]]) if cycle else ""
    return DependencyIssue(
        id=f"cycle-{_digest(cycle)}",
        issue_type=IssueType.CIRCULAR_DEPENDENCY,
        severity=Severity.ERROR,
        title="Circular Dependency Detected",
        description=f"Circular dependency found: {chain}",
        affected_nodes=list(cycle),
        suggested_fix=(
            "Break the cycle by extracting the shared functionality "
            "into a separate module"
        ),
        payload=CyclePayload(cycle=list(cycle)),
    )


def conflict_issue(conflict: VersionConflict) -> DependencyIssue:
    versions = ", ".join(conflict.versions)
    return DependencyIssue(
        id=f"conflict-{conflict.dependency}",
        issue_type=IssueType.VERSION_CONFLICT,
        severity=Severity.WARNING,
        title="Version Conflict",
        description=f"Conflicting versions for {conflict.dependency}: {versions}",
        affected_nodes=[conflict.dependency],
        suggested_fix=f"Align every declaration of {conflict.dependency} on a single version",
        payload=VersionConflictPayload(
            dependency=conflict.dependency,
            versions=list(conflict.versions),
            sources=list(conflict.sources),
        ),
    )


def duplicate_issue(conflict: VersionConflict) -> DependencyIssue:
    return DependencyIssue(
        id=f"duplicate-{conflict.dependency}",
        issue_type=IssueType.DUPLICATE_DEPENDENCY,
        severity=Severity.WARNING,
        title="Duplicate Pin",
        description=(
            f"{conflict.dependency} is pinned {len(conflict.versions)} times: "
            f"{', '.join(conflict.versions)}"
        ),
        affected_nodes=[conflict.dependency],
        suggested_fix="Re-resolve the package graph to regenerate the lock file",
        payload=VersionConflictPayload(
            dependency=conflict.dependency,
            versions=list(conflict.versions),
            sources=list(conflict.sources),
        ),
    )


def requirement_issue(req: RequirementIssue) -> DependencyIssue:
    if req.reason == "not-in-manifest":
        description = (
            f"{req.package} {req.resolved_version} is resolved but not declared "
            "in the package manifest"
        )
        severity = Severity.INFO
        fix = None
        issue_type = IssueType.MISSING_DEPENDENCY
    else:
        description = (
            f"{req.package} resolved to {req.resolved_version}, "
            f"which does not satisfy {req.requirement}"
        )
        severity = Severity.WARNING
        fix = "Re-resolve dependencies or update the requirement"
        issue_type = IssueType.REQUIREMENT_MISMATCH
    return DependencyIssue(
        id=f"requirement-{req.package}",
        issue_type=issue_type,
        severity=severity,
        title="Requirement Mismatch" if severity is Severity.WARNING else "Undeclared Dependency",
        description=description,
        affected_nodes=[req.package],
        suggested_fix=fix,
        payload=RequirementPayload(
            package=req.package,
            resolved_version=req.resolved_version,
            requirement=req.requirement,
            reason=req.reason,
        ),
    )


def unused_issues(scan: ImportScanResult, names: Iterable[str]) -> List[DependencyIssue]:
    """Declared dependencies that no scanned file imports.

    Nothing is reported when the scan saw no files at all.
    """
    if scan.files_scanned == 0:
        return []
    issues: List[DependencyIssue] = []
    for name in names:
        metrics = scan.metrics.get(name)
        if metrics is None or metrics.total_imports > 0:
            continue
        issues.append(DependencyIssue(
            id=f"unused-{name}",
            issue_type=IssueType.UNUSED_DEPENDENCY,
            severity=Severity.INFO,
            title="Unused Dependency",
            description=f"No source file imports {name}",
            affected_nodes=[name],
            suggested_fix=f"Remove {name} if it is not needed transitively",
            payload=UnusedPayload(dependency=name, files_scanned=scan.files_scanned),
        ))
    return issues


def parse_error_issue(error: ManifestError) -> DependencyIssue:
    path = error.path or ""
    return DependencyIssue(
        id=f"parse-{error.kind}-{_digest([path])}",
        issue_type=IssueType.PARSE_ERROR,
        severity=Severity.ERROR,
        title="Manifest Parse Failure",
        description=error.message,
        affected_nodes=[],
        payload=ParseErrorPayload(path=path, kind=error.kind),
    )


def sort_issues(issues: Iterable[DependencyIssue]) -> List[DependencyIssue]:
    """Most severe first; stable within a severity."""
    return sorted(issues, key=lambda i: -i.severity.level)
