"""Version-conflict detection over flat lists of dependency facts.

Operates on parser output, independently of the graph. The bias is
conservative: a version range is assumed compatible with anything, so only
differing exact versions are reported, even when ranges sit beside them. Missed real conflicts are preferred
over false alarms.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Sequence

from ..models import DependencyFact
from ..versioning import is_range_requirement
from .models import DependencyRequirement, VersionConflict


def versions_compatible(versions: Sequence[str]) -> bool:
    """True when *versions* can all be satisfied together.

    Range requirements are assumed satisfiable alongside anything, so only
    the pinned entries count: two or more distinct pins are incompatible.
    """
    pinned = {v for v in versions if not is_range_requirement(v)}
    return len(pinned) <= 1


def detect_conflicts(facts: Iterable[DependencyFact]) -> List[VersionConflict]:
    """Group facts by name and report names declared with incompatible versions.

    Output order follows first appearance of each name; versions keep their
    first-seen order.
    """
    versions_by_name: Dict[str, List[str]] = defaultdict(list)
    sources_by_name: Dict[str, List[str]] = defaultdict(list)

    for fact in facts:
        versions_by_name[fact.name].append(fact.version)
        source = fact.metadata.get("declared_by") or fact.source_location or "direct"
        if source not in sources_by_name[fact.name]:
            sources_by_name[fact.name].append(source)

    conflicts: List[VersionConflict] = []
    for name, versions in versions_by_name.items():
        unique = list(dict.fromkeys(versions))
        if len(unique) > 1 and not versions_compatible(unique):
            conflicts.append(VersionConflict(
                dependency=name,
                versions=unique,
                sources=sources_by_name[name],
            ))
    return conflicts


def analyze_requirements(
    requirements: Iterable[DependencyRequirement],
) -> List[VersionConflict]:
    """Same rule applied to package-manifest requirements for one name."""
    by_name: Dict[str, List[str]] = defaultdict(list)
    for req in requirements:
        if req.version_requirement:
            by_name[req.name].append(req.version_requirement)

    conflicts: List[VersionConflict] = []
    for name, reqs in by_name.items():
        unique = list(dict.fromkeys(reqs))
        if len(unique) > 1 and not versions_compatible(unique):
            conflicts.append(VersionConflict(dependency=name, versions=unique))
    return conflicts


def analyze_duplicate_pins(
    facts: Iterable[DependencyFact],
    manifest: str = "Package.resolved",
) -> List[VersionConflict]:
    """Names pinned more than once in a single lock file."""
    pins: Dict[str, List[str]] = defaultdict(list)
    for fact in facts:
        pins[fact.name].append(fact.version)
    return [
        VersionConflict(dependency=name, versions=versions, sources=[manifest])
        for name, versions in pins.items()
        if len(versions) > 1
    ]
