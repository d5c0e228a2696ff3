"""Pinned-version manifest parser (``Package.resolved``).

Handles both pin shapes:

* v1 (legacy): ``package`` + ``state.location``
* v2/v3: ``identity`` + top-level ``location``

Each pin resolves to one :class:`DependencyFact`. Malformed pins are
dropped individually; only a non-JSON document or a missing ``pins`` array
fails the whole parse.

Also extracts version requirements from the companion ``Package.swift``
so they can be compared against what was actually resolved.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ..errors import InvalidFormatError, MissingPinsError, read_manifest_text
from ..logging import get_logger
from ..models import DependencyFact, LocalDependency, SourceKind
from ..versioning import is_version_satisfied
from ..package_analysis.models import DependencyRequirement, RequirementIssue

logger = get_logger("parsers.resolved")

_PACKAGE_DECL_RE = re.compile(
    r"""\.package\([^)]*?url:\s*["']([^"']+)["']"""
    r"""(?:[^)]*?from:\s*["']([^"']+)["'])?"""
    r"""(?:[^)]*?exact:\s*["']([^"']+)["'])?""",
    re.DOTALL,
)


@dataclass
class ParseResult:
    """Output of one pinned-manifest parse."""
    facts: List[DependencyFact] = field(default_factory=list)
    local: List[LocalDependency] = field(default_factory=list)
    skipped: int = 0
    path: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.facts) + len(self.local)

    def to_dict(self) -> dict:
        d = {
            "count": self.count,
            "external": [f.to_dict() for f in self.facts],
            "local": [l.to_dict() for l in self.local],
            "skipped": self.skipped,
        }
        if self.path:
            d["path"] = self.path
        return d


class ResolvedParser:
    """Parses pinned-version manifests into dependency facts."""

    def parse_file(self, path: str) -> ParseResult:
        text = read_manifest_text(path)
        result = self.parse(text, path=path)
        result.path = path
        return result

    def parse(self, text: str, path: Optional[str] = None) -> ParseResult:
        try:
            data = json.loads(text)
        except (ValueError, TypeError) as exc:
            raise InvalidFormatError(f"Not valid JSON: {exc}", path=path) from exc

        if not isinstance(data, dict):
            raise InvalidFormatError("Top-level JSON value is not an object", path=path)

        pins = data.get("pins")
        if not isinstance(pins, list):
            # v1 files nest pins under "object"
            nested = data.get("object")
            pins = nested.get("pins") if isinstance(nested, dict) else None
        if not isinstance(pins, list):
            raise MissingPinsError("No pins found in pinned manifest", path=path)

        result = ParseResult()
        for index, pin in enumerate(pins):
            if not isinstance(pin, dict):
                logger.debug("pin #%d is not an object, skipping", index)
                result.skipped += 1
                continue
            fact = parse_pin(pin)
            if fact is None:
                logger.debug("pin #%d lacks a name or location, skipping", index)
                result.skipped += 1
            else:
                result.facts.append(fact)
            local = _parse_local_pin(pin)
            if local is not None:
                result.local.append(local)

        logger.debug(
            "parsed %d pins (%d skipped, %d local)",
            len(result.facts), result.skipped, len(result.local),
        )
        return result


def parse_pin(pin: Dict[str, Any]) -> Optional[DependencyFact]:
    """Resolve one pin into a fact, or None when name or location is missing."""
    name = _str_or_none(pin.get("package")) or _str_or_none(pin.get("identity"))
    if not name:
        return None

    state = pin.get("state")
    if not isinstance(state, dict):
        state = {}

    location = _str_or_none(pin.get("location")) or _str_or_none(state.get("location"))
    if not location:
        return None

    metadata: Dict[str, str] = {}
    version = ""
    if _str_or_none(state.get("version")):
        version = state["version"]
    elif _str_or_none(state.get("branch")):
        version = f"branch: {state['branch']}"
        metadata["branch"] = state["branch"]
    elif _str_or_none(state.get("revision")):
        version = f"revision: {state['revision'][:7]}"
    if _str_or_none(state.get("revision")):
        metadata["revision"] = state["revision"]
    if _str_or_none(pin.get("kind")):
        metadata["pin_kind"] = pin["kind"]

    return DependencyFact(
        name=name,
        version=version,
        source_location=location,
        kind=classify_location(location),
        metadata=metadata,
    )


def classify_location(location: str) -> SourceKind:
    if location.startswith("http"):
        return SourceKind.SOURCE_CONTROL
    if location.startswith("binary"):
        return SourceKind.BINARY
    return SourceKind.REGISTRY


def _parse_local_pin(pin: Dict[str, Any]) -> Optional[LocalDependency]:
    name = _str_or_none(pin.get("package"))
    state = pin.get("state")
    if not name or not isinstance(state, dict):
        return None
    location = _str_or_none(state.get("location"))
    if location and location.startswith((".", "/")):
        return LocalDependency(name=name, path=location)
    return None


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


# ---------------------------------------------------------------------------
# Package manifest requirements
# ---------------------------------------------------------------------------

def parse_package_declarations(text: str) -> List[DependencyRequirement]:
    """Extract every ``.package(url:..., from:/exact:...)`` declaration, in order.

    ``from:`` becomes a ``>=`` minimum; ``exact:`` stays a bare version.
    """
    declarations: List[DependencyRequirement] = []
    for m in _PACKAGE_DECL_RE.finditer(text):
        url = m.group(1)
        requirement = f">={m.group(2)}" if m.group(2) else m.group(3)
        declarations.append(DependencyRequirement(
            name=package_name_from_url(url),
            url=url,
            version_requirement=requirement,
            is_local=url.startswith((".", "/")),
        ))
    return declarations


def parse_package_manifest(text: str) -> Dict[str, DependencyRequirement]:
    """Package name -> requirement. Later declarations of the same name win."""
    return {req.name: req for req in parse_package_declarations(text)}


def package_name_from_url(url: str) -> str:
    """Derive a package name from its repository URL (last path component, no ``.git``)."""
    trimmed = url.rstrip("/")
    if "github.com" in trimmed:
        parts = trimmed.split("/")
        if len(parts) >= 2:
            return parts[-1].replace(".git", "")
    path = urlparse(trimmed).path or trimmed
    last = path.rsplit("/", 1)[-1]
    if last.endswith(".git"):
        last = last[:-4]
    return last or url


def compare_requirements_with_resolved(
    requirements: Dict[str, DependencyRequirement],
    resolved: List[DependencyFact],
) -> List[RequirementIssue]:
    """Report resolved pins that miss their declared requirement or have none.

    Lookup is case-insensitive because v2+ pins use lowercased identities.
    """
    by_lower = {name.lower(): req for name, req in requirements.items()}
    issues: List[RequirementIssue] = []

    for fact in resolved:
        requirement = requirements.get(fact.name) or by_lower.get(fact.name.lower())
        if requirement is None:
            issues.append(RequirementIssue(
                package=fact.name,
                resolved_version=fact.version,
                requirement=None,
                reason="not-in-manifest",
            ))
        elif not is_version_satisfied(fact.version, requirement.version_requirement):
            issues.append(RequirementIssue(
                package=fact.name,
                resolved_version=fact.version,
                requirement=requirement.version_requirement,
                reason="version-not-satisfied",
            ))
    return issues
