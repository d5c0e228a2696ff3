"""Property-list project-file parser (``project.pbxproj``).

Best-effort scan, not a grammar: sections are located by regex on their
``isa`` marker, bodies are cut out by explicit brace-depth tracking, and
values are pulled with key lookups. Anything unrecognized is dropped; the
parser only raises when the file itself cannot be read.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..errors import read_manifest_text
from ..logging import get_logger
from ..models import DependencyFact, SourceKind

logger = get_logger("parsers.pbxproj")

TARGET_MARKER = "PBXNativeTarget"
TARGET_DEPENDENCY_MARKER = "PBXTargetDependency"

# a single /* ... */ that cannot run past its own terminator
_INLINE_COMMENT = r"(?:/\*(?:(?!\*/).)*\*/)"
_COMMENT_RE = re.compile(_INLINE_COMMENT, re.DOTALL)
_HEX_ID_RE = re.compile(r"\b[0-9A-F]+\b")


@dataclass
class XcodeTarget:
    """One native target extracted from the project file."""
    id: str
    name: str
    target_type: str  # application | framework | library | test | bundle | unknown
    product_name: Optional[str] = None
    product_type: Optional[str] = None
    dependencies: List[str] = field(default_factory=list)
    build_phases: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "name": self.name,
            "target_type": self.target_type,
            "dependencies": list(self.dependencies),
            "build_phases": list(self.build_phases),
        }
        if self.product_name:
            d["product_name"] = self.product_name
        if self.product_type:
            d["product_type"] = self.product_type
        return d

    def to_facts(self, by_id: Dict[str, "XcodeTarget"]) -> List[DependencyFact]:
        """One fact per dependency reference, named after the resolved target."""
        facts = []
        for dep_id in self.dependencies:
            target = by_id.get(dep_id)
            facts.append(DependencyFact(
                name=target.name if target else dep_id,
                version="",
                source_location=dep_id,
                kind=SourceKind.TARGET,
                metadata={"declared_by": self.name},
            ))
        return facts


@dataclass
class ProjectParseResult:
    targets: List[XcodeTarget] = field(default_factory=list)
    sections_found: int = 0
    skipped: int = 0
    path: Optional[str] = None

    def to_dict(self) -> dict:
        d = {
            "targets": [t.to_dict() for t in self.targets],
            "sections_found": self.sections_found,
            "skipped": self.skipped,
        }
        if self.path:
            d["path"] = self.path
        return d


class PbxprojParser:
    """Extracts native targets and their target dependencies."""

    def __init__(self, target_marker: str = TARGET_MARKER):
        self.target_marker = target_marker

    def parse_file(self, path: str) -> ProjectParseResult:
        text = read_manifest_text(path)
        result = self.parse(text)
        result.path = path
        return result

    def parse(self, content: str) -> ProjectParseResult:
        result = ProjectParseResult()
        sections = find_sections(content, self.target_marker)
        result.sections_found = len(sections)

        # dependency proxy id -> real target id
        proxies: Dict[str, str] = {}
        for proxy_id, body in find_sections(content, TARGET_DEPENDENCY_MARKER).items():
            target_id = extract_value(body, "target")
            if target_id:
                proxies[proxy_id] = target_id

        for section_id, body in sections.items():
            target = _parse_target(section_id, body, proxies)
            if target is None:
                logger.debug("section %s has no name, skipping", section_id)
                result.skipped += 1
                continue
            result.targets.append(target)

        logger.debug(
            "found %d %s sections, %d targets",
            result.sections_found, self.target_marker, len(result.targets),
        )
        return result


def find_sections(content: str, marker: str) -> Dict[str, str]:
    """Map section id -> balanced-brace body for every ``isa = marker`` section.

    The header regex refuses to cross a brace between the opening ``{`` and
    the ``isa`` key, so the match always belongs to the section it starts.
    Sections whose braces never balance are dropped.
    """
    pattern = re.compile(
        r"(\w+)\s*" + _INLINE_COMMENT + r"?\s*=\s*(\{)[^{}]*?\bisa\s*=\s*" + re.escape(marker) + r"\s*;",
        re.DOTALL,
    )
    sections: Dict[str, str] = {}
    for m in pattern.finditer(content):
        brace_start = m.start(2)
        brace_end = find_matching_brace(content, brace_start)
        if brace_end is None:
            continue
        sections[m.group(1)] = content[brace_start + 1:brace_end]
    return sections


def find_matching_brace(content: str, open_index: int) -> Optional[int]:
    """Index of the ``}`` closing the ``{`` at *open_index*, or None."""
    depth = 0
    in_string = False
    i = open_index
    n = len(content)
    while i < n:
        ch = content[i]
        if in_string:
            if ch == "\\":
                i += 2
                continue
            if ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def extract_value(content: str, key: str) -> Optional[str]:
    """First ``key = value;`` at whole-key boundaries; quoted or bare value."""
    pattern = re.compile(
        r"(?<![A-Za-z0-9_])" + re.escape(key)
        + r'\s*=\s*(?:"((?:[^"\\]|\\.)*)"|([^;\s"{(]+))\s*' + _INLINE_COMMENT + r"?\s*;",
        re.DOTALL,
    )
    m = pattern.search(content)
    if not m:
        return None
    value = m.group(1) if m.group(1) is not None else m.group(2)
    return value or None


def extract_array_ids(content: str, key: str) -> List[str]:
    """Uppercase hex ids inside the ``key = ( ... )`` list, comments removed."""
    m = re.search(r"(?<![A-Za-z0-9_])" + re.escape(key) + r"\s*=\s*\(", content)
    if not m:
        return []
    rest = _COMMENT_RE.sub(" ", content[m.end():])
    close = rest.find(")")
    if close == -1:
        return []
    return _HEX_ID_RE.findall(rest[:close])


def classify_target(product_type: Optional[str], product_name: Optional[str]) -> str:
    if product_type:
        for marker in ("application", "framework", "library", "test", "bundle"):
            if marker in product_type:
                return marker
    if product_name:
        if product_name.endswith(".app"):
            return "application"
        if product_name.endswith(".framework"):
            return "framework"
        if product_name.endswith((".a", ".dylib")):
            return "library"
    return "unknown"


def _parse_target(section_id: str, body: str, proxies: Dict[str, str]) -> Optional[XcodeTarget]:
    name = extract_value(body, "name")
    if not name:
        return None
    product_name = extract_value(body, "productName")
    product_type = extract_value(body, "productType")
    dependencies = [proxies.get(dep_id, dep_id) for dep_id in extract_array_ids(body, "dependencies")]
    return XcodeTarget(
        id=section_id,
        name=name,
        target_type=classify_target(product_type, product_name),
        product_name=product_name,
        product_type=product_type,
        dependencies=dependencies,
        build_phases=extract_array_ids(body, "buildPhases"),
    )
