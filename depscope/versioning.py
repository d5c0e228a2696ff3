"""Semantic version parsing and requirement checks."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Optional, Tuple

_SEMVER_RE = re.compile(
    r"^(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z-]+))?(?:\+([0-9A-Za-z-]+))?$"
)
_EXACT_RE = re.compile(r"^\d+\.\d+\.\d+$")
_RANGE_MARKERS = (">=", "<=", ">", "<", "...", "..<", "~>", "^", "~")


@total_ordering
@dataclass(frozen=True)
class SemanticVersion:
    major: int
    minor: int
    patch: int
    prerelease: Optional[str] = None
    build: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> Optional["SemanticVersion"]:
        """Strict ``MAJOR.MINOR.PATCH[-pre][+build]`` parse; None when not matching."""
        m = _SEMVER_RE.match(text.strip())
        if not m:
            return None
        return cls(int(m.group(1)), int(m.group(2)), int(m.group(3)), m.group(4), m.group(5))

    def __eq__(self, other) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        # build metadata does not take part in precedence
        return self._key() == other._key() and self.prerelease == other.prerelease

    def __hash__(self) -> int:
        return hash((self.major, self.minor, self.patch, self.prerelease))

    def __lt__(self, other: "SemanticVersion") -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        if self._key() != other._key():
            return self._key() < other._key()
        # a release sorts above any of its prereleases
        if self.prerelease is None:
            return False
        if other.prerelease is None:
            return True
        return self.prerelease < other.prerelease

    def _key(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __str__(self) -> str:
        s = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            s += f"-{self.prerelease}"
        if self.build:
            s += f"+{self.build}"
        return s


def loose_version_tuple(version: str) -> Optional[Tuple[int, int, int]]:
    """Best-effort ``(major, minor, patch)`` from resolved-version strings.

    Strips ``v`` prefixes and the ``branch: `` / ``revision: `` markers the
    pinned-manifest parser emits, then drops prerelease/build suffixes.
    """
    clean = version.strip()
    for prefix in ("branch: ", "revision: "):
        if clean.startswith(prefix):
            clean = clean[len(prefix):]
    clean = clean.lstrip("vV")
    base = clean.split("-", 1)[0].split("+", 1)[0]
    parts = []
    for piece in base.split("."):
        if piece.isdigit():
            parts.append(int(piece))
    if len(parts) < 3:
        return None
    return parts[0], parts[1], parts[2]


def is_exact_version(requirement: str) -> bool:
    return bool(_EXACT_RE.match(requirement.strip()))


def is_range_requirement(requirement: str) -> bool:
    """True when *requirement* uses range syntax rather than a pinned version."""
    return any(marker in requirement for marker in _RANGE_MARKERS)


def compare_loose(a: str, b: str) -> int:
    """Compare two version strings.

    Strict semantic versions compare with prerelease precedence; anything
    else by its loose numeric triple, then as plain strings.
    """
    sa, sb = SemanticVersion.parse(a), SemanticVersion.parse(b)
    if sa is not None and sb is not None:
        return -1 if sa < sb else (1 if sb < sa else 0)
    ta, tb = loose_version_tuple(a), loose_version_tuple(b)
    if ta is None or tb is None:
        ta, tb = a, b  # type: ignore[assignment]
    if ta < tb:
        return -1
    if ta > tb:
        return 1
    return 0


def is_version_satisfied(version: str, requirement: Optional[str]) -> bool:
    """Check a resolved *version* against a package-manifest requirement.

    Handles exact pins, ``>=`` minimums and ``a...b`` closed ranges;
    anything else is assumed satisfied.
    """
    if requirement is None:
        return True
    req = requirement.strip()

    if is_exact_version(req):
        return version == req

    if req.startswith(">="):
        return compare_loose(version, req[2:].strip()) >= 0

    if "..." in req:
        parts = req.split("...")
        if len(parts) == 2:
            low, high = parts[0].strip(), parts[1].strip()
            return compare_loose(version, low) >= 0 and compare_loose(version, high) <= 0

    return True
