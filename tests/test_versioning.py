"""Tests for depscope.versioning."""

from __future__ import annotations

import pytest

from depscope.versioning import (
    SemanticVersion,
    compare_loose,
    is_exact_version,
    is_range_requirement,
    is_version_satisfied,
    loose_version_tuple,
)


def test_semantic_version_parse() -> None:
    v = SemanticVersion.parse("1.2.3-beta+exp")

    assert (v.major, v.minor, v.patch, v.prerelease, v.build) == (1, 2, 3, "beta", "exp")
    assert str(v) == "1.2.3-beta+exp"
    assert SemanticVersion.parse("1.2") is None


def test_semantic_version_ordering() -> None:
    assert SemanticVersion.parse("1.2.3") < SemanticVersion.parse("1.10.0")
    assert SemanticVersion.parse("2.0.0-rc") < SemanticVersion.parse("2.0.0")
    assert SemanticVersion.parse("1.0.0+a") == SemanticVersion.parse("1.0.0+b")
    assert len({SemanticVersion.parse("1.0.0+a"), SemanticVersion.parse("1.0.0")}) == 1


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1.2.3", (1, 2, 3)),
        ("v4.5.6", (4, 5, 6)),
        ("1.2.3-rc.1", (1, 2, 3)),
        ("branch: main", None),
        ("revision: abc1234", None),
        ("1.2", None),
    ],
)
def test_loose_version_tuple(text: str, expected) -> None:
    assert loose_version_tuple(text) == expected


def test_compare_loose() -> None:
    assert compare_loose("1.9.0", "1.10.0") == -1
    assert compare_loose("2.0.0", "2.0.0-beta") == 1
    assert compare_loose("v1.0.0", "1.0.0") == 0


def test_requirement_shapes() -> None:
    assert is_exact_version("1.0.0")
    assert not is_exact_version(">=1.0.0")
    assert is_range_requirement(">=1.0.0")
    assert is_range_requirement("1.0.0...2.0.0")
    assert is_range_requirement("~>1.2")
    assert not is_range_requirement("1.0.0")


@pytest.mark.parametrize(
    "version, requirement, satisfied",
    [
        ("1.0.0", None, True),
        ("1.0.0", "1.0.0", True),
        ("1.0.1", "1.0.0", False),
        ("2.5.0", ">=2.0.0", True),
        ("1.9.9", ">=2.0.0", False),
        ("1.5.0", "1.0.0...2.0.0", True),
        ("2.0.1", "1.0.0...2.0.0", False),
        ("9.9.9", "~>1.0", True),
    ],
)
def test_is_version_satisfied(version: str, requirement, satisfied: bool) -> None:
    assert is_version_satisfied(version, requirement) is satisfied
