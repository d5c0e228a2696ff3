"""Tests for depscope.parsers.resolved_parser."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from depscope.errors import InvalidFormatError, ManifestReadError, MissingPinsError
from depscope.models import SourceKind
from depscope.package_analysis.models import DependencyRequirement
from depscope.parsers.resolved_parser import (
    ResolvedParser,
    classify_location,
    compare_requirements_with_resolved,
    package_name_from_url,
    parse_package_declarations,
    parse_package_manifest,
    parse_pin,
)
from tests._fixtures.project_builder import pin


def _doc(pins) -> str:
    return json.dumps({"pins": pins, "version": 2})


def test_valid_pins_become_facts_and_malformed_are_skipped() -> None:
    pins = [pin("alpha"), pin("beta"), pin("gamma"), pin("delta"), pin("epsilon")]
    del pins[2]["location"]

    result = ResolvedParser().parse(_doc(pins))

    assert [f.name for f in result.facts] == ["alpha", "beta", "delta", "epsilon"]
    assert result.skipped == 1


def test_non_object_pins_are_skipped() -> None:
    result = ResolvedParser().parse(_doc([pin("alpha"), "garbage", 42, None]))

    assert [f.name for f in result.facts] == ["alpha"]
    assert result.skipped == 3


def test_v1_pins_use_package_and_state_location() -> None:
    text = json.dumps({
        "object": {
            "pins": [{
                "package": "Alamofire",
                "repositoryURL": "https://github.com/Alamofire/Alamofire.git",
                "state": {
                    "location": "https://github.com/Alamofire/Alamofire.git",
                    "revision": "f455c2975872ccd2d9c81594c658af65716e9b9a",
                    "version": "5.8.1",
                },
            }],
        },
        "version": 1,
    })

    result = ResolvedParser().parse(text)

    assert len(result.facts) == 1
    fact = result.facts[0]
    assert fact.name == "Alamofire"
    assert fact.version == "5.8.1"
    assert fact.kind is SourceKind.SOURCE_CONTROL


def test_version_falls_back_to_branch_then_revision() -> None:
    branch_pin = pin("nightly", version=None, branch="main")
    revision_pin = pin("pinned", version=None)

    by_branch = parse_pin(branch_pin)
    by_revision = parse_pin(revision_pin)

    assert by_branch.version == "branch: main"
    assert by_branch.metadata["branch"] == "main"
    assert by_revision.version == "revision: 0123456"
    assert by_revision.metadata["revision"].startswith("0123456789")


def test_missing_name_yields_no_fact() -> None:
    entry = pin("alpha")
    del entry["identity"]

    assert parse_pin(entry) is None


def test_local_pins_are_reported_separately() -> None:
    text = json.dumps({"pins": [{
        "package": "Shared",
        "state": {"location": "../Shared", "revision": "abc"},
    }]})

    result = ResolvedParser().parse(text)

    assert [l.name for l in result.local] == ["Shared"]
    assert result.local[0].path == "../Shared"


@pytest.mark.parametrize(
    "location, kind",
    [
        ("https://github.com/apple/swift-nio.git", SourceKind.SOURCE_CONTROL),
        ("binary://artifacts/Foo.xcframework.zip", SourceKind.BINARY),
        ("mona.LinkedList", SourceKind.REGISTRY),
    ],
)
def test_classify_location(location: str, kind: SourceKind) -> None:
    assert classify_location(location) is kind


def test_invalid_json_raises_invalid_format() -> None:
    with pytest.raises(InvalidFormatError) as info:
        ResolvedParser().parse("{ not json", path="Package.resolved")

    assert info.value.kind == "invalid-format"
    assert info.value.path == "Package.resolved"


def test_non_object_root_raises_invalid_format() -> None:
    with pytest.raises(InvalidFormatError):
        ResolvedParser().parse("[1, 2, 3]")


def test_missing_pins_array_raises() -> None:
    with pytest.raises(MissingPinsError) as info:
        ResolvedParser().parse(json.dumps({"version": 2}))

    assert info.value.kind == "missing-pins"


def test_missing_file_raises_read_error(tmp_path: Path) -> None:
    with pytest.raises(ManifestReadError) as info:
        ResolvedParser().parse_file(str(tmp_path / "Package.resolved"))

    assert info.value.kind == "parse-error"


def test_parse_file_records_path(tmp_path: Path) -> None:
    path = tmp_path / "Package.resolved"
    path.write_text(_doc([pin("alpha")]), encoding="utf-8")

    result = ResolvedParser().parse_file(str(path))

    assert result.path == str(path)
    assert result.to_dict()["count"] == 1


# ---------------------------------------------------------------------------
# Package manifest requirements
# ---------------------------------------------------------------------------

PACKAGE_SWIFT = """
// swift-tools-version:5.9
import PackageDescription

let package = Package(
    name: "App",
    dependencies: [
        .package(url: "https://github.com/apple/swift-nio.git", from: "2.40.0"),
        .package(url: "https://github.com/pointfreeco/swift-tagged", exact: "0.10.0"),
        .package(url: "https://example.com/tools/Lint.git", branch: "main"),
    ],
    targets: [
        .target(name: "App", dependencies: [.product(name: "NIO", package: "swift-nio")]),
    ]
)
"""


def test_parse_package_declarations_reads_from_and_exact() -> None:
    reqs = parse_package_declarations(PACKAGE_SWIFT)

    assert [(r.name, r.version_requirement) for r in reqs] == [
        ("swift-nio", ">=2.40.0"),
        ("swift-tagged", "0.10.0"),
        ("Lint", None),
    ]


def test_parse_package_manifest_later_declaration_wins() -> None:
    text = """
        .package(url: "https://github.com/a/Foo.git", from: "1.0.0"),
        .package(url: "https://github.com/a/Foo.git", from: "2.0.0"),
    """

    reqs = parse_package_manifest(text)

    assert list(reqs) == ["Foo"]
    assert reqs["Foo"].version_requirement == ">=2.0.0"


@pytest.mark.parametrize(
    "url, name",
    [
        ("https://github.com/apple/swift-nio.git", "swift-nio"),
        ("https://gitlab.com/group/sub/Thing.git/", "Thing"),
        ("git@example.com:org/Widget", "Widget"),
    ],
)
def test_package_name_from_url(url: str, name: str) -> None:
    assert package_name_from_url(url) == name


def test_compare_requirements_with_resolved() -> None:
    requirements = {
        "swift-nio": DependencyRequirement("swift-nio", "u", ">=2.40.0"),
        "Tagged": DependencyRequirement("Tagged", "u", "0.10.0"),
    }
    resolved = ResolvedParser().parse(_doc([
        pin("swift-nio", version="2.62.0"),
        pin("tagged", version="0.9.0"),
        pin("stray", version="1.0.0"),
    ])).facts

    issues = compare_requirements_with_resolved(requirements, resolved)

    assert [(i.package, i.reason) for i in issues] == [
        ("tagged", "version-not-satisfied"),
        ("stray", "not-in-manifest"),
    ]
    assert issues[0].requirement == "0.10.0"
