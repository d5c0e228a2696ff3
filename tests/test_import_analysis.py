"""Tests for depscope.package_analysis.import_analysis."""

from __future__ import annotations

import os
import threading
from pathlib import Path

import pytest

from depscope.discovery import is_excluded_path
from depscope.errors import ScanTimeoutError
from depscope.package_analysis import import_analysis
from depscope.package_analysis.import_analysis import (
    ImportScanner,
    count_imports,
    list_source_files,
    merge_counts,
)


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_coverage_and_totals(tmp_path: Path) -> None:
    for i in range(10):
        body = "import Foundation\n"
        if i < 3:
            body += "import Foo\n"
        if i == 0:
            body += "@testable import Foo\n"
        _write(tmp_path / "Sources" / f"File{i}.swift", body)

    result = ImportScanner().scan(str(tmp_path), ["Foo", "Bar"])

    foo = result.metrics["Foo"]
    assert result.files_scanned == 10
    assert foo.total_imports == 4
    assert foo.files_importing == 3
    assert foo.files_coverage == pytest.approx(0.3)
    assert result.metrics["Bar"].total_imports == 0
    assert result.metrics["Bar"].files_coverage == 0.0


def test_matching_is_exact_and_case_sensitive() -> None:
    source = "import FooKit\nimport foo\nimport Foo\n@testable import Foo\n"

    assert count_imports(source, ["Foo"]) == {"Foo": 2}


def test_list_source_files_skips_hidden_and_excluded(tmp_path: Path) -> None:
    _write(tmp_path / "App" / "main.swift", "")
    _write(tmp_path / "App" / ".hidden.swift", "")
    _write(tmp_path / ".build" / "gen.swift", "")
    _write(tmp_path / "Pods" / "Lib.swift", "")
    _write(tmp_path / "README.md", "")

    files = list_source_files(str(tmp_path), exclude_patterns=["Pods"])

    assert files == [str(tmp_path / "App" / "main.swift")]


def test_list_source_files_matches_globs_like_discovery(tmp_path: Path) -> None:
    _write(tmp_path / "App" / "main.swift", "")
    _write(tmp_path / "AppTests" / "T.swift", "")
    _write(tmp_path / "Modules" / "CoreTests" / "U.swift", "")

    files = list_source_files(str(tmp_path), exclude_patterns=["*Tests"])

    assert is_excluded_path("AppTests", ["*Tests"])
    assert files == [str(tmp_path / "App" / "main.swift")]


def test_scanner_ignores_excluded_test_targets(tmp_path: Path) -> None:
    _write(tmp_path / "App" / "main.swift", "import Foo\n")
    _write(tmp_path / "AppTests" / "FooTests.swift", "import Foo\nimport Bar\n")

    result = ImportScanner(exclude_patterns=["*Tests"]).scan(str(tmp_path), ["Foo", "Bar"])

    assert result.files_scanned == 1
    assert result.metrics["Foo"].files_coverage == 1.0
    assert result.metrics["Bar"].total_imports == 0


def test_empty_tree_reports_zero_files(tmp_path: Path) -> None:
    result = ImportScanner().scan(str(tmp_path), ["Foo"])

    assert result.files_scanned == 0
    assert result.metrics["Foo"].files_coverage == 0.0


def test_unreadable_file_is_skipped(tmp_path: Path) -> None:
    _write(tmp_path / "Good.swift", "import Foo\n")
    (tmp_path / "Bad.swift").write_bytes(b"\xff\xfe import Foo \xff")

    result = ImportScanner().scan(str(tmp_path), ["Foo"])

    assert result.files_scanned == 2
    assert result.files_failed == 1
    assert result.metrics["Foo"].total_imports == 1
    assert result.metrics["Foo"].files_coverage == pytest.approx(0.5)


def test_merge_counts_sums_per_key() -> None:
    merged = merge_counts([
        ("a.swift", {"Foo": 1, "Bar": 2}),
        ("b.swift", {"Foo": 3}),
        ("a.swift", {"Foo": 1}),
        ("c.swift", None),
    ])

    assert merged == {"Foo": {"a.swift": 2, "b.swift": 3}, "Bar": {"a.swift": 2}}


def test_scan_timeout_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write(tmp_path / "Slow.swift", "import Foo\n")
    release = threading.Event()
    original = import_analysis._scan_file

    def slow_scan(path, names):
        release.wait(5)
        return original(path, names)

    monkeypatch.setattr(import_analysis, "_scan_file", slow_scan)

    try:
        with pytest.raises(ScanTimeoutError) as info:
            ImportScanner(max_workers=1).scan(str(tmp_path), ["Foo"], timeout=0.05)
    finally:
        release.set()

    assert info.value.files_total == 1


def test_results_are_independent_of_worker_count(tmp_path: Path) -> None:
    for i in range(20):
        _write(tmp_path / f"F{i}.swift", "import Foo\n" * (i % 3))

    single = ImportScanner(max_workers=1).scan(str(tmp_path), ["Foo"])
    many = ImportScanner(max_workers=8).scan(str(tmp_path), ["Foo"])

    assert single.metrics["Foo"].to_dict() == many.metrics["Foo"].to_dict()
    assert os.path.basename(next(iter(single.metrics["Foo"].import_locations))) == "F1.swift"
