"""Import usage scanning for declared dependencies.

Counts literal ``import <Module>`` statements per source file and grounds
each declared dependency in actual usage. This is lexical: aliased,
re-exported and platform-gated imports all count the same as a plain one.
"""

from __future__ import annotations

import os
import re
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..discovery import is_excluded_path
from ..errors import ScanTimeoutError
from ..logging import get_logger
from .models import ImportMetrics, ImportScanResult

logger = get_logger("imports")

IMPORT_PATTERN = re.compile(r"\bimport\s+([A-Za-z0-9_]+)")

DEFAULT_EXTENSIONS = (".swift",)


def list_source_files(
    root: str,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    exclude_patterns: Iterable[str] = (),
) -> List[str]:
    """Recursively list source files under *root*, skipping hidden entries.

    Directories are pruned with the same glob matching discovery uses, so
    one ``exclude_patterns`` list means the same thing in both walks.
    Returns sorted absolute paths.
    """
    patterns = list(exclude_patterns)
    files: List[str] = []
    for dirpath, dirs, filenames in os.walk(root):
        rel = os.path.relpath(dirpath, root)
        dirs[:] = [
            d for d in dirs
            if not d.startswith(".") and not is_excluded_path(os.path.join(rel, d), patterns)
        ]
        for f in filenames:
            if f.startswith("."):
                continue
            if not f.endswith(tuple(extensions)):
                continue
            files.append(os.path.join(dirpath, f))
    return sorted(files)


def count_imports(source: str, names: Iterable[str]) -> Dict[str, int]:
    """Count ``import X`` statements in *source* where X is exactly one of *names*."""
    wanted = set(names)
    counts: Dict[str, int] = defaultdict(int)
    for m in IMPORT_PATTERN.finditer(source):
        module = m.group(1)
        if module in wanted:
            counts[module] += 1
    return dict(counts)


def _scan_file(path: str, names: frozenset) -> Tuple[str, Optional[Dict[str, int]]]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            source = fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("skipping unreadable file %s: %s", path, exc)
        return path, None
    return path, count_imports(source, names)


def merge_counts(
    partials: Iterable[Tuple[str, Optional[Dict[str, int]]]],
) -> Dict[str, Dict[str, int]]:
    """Merge per-file partial maps into name -> {path: count} by per-key sum."""
    merged: Dict[str, Dict[str, int]] = defaultdict(dict)
    for path, counts in partials:
        if not counts:
            continue
        for name, count in counts.items():
            merged[name][path] = merged[name].get(path, 0) + count
    return merged


class ImportScanner:
    """Scans a source tree for imports of a set of dependency names."""

    def __init__(
        self,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        exclude_patterns: Iterable[str] = (),
        max_workers: int = 8,
    ):
        self.extensions = tuple(extensions)
        self.exclude_patterns = tuple(exclude_patterns)
        self.max_workers = max(1, max_workers)

    def scan(
        self,
        root: str,
        names: Iterable[str],
        timeout: Optional[float] = None,
    ) -> ImportScanResult:
        """Scan *root* and return metrics for every name in *names*.

        Args:
            root: Project directory to walk.
            names: Dependency module names to match (exact, case-sensitive).
            timeout: Seconds allowed for the whole scan; None waits forever.

        Returns:
            ImportScanResult with one ImportMetrics per requested name.

        Raises:
            ScanTimeoutError: The scan did not finish within *timeout*.
        """
        wanted = frozenset(names)
        result = ImportScanResult(
            metrics={name: ImportMetrics(name=name) for name in wanted},
        )

        files = list_source_files(root, self.extensions, self.exclude_patterns)
        if not files:
            logger.info("no source files under %s", root)
            return result

        logger.info("scanning %d source files for %d dependencies", len(files), len(wanted))

        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            partials = list(executor.map(
                lambda p: _scan_file(p, wanted), files, timeout=timeout,
            ))
        except FuturesTimeoutError as exc:
            raise ScanTimeoutError(timeout, len(files)) from exc
        finally:
            # don't block on stragglers after a timeout
            executor.shutdown(wait=False, cancel_futures=True)

        result.files_scanned = len(files)
        result.files_failed = sum(1 for _, counts in partials if counts is None)

        for name, locations in merge_counts(partials).items():
            metrics = result.metrics[name]
            metrics.import_locations = dict(sorted(locations.items()))
            metrics.total_imports = sum(locations.values())

        for metrics in result.metrics.values():
            metrics.files_coverage = metrics.files_importing / len(files)

        return result
