"""Project discovery: project type and manifest locations."""

from __future__ import annotations

import fnmatch
import os
from typing import List

from .config import AnalysisConfig, DiscoveryConfig
from .logging import get_logger

logger = get_logger("discovery")

PROJECT_SPM = "spm"
PROJECT_XCODE_WORKSPACE = "xcode-workspace"
PROJECT_XCODE_PROJECT = "xcode-project"
PROJECT_UNKNOWN = "unknown"

PBXPROJ_FILE_NAME = "project.pbxproj"


def detect_project_type(root: str, discovery: DiscoveryConfig | None = None) -> str:
    """Classify the directory at *root* by what sits at its top level.

    A package manifest wins over a workspace, which wins over a project.
    """
    d = discovery or DiscoveryConfig()
    try:
        entries = os.listdir(root)
    except OSError as exc:
        logger.warning("cannot list %s: %s", root, exc)
        return PROJECT_UNKNOWN

    if d.package_manifest_name in entries:
        return PROJECT_SPM
    if any(e.endswith(d.workspace_suffix) for e in entries):
        return PROJECT_XCODE_WORKSPACE
    if any(e.endswith(d.project_suffix) for e in entries):
        return PROJECT_XCODE_PROJECT
    return PROJECT_UNKNOWN


def find_resolved_files(config: AnalysisConfig) -> List[str]:
    """Every pinned-version manifest under the project root, sorted.

    Lock files inside ``.xcodeproj``/``.xcworkspace`` bundles are found too,
    since Xcode keeps them under ``xcshareddata/swiftpm``.
    """
    names = set(config.discovery.resolved_file_names)
    found: List[str] = []
    for dirpath, files in _walk(config.root, config.discovery):
        for f in files:
            if f in names:
                found.append(os.path.join(dirpath, f))
    return sorted(found)


def find_pbxproj_files(config: AnalysisConfig) -> List[str]:
    """``project.pbxproj`` inside every project bundle under the root, sorted."""
    suffix = config.discovery.project_suffix
    found: List[str] = []
    for dirpath, files in _walk(config.root, config.discovery):
        if dirpath.endswith(suffix) and PBXPROJ_FILE_NAME in files:
            found.append(os.path.join(dirpath, PBXPROJ_FILE_NAME))
    return sorted(found)


def find_package_manifest(config: AnalysisConfig) -> str | None:
    """The package manifest at the project root, if there is one."""
    path = os.path.join(config.root, config.discovery.package_manifest_name)
    return path if os.path.isfile(path) else None


def _walk(root: str, discovery: DiscoveryConfig):
    """``os.walk`` that prunes excluded directories.

    Hidden directories are always pruned.
    """
    for dirpath, dirs, files in os.walk(root):
        rel = os.path.relpath(dirpath, root)
        dirs[:] = sorted(
            d for d in dirs
            if not d.startswith(".")
            and not is_excluded_path(os.path.join(rel, d), discovery.exclude_patterns)
        )
        yield dirpath, files


def is_excluded_path(rel_path: str, patterns: list) -> bool:
    """Check if a relative path matches any exclude pattern."""
    normalized = rel_path.replace(os.sep, "/")
    for pattern in patterns:
        if fnmatch.fnmatch(normalized, pattern):
            return True
        # Also check individual path components
        parts = normalized.split("/")
        for part in parts:
            if fnmatch.fnmatch(part, pattern):
                return True
    return False
