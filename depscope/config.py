"""Configuration loading and validation for dependency analysis."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

import yaml

from .errors import ConfigError


# ---------------------------------------------------------------------------
# Ranking weights
# ---------------------------------------------------------------------------

@dataclass
class RankingWeights:
    """Weights for the relevance score (top four sum to 1.0)."""
    import_frequency: float = 0.4
    bottleneck: float = 0.3
    direct: float = 0.2
    depth: float = 0.1
    # blend inside the import-frequency signal
    import_count_blend: float = 0.7
    coverage_blend: float = 0.3


# ---------------------------------------------------------------------------
# Threshold config dataclasses
# ---------------------------------------------------------------------------

@dataclass
class ComplexityThresholds:
    """Node-count / depth cut-offs for the complexity level."""
    medium_nodes: int = 20
    medium_depth: int = 4
    high_nodes: int = 50
    high_depth: int = 6
    extreme_nodes: int = 100
    extreme_depth: int = 8


@dataclass
class Thresholds:
    bottleneck_factor: float = 2.0
    complexity: ComplexityThresholds = field(default_factory=ComplexityThresholds)


# ---------------------------------------------------------------------------
# Discovery config
# ---------------------------------------------------------------------------

@dataclass
class DiscoveryConfig:
    resolved_file_names: list = field(default_factory=lambda: [
        "Package.resolved",
    ])
    package_manifest_name: str = "Package.swift"
    project_suffix: str = ".xcodeproj"
    workspace_suffix: str = ".xcworkspace"
    source_extensions: list = field(default_factory=lambda: [".swift"])
    exclude_patterns: list = field(default_factory=lambda: [
        ".build",
        "DerivedData",
        "Pods",
        "Carthage",
    ])


# ---------------------------------------------------------------------------
# Import scan config
# ---------------------------------------------------------------------------

@dataclass
class ScanConfig:
    enabled: bool = True
    max_workers: int = 8
    timeout_seconds: Optional[float] = None


# ---------------------------------------------------------------------------
# Top-level Config
# ---------------------------------------------------------------------------

@dataclass
class AnalysisConfig:
    version: str = "1.0"
    root: str = "."
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    ranking: RankingWeights = field(default_factory=RankingWeights)
    thresholds: Thresholds = field(default_factory=Thresholds)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def _apply_dict(obj, data: dict):
    """Apply dictionary values to a dataclass instance, recursively."""
    if not isinstance(data, dict):
        return
    for key, value in data.items():
        if hasattr(obj, key):
            current = getattr(obj, key)
            if hasattr(current, '__dataclass_fields__') and isinstance(value, dict):
                _apply_dict(current, value)
            else:
                setattr(obj, key, value)


def load_config(config_path: Optional[str] = None, repo_root: Optional[str] = None) -> AnalysisConfig:
    """Load analysis configuration from YAML file.

    Search order when *config_path* is None:
      1. ``depscope.yaml`` in *repo_root*
      2. ``.depscope/config.yaml`` in *repo_root*

    *repo_root* defaults to cwd.
    """
    if repo_root is None:
        repo_root = os.getcwd()

    config = AnalysisConfig()

    if config_path is None:
        candidates = [
            os.path.join(repo_root, "depscope.yaml"),
            os.path.join(repo_root, ".depscope", "config.yaml"),
        ]
        for candidate in candidates:
            if os.path.isfile(candidate):
                config_path = candidate
                break
    elif not os.path.isfile(config_path):
        raise ConfigError(f"Config file not found: {config_path}")

    if config_path:
        try:
            with open(config_path, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config root must be a mapping: {config_path}")

        if "version" in data:
            config.version = str(data["version"])
        if "root" in data:
            config.root = data["root"]
        if "discovery" in data:
            _apply_dict(config.discovery, data["discovery"])
        if "scan" in data:
            _apply_dict(config.scan, data["scan"])
        if "ranking" in data:
            _apply_dict(config.ranking, data["ranking"])
        if "thresholds" in data:
            _apply_dict(config.thresholds, data["thresholds"])

    # Resolve root to absolute
    if not os.path.isabs(config.root):
        if config_path:
            config_dir = os.path.dirname(os.path.abspath(config_path))
            # .depscope/config.yaml describes its parent directory
            if os.path.basename(config_dir) == ".depscope":
                config_dir = os.path.dirname(config_dir)
            config.root = os.path.normpath(os.path.join(config_dir, config.root))
        else:
            config.root = os.path.abspath(os.path.join(repo_root, config.root))

    return config
