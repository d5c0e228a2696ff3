"""Error types raised by depscope."""

from __future__ import annotations

from typing import Optional


class DepscopeError(Exception):
    """Base class for all depscope errors."""


class ConfigError(DepscopeError):
    """Raised when the configuration file cannot be loaded or parsed."""


class ManifestError(DepscopeError):
    """A manifest could not be parsed as a whole.

    ``kind`` is the stable machine-readable error code.
    """

    kind = "parse-error"

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def to_dict(self) -> dict:
        d = {"kind": self.kind, "message": self.message}
        if self.path:
            d["path"] = self.path
        return d


class ManifestReadError(ManifestError):
    """File missing, unreadable, or not valid UTF-8."""

    kind = "parse-error"


class InvalidFormatError(ManifestError):
    """Content is not the expected top-level format (e.g. not JSON)."""

    kind = "invalid-format"


class MissingPinsError(ManifestError):
    """A pinned manifest has no ``pins`` array."""

    kind = "missing-pins"


class ScanTimeoutError(DepscopeError):
    """The import scan did not finish within the caller's timeout."""

    def __init__(self, timeout: float, files_total: int):
        super().__init__(f"Import scan exceeded {timeout}s ({files_total} files queued)")
        self.timeout = timeout
        self.files_total = files_total


def read_manifest_text(path: str) -> str:
    """Read a manifest as UTF-8 text, mapping OS/codec failures to ManifestReadError."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read()
    except FileNotFoundError as exc:
        raise ManifestReadError(f"Manifest not found: {path}", path=path) from exc
    except UnicodeDecodeError as exc:
        raise ManifestReadError(f"Manifest is not valid UTF-8: {path}", path=path) from exc
    except OSError as exc:
        raise ManifestReadError(f"Cannot read manifest {path}: {exc}", path=path) from exc
