"""Error types for CanDet."""

from __future__ import annotations


class CanDetError(Exception):
    """Base exception for CanDet."""


class SourceError(CanDetError):
    """Raised when a video source cannot be opened or read."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"[{source}] {message}")


class ConfigError(CanDetError):
    """Raised when a descriptor or configuration is missing required data."""


class ExportError(CanDetError):
    """Raised when the annotation store or frame artifact store is unwritable."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")
