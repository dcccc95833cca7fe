"""Exceptions raised while rendering, exporting and serving documents."""

from __future__ import annotations

from pathlib import Path


class MdEmbedError(Exception):
    """Base class for every error raised by mdembed."""


class SourceUnreadableError(MdEmbedError):
    """The Markdown document itself is missing or cannot be read."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot read document {path}: {reason}")
        self.path = path
        self.reason = reason


class AssetUnresolvableError(MdEmbedError):
    """A referenced asset could not be located or read."""

    def __init__(self, reference: str, reason: str) -> None:
        super().__init__(f"Cannot embed {reference!r}: {reason}")
        self.reference = reference
        self.reason = reason


class EncodingFailureError(AssetUnresolvableError):
    """An asset was read but could not be turned into a data URL."""


class OutputWriteError(MdEmbedError):
    """The rendered page could not be written to its destination."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot write {path}: {reason}")
        self.path = path
        self.reason = reason


class ServerBindError(MdEmbedError):
    """The preview server could not bind its address."""

    def __init__(self, host: str, port: int, reason: str) -> None:
        super().__init__(f"Cannot bind preview server to {host}:{port}: {reason}")
        self.host = host
        self.port = port
        self.reason = reason
