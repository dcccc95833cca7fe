"""Data models used throughout the rendering pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Union

IMAGE = "image"
LINK = "link"


@dataclass
class Document:
    """A Markdown source file read from disk for a single render."""

    path: Path
    text: str
    mtime_ns: int = 0

    @property
    def base_dir(self) -> Path:
        return self.path.parent


@dataclass
class AssetReference:
    """Raw reference discovered in the generated HTML tree."""

    reference: str
    kind: str
    attribute: str
    element: Any = field(default=None, repr=False, compare=False)


@dataclass
class LocalAsset:
    """Reference that points at an existing, readable local file."""

    reference: str
    path: Path


@dataclass
class RemoteAsset:
    """Reference that is already a URL (including ``data:`` URLs)."""

    reference: str
    url: str


@dataclass
class UnresolvableAsset:
    """Reference that could not be embedded, with the reason why."""

    reference: str
    reason: str


ResolvedAsset = Union[LocalAsset, RemoteAsset, UnresolvableAsset]


@dataclass
class InlinedAsset:
    """Local file encoded as a base64 data URL."""

    reference: str
    path: Path
    mime_type: str
    payload: str
    byte_count: int

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.payload}"


@dataclass
class RenderedDocument:
    """Self-contained HTML page plus a record of what happened to each asset."""

    html: str
    title: str
    source_path: Optional[Path] = None
    inlined: List[InlinedAsset] = field(default_factory=list)
    remote: List[RemoteAsset] = field(default_factory=list)
    unresolved: List[UnresolvableAsset] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        """True when every image reference was embedded or left as a URL."""
        return not self.unresolved

    def to_bytes(self) -> bytes:
        return self.html.encode("utf-8")
