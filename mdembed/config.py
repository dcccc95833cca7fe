"""Configuration objects and constants for rendering and previewing."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_PLACEHOLDER_TEXT = "Unable to embed image."


@dataclass
class RenderConfig:
    """Settings that control how a document is turned into a page."""

    title: Optional[str] = None
    stylesheet: Optional[Path] = None
    live_reload: bool = False
    placeholder_text: str = DEFAULT_PLACEHOLDER_TEXT
    placeholder_fill: str = "red"


@dataclass
class ServerConfig:
    """Settings for the live preview HTTP server."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    open_browser: bool = False
    watch_timeout: float = 25.0
    poll_interval: float = 0.25
