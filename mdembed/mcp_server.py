"""MCP server exposing mdembed render/export tools."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .config import RenderConfig
from .exporter import export as export_document
from .renderer import render_document

logger = logging.getLogger("mdembed.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="mdembed")


def _source_path(path: str) -> Path:
    source = Path(path).expanduser()
    if not source.is_file():
        raise FileNotFoundError(f"Markdown document does not exist: {source}")
    return source


@mcp.tool()
def render(
    path: str,
) -> str:
    """Render a Markdown file to self-contained HTML with its images embedded."""

    rendered = render_document(_source_path(path), RenderConfig())
    return rendered.html


@mcp.tool()
def export(
    path: str,
    output: Optional[str] = None,
) -> str:
    """Write a Markdown file as standalone HTML and return the output path."""

    output_path = Path(output).expanduser() if output else None
    result = export_document(_source_path(path), output_path, RenderConfig())
    return str(result.output_path)


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
