"""One-shot conversion of a Markdown file into a standalone HTML file."""

from __future__ import annotations

import logging
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import RenderConfig
from .errors import OutputWriteError
from .models import RenderedDocument
from .renderer import render_document

logger = logging.getLogger("mdembed")


@dataclass
class ExportResult:
    """Outcome of a single export."""

    source_path: Path
    output_path: Path
    rendered: RenderedDocument
    total_seconds: float


def default_output_path(document_path: Path) -> Path:
    return Path(document_path).with_suffix(".html")


def write_atomically(output_path: Path, data: bytes) -> None:
    """Write through a sibling temp file so a failed write never leaves a partial page."""
    temp_path: Optional[Path] = None
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            dir=output_path.parent,
            prefix=f".{output_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            temp_path = Path(handle.name)
            handle.write(data)
        temp_path.chmod(0o644)
        temp_path.replace(output_path)
    except OSError as exc:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise OutputWriteError(output_path, exc.strerror or str(exc)) from exc


def export(
    document_path: Path,
    output_path: Optional[Path] = None,
    config: Optional[RenderConfig] = None,
) -> ExportResult:
    """Render ``document_path`` and write the page to ``output_path``.

    Raises ``SourceUnreadableError`` when the document cannot be read and
    ``OutputWriteError`` when the destination cannot be written.
    """
    start = time.perf_counter()
    rendered = render_document(document_path, config)
    source_path = rendered.source_path or Path(document_path)
    if output_path is None:
        output_path = default_output_path(source_path)
    output_path = Path(output_path).expanduser().resolve()

    if output_path == source_path:
        raise OutputWriteError(output_path, "refusing to overwrite the source document")

    write_atomically(output_path, rendered.to_bytes())

    logger.info("Saved HTML to %s", output_path)
    if rendered.unresolved:
        logger.warning(
            "%d image(s) in %s could not be embedded",
            len(rendered.unresolved),
            source_path,
        )
    return ExportResult(
        source_path=source_path,
        output_path=output_path,
        rendered=rendered,
        total_seconds=time.perf_counter() - start,
    )
