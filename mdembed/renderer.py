"""Render Markdown documents into self-contained HTML pages."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .config import RenderConfig
from .content import (
    collect_references,
    extract_title,
    mark_unresolved,
    parse_fragment,
    replace_reference,
)
from .encoder import data_url, encode
from .errors import AssetUnresolvableError, SourceUnreadableError
from .locator import locate
from .markdown import compose_page, markdown_to_html, placeholder_svg
from .models import (
    IMAGE,
    Document,
    LocalAsset,
    RemoteAsset,
    RenderedDocument,
    UnresolvableAsset,
)

logger = logging.getLogger("mdembed")

DEFAULT_TITLE = "Document"


def read_document(path: Path) -> Document:
    """Read a Markdown file fresh from disk."""
    path = Path(path).expanduser().resolve()
    try:
        mtime_ns = path.stat().st_mtime_ns
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise SourceUnreadableError(path, "file not found") from exc
    except UnicodeDecodeError as exc:
        raise SourceUnreadableError(path, f"not valid UTF-8 ({exc.reason})") from exc
    except OSError as exc:
        raise SourceUnreadableError(path, exc.strerror or str(exc)) from exc
    return Document(path=path, text=text, mtime_ns=mtime_ns)


def render(
    document_text: str,
    base_dir: Path,
    config: Optional[RenderConfig] = None,
    *,
    default_title: str = DEFAULT_TITLE,
    watch_url: Optional[str] = None,
) -> RenderedDocument:
    """Render Markdown text, embedding every local image it references.

    Relative references are resolved against ``base_dir``. Images that cannot
    be embedded are replaced by a placeholder image and reported in
    ``RenderedDocument.unresolved``; hyperlinks are left untouched.
    """
    config = config or RenderConfig()
    soup = parse_fragment(markdown_to_html(document_text))
    rendered = RenderedDocument(html="", title="")
    placeholder_url: Optional[str] = None

    for reference in collect_references(soup):
        if reference.kind != IMAGE:
            continue
        resolved = locate(reference.reference, base_dir)
        if isinstance(resolved, RemoteAsset):
            rendered.remote.append(resolved)
            continue
        if isinstance(resolved, LocalAsset):
            try:
                inlined = encode(resolved.path, reference.reference)
            except AssetUnresolvableError as exc:
                resolved = UnresolvableAsset(reference.reference, exc.reason)
            else:
                replace_reference(reference, inlined.data_url)
                rendered.inlined.append(inlined)
                continue

        logger.warning(
            "Unable to embed image %r: %s", resolved.reference, resolved.reason
        )
        if placeholder_url is None:
            placeholder_url = data_url(
                placeholder_svg(config).encode("utf-8"), "image/svg+xml"
            )
        mark_unresolved(reference, placeholder_url)
        rendered.unresolved.append(resolved)

    rendered.title = config.title or extract_title(soup) or default_title
    rendered.html = compose_page(soup.decode(), rendered.title, config, watch_url)
    logger.debug(
        "Rendered page with %d inlined, %d remote and %d unresolved image(s)",
        len(rendered.inlined),
        len(rendered.remote),
        len(rendered.unresolved),
    )
    return rendered


def render_document(
    path: Path,
    config: Optional[RenderConfig] = None,
) -> RenderedDocument:
    """Read ``path`` from disk and render it relative to its own directory."""
    document = read_document(path)
    rendered = render(
        document.text,
        document.base_dir,
        config,
        default_title=document.path.name,
    )
    rendered.source_path = document.path
    return rendered
