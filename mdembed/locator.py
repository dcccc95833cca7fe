"""Resolve asset references found in a document to local files or URLs."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from urllib.parse import unquote, urlsplit
from urllib.request import url2pathname

from .models import LocalAsset, RemoteAsset, ResolvedAsset, UnresolvableAsset

logger = logging.getLogger("mdembed")


def _url_scheme(reference: str) -> str:
    """Return the lowercase URL scheme, ignoring Windows drive letters."""
    scheme = urlsplit(reference).scheme
    if len(scheme) < 2:
        return ""
    return scheme.lower()


def resolve_reference_path(reference: str, base_dir: Path) -> Path:
    """Join a path-like reference with the document directory.

    Query strings and fragments are dropped, percent escapes added by the
    Markdown parser are decoded, ``~`` is expanded and ``.``/``..`` segments
    are collapsed. The filesystem is not consulted.
    """
    if _url_scheme(reference) == "file":
        raw = url2pathname(urlsplit(reference).path)
    else:
        raw = unquote(urlsplit(reference).path)
    candidate = Path(raw).expanduser()
    if not candidate.is_absolute():
        candidate = Path(base_dir) / candidate
    return Path(os.path.normpath(candidate))


def locate(reference: str, base_dir: Path) -> ResolvedAsset:
    """Classify a reference as a readable local file, a URL, or unresolvable."""
    reference = reference.strip()
    if not reference:
        return UnresolvableAsset(reference, "empty reference")

    scheme = _url_scheme(reference)
    if scheme and scheme != "file":
        return RemoteAsset(reference, reference)
    if not scheme and urlsplit(reference).netloc:
        # protocol-relative, e.g. //cdn.example.com/logo.png
        return RemoteAsset(reference, reference)

    path = resolve_reference_path(reference, base_dir)
    try:
        if not path.is_file():
            return UnresolvableAsset(reference, f"no such file: {path}")
    except OSError as exc:
        return UnresolvableAsset(reference, f"cannot stat {path}: {exc}")
    if not os.access(path, os.R_OK):
        return UnresolvableAsset(reference, f"permission denied: {path}")

    logger.debug("Resolved %s to %s", reference, path)
    return LocalAsset(reference, path)
