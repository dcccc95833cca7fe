"""Read local assets and encode them as data URLs."""

from __future__ import annotations

import base64
import logging
import mimetypes
from pathlib import Path
from typing import Optional

from filetype import guess

from .errors import AssetUnresolvableError, EncodingFailureError
from .models import InlinedAsset

logger = logging.getLogger("mdembed")

FALLBACK_MIME_TYPE = "application/octet-stream"

# Extensions missing from some platform mime.types tables.
EXTRA_MIME_TYPES = {
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".avif": "image/avif",
    ".apng": "image/apng",
    ".jfif": "image/jpeg",
}


def mime_type_from_extension(path: Path) -> Optional[str]:
    """Look up a MIME type using only the file extension."""
    suffix = path.suffix.lower()
    if suffix in EXTRA_MIME_TYPES:
        return EXTRA_MIME_TYPES[suffix]
    mime_type, _ = mimetypes.guess_type(path.name, strict=False)
    return mime_type


def sniff_mime_type(data: bytes) -> Optional[str]:
    """Detect a MIME type from the file signature using filetype."""
    kind = guess(data)
    if kind:
        return kind.mime
    return None


def guess_mime_type(path: Path, data: bytes) -> str:
    """Guess by extension first, then by content, then give up on octet-stream."""
    return (
        mime_type_from_extension(path)
        or sniff_mime_type(data)
        or FALLBACK_MIME_TYPE
    )


def data_url(data: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def encode(path: Path, reference: Optional[str] = None) -> InlinedAsset:
    """Read ``path`` and return it as an inlined asset.

    Raises ``AssetUnresolvableError`` if the file cannot be read and
    ``EncodingFailureError`` if its bytes are too large to encode in memory.
    """
    reference = str(path) if reference is None else reference
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise AssetUnresolvableError(reference, f"cannot read {path}: {exc}") from exc

    mime_type = guess_mime_type(Path(path), data)
    try:
        payload = base64.b64encode(data).decode("ascii")
    except MemoryError as exc:
        raise EncodingFailureError(
            reference, f"not enough memory to encode {path} ({len(data)} bytes)"
        ) from exc

    logger.debug("Encoded %s as %s (%d bytes)", path, mime_type, len(data))
    return InlinedAsset(
        reference=reference,
        path=Path(path),
        mime_type=mime_type,
        payload=payload,
        byte_count=len(data),
    )
