"""Markdown parsing and HTML page assembly."""

from __future__ import annotations

import html
import logging
import re
from pathlib import Path
from typing import Optional

from markdown_it import MarkdownIt

from .config import RenderConfig

logger = logging.getLogger("mdembed")

SCRIPT_LINK_RE = re.compile(r"^(javascript|vbscript):", re.IGNORECASE)

DEFAULT_STYLESHEET = """
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Helvetica, Arial, sans-serif; color: #222; line-height: 1.6; max-width: 900px; margin: 2rem auto; padding: 0 1rem; }
h1, h2, h3 { color: #111; }
h1, h2 { border-bottom: 1px solid #eaecef; padding-bottom: .3em; }
pre { background: #f6f8fa; padding: 0.8rem; overflow-x: auto; border-radius: 6px; }
code { background: #f6f8fa; padding: 0.15rem 0.35rem; border-radius: 4px; }
pre code { padding: 0; background: transparent; }
blockquote { color: #57606a; border-left: .25em solid #d0d7de; margin: 0; padding: 0 1em; }
table { border-collapse: collapse; }
th, td { border: 1px solid #ddd; padding: 6px 8px; }
img { max-width: 100%; height: auto; }
img.mdembed-unresolved { border: 1px dashed red; }
"""

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
<style>{style}</style>
</head>
<body>
<article class="markdown-body">
{body}
</article>
{script}</body>
</html>
"""

LIVE_RELOAD_SCRIPT = """<script>
(function () {{
  var watchUrl = "{watch_url}";
  function poll() {{
    fetch(watchUrl, {{ cache: "no-store" }}).then(function (response) {{
      if (response.status === 200) {{
        location.reload();
      }} else if (response.status === 204) {{
        poll();
      }} else {{
        setTimeout(poll, 2000);
      }}
    }}).catch(function () {{
      setTimeout(poll, 2000);
    }});
  }}
  poll();
}})();
</script>
"""

PLACEHOLDER_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="320" height="40" viewBox="0 0 320 40">
<rect width="320" height="40" fill="{fill}"/>
<text x="160" y="25" fill="white" font-family="sans-serif" font-size="14" text-anchor="middle">{text}</text>
</svg>
"""


def validate_link(url: str) -> bool:
    """Accept every link except script URLs; ``data:`` and ``file:`` are allowed."""
    return not SCRIPT_LINK_RE.match(url.strip())


def create_parser() -> MarkdownIt:
    """CommonMark parser with tables, strikethrough and raw HTML enabled."""
    parser = MarkdownIt("commonmark", {"html": True}).enable(["table", "strikethrough"])
    parser.validateLink = validate_link
    return parser


def markdown_to_html(text: str) -> str:
    """Convert Markdown text to an HTML fragment."""
    return create_parser().render(text)


def placeholder_svg(config: RenderConfig) -> str:
    return PLACEHOLDER_SVG.format(
        fill=html.escape(config.placeholder_fill, quote=True),
        text=html.escape(config.placeholder_text),
    )


def load_stylesheet(config: RenderConfig) -> str:
    """Return the configured stylesheet text, falling back to the built-in one."""
    if config.stylesheet is None:
        return DEFAULT_STYLESHEET
    path = Path(config.stylesheet).expanduser()
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning(
            "Stylesheet %s could not be read (%s); using the default style", path, exc
        )
        return DEFAULT_STYLESHEET


def compose_page(
    body: str,
    title: str,
    config: RenderConfig,
    watch_url: Optional[str] = None,
) -> str:
    """Wrap an HTML fragment in a standalone page."""
    script = ""
    if config.live_reload and watch_url:
        script = LIVE_RELOAD_SCRIPT.format(watch_url=watch_url.replace('"', "%22"))
    style = load_stylesheet(config).replace("</style", "<\\/style")
    return PAGE_TEMPLATE.format(
        title=html.escape(title),
        style=style,
        body=body.strip(),
        script=script,
    )
