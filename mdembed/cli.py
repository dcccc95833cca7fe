"""Command-line entry point for mdembed."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .config import DEFAULT_HOST, DEFAULT_PORT, RenderConfig, ServerConfig
from .errors import MdEmbedError, ServerBindError
from .exporter import ExportResult, default_output_path, export
from .server import PreviewServer

logger = logging.getLogger("mdembed.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return ("serve",)
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("serve", *argv)


def _env_port() -> int:
    raw = os.getenv("MDEMBED_PORT")
    if not raw:
        return DEFAULT_PORT
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring MDEMBED_PORT=%r: not an integer", raw)
        return DEFAULT_PORT


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--stylesheet",
        type=Path,
        default=None,
        help="CSS file to embed instead of the built-in style",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_export_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Markdown documents to convert",
    )
    destination = parser.add_mutually_exclusive_group()
    destination.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output HTML file (single document only; default: next to the source)",
    )
    destination.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory where HTML files should be written",
    )
    parser.add_argument(
        "--title",
        default=None,
        help="Page title (default: first heading or file name)",
    )
    _add_common_arguments(parser)


def _add_serve_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        type=Path,
        default=None,
        help="Document to preview at / (any document can be requested with ?path=)",
    )
    parser.add_argument(
        "--host",
        default=os.getenv("MDEMBED_HOST", DEFAULT_HOST),
        help="Address to bind (default: %(default)s)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=_env_port(),
        help="Port to bind (default: %(default)s)",
    )
    parser.add_argument(
        "--open",
        action="store_true",
        help="Open the preview in a web browser once the server is listening",
    )
    parser.add_argument(
        "--no-live-reload",
        action="store_true",
        help="Do not reload the page automatically when the document changes",
    )
    _add_common_arguments(parser)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Render Markdown to self-contained HTML with local images embedded as data URLs."
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser(
        "export", help="Write standalone HTML files"
    )
    _add_export_arguments(export_parser)

    serve_parser = subparsers.add_parser(
        "serve", help="Serve a live preview over HTTP"
    )
    _add_serve_arguments(serve_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    args = parser.parse_args(argv)
    if args.command == "export" and args.output is not None and len(args.paths) > 1:
        export_parser.error("--output accepts a single document; use --output-dir")
    return args


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _output_for(path: Path, args: argparse.Namespace) -> Optional[Path]:
    if args.output is not None:
        return args.output
    if args.output_dir is not None:
        return args.output_dir / default_output_path(path).name
    return None


def _run_export(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    config = RenderConfig(title=args.title, stylesheet=args.stylesheet)

    overall_start = time.perf_counter()
    results: List[ExportResult] = []
    claimed: Dict[Path, Path] = {}
    for path in args.paths:
        output = _output_for(path, args)
        if output is not None:
            target = output.expanduser().resolve()
            if target in claimed:
                logger.error(
                    "Skipping %s: %s is already written from %s",
                    path,
                    target,
                    claimed[target],
                )
                continue
            claimed[target] = path
        try:
            results.append(export(path, output, config))
        except MdEmbedError as exc:
            logger.error("%s", exc)
    total_elapsed = time.perf_counter() - overall_start

    failures = len(args.paths) - len(results)
    logger.info(
        "Finished in %.2fs (%d/%d succeeded, %d failed)",
        total_elapsed,
        len(results),
        len(args.paths),
        failures,
    )
    if args.verbose:
        for result in results:
            logger.debug(
                "Exported %s -> %s (inlined=%d, remote=%d, unresolved=%d, elapsed=%.2fs)",
                result.source_path,
                result.output_path,
                len(result.rendered.inlined),
                len(result.rendered.remote),
                len(result.rendered.unresolved),
                result.total_seconds,
            )
    return 1 if failures else 0


def _run_serve(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    server = PreviewServer(
        ServerConfig(host=args.host, port=args.port, open_browser=args.open),
        RenderConfig(stylesheet=args.stylesheet, live_reload=not args.no_live_reload),
        default_document=args.path,
    )
    try:
        server.start()
    except ServerBindError as exc:
        logger.error("%s", exc)
        return 1
    if args.path is not None:
        logger.info("Previewing %s", server.document_url(args.path))
    else:
        logger.info("Preview any document at %s/?path=<file.md>", server.url)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    if args.command == "export":
        return _run_export(args)
    return _run_serve(args)


if __name__ == "__main__":
    sys.exit(main())
