"""Command-line interface for image-binder."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TimeRemainingColumn,
)

from . import __version__, _resolve_pdf_path
from .assembler import ImageInput, write_pdf
from .config import Settings
from .errors import EmptyExportError, ImageBinderError
from .options import Orientation, PageOptions, PageSize
from .sources import ImageRef, fetch_images, is_remote
from .storage import EXPORTABLE_SUFFIXES

_DEFAULT_TITLE = "images"


def _format_size(num_bytes: int) -> str:
    """Format a byte count as a human-readable string."""
    value = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(value) < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TB"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="image-binder",
        description=(
            "Bind PNG and JPEG images into a single PDF, one page per image,"
            " or serve the upload web application."
        ),
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Show debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    export = subparsers.add_parser(
        "export",
        help="Export images to a PDF",
        description="Export images to a PDF, one page per image, in the given order.",
    )
    export.add_argument(
        "sources",
        nargs="+",
        help=(
            "Image files or http(s) URLs in page order, or a single directory"
            " whose PNG/JPEG images are exported in name order"
        ),
    )
    export.add_argument(
        "--output",
        type=Path,
        default=None,
        help=(
            "Output path: a .pdf file path, a directory, or omit for"
            " {title}.pdf in CWD"
        ),
    )
    export.add_argument(
        "--title",
        default=None,
        help="Document title (default: directory name, or 'images')",
    )
    export.add_argument(
        "--page-size",
        choices=[size.value for size in PageSize],
        default=None,
        help="Page size (default: A4)",
    )
    export.add_argument(
        "--orientation",
        choices=[orientation.value for orientation in Orientation],
        default=None,
        help="Page orientation (default: portrait)",
    )
    export.add_argument(
        "--margin",
        type=float,
        default=None,
        help="Margin in points on every side (default: 40)",
    )
    export.add_argument(
        "--quality",
        type=float,
        default=None,
        help="Quality between 0 and 1 (default: 0.8)",
    )
    export.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Maximum number of images fetched at once (default: 10)",
    )

    serve = subparsers.add_parser("serve", help="Run the upload web application")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve.add_argument("--port", type=int, default=5000, help="Port to listen on")
    serve.add_argument(
        "--upload-dir",
        type=Path,
        default=None,
        help="Directory holding uploaded images (default: ./uploads)",
    )
    serve.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Run Flask in debug mode",
    )
    return parser


def _configure_logging(*, verbose: bool, console: Console) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _collect_sources(sources: list[str]) -> tuple[list[ImageRef], str]:
    """Expand CLI sources into image references and a default title."""
    if len(sources) == 1 and not is_remote(sources[0]) and Path(sources[0]).is_dir():
        directory = Path(sources[0])
        refs: list[ImageRef] = sorted(
            p
            for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() in EXPORTABLE_SUFFIXES
        )
        if not refs:
            raise EmptyExportError(f"No PNG or JPEG images found in {directory}")
        return refs, directory.resolve().name

    return [s if is_remote(s) else Path(s) for s in sources], _DEFAULT_TITLE


def _page_options(args: argparse.Namespace, defaults: PageOptions) -> PageOptions:
    overrides = {
        "page_size": args.page_size,
        "orientation": args.orientation,
        "margin": args.margin,
        "quality": args.quality,
    }
    return PageOptions.from_mapping(
        {key: value for key, value in overrides.items() if value is not None},
        defaults=defaults,
    )


async def _fetch_with_progress(
    *,
    console: Console,
    refs: list[ImageRef],
    concurrency: int,
    max_retries: int,
) -> list[ImageInput]:
    """Fetch images with a rich progress bar."""
    progress = Progress(
        SpinnerColumn(),
        "[progress.description]{task.description}",
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
    )
    with progress:
        task_id = progress.add_task(
            description="Reading images",
            total=len(refs),
        )
        return await fetch_images(
            refs,
            concurrency=concurrency,
            max_retries=max_retries,
            on_image_done=lambda: progress.advance(task_id=task_id),
        )


async def _async_export(args: argparse.Namespace, settings: Settings) -> None:
    console = Console()
    start_time = time.monotonic()

    options = _page_options(args, settings.default_options)
    refs, default_title = _collect_sources(args.sources)
    title = args.title or default_title
    pdf_path = _resolve_pdf_path(output=args.output, title=title)

    images = await _fetch_with_progress(
        console=console,
        refs=refs,
        concurrency=args.concurrency or settings.fetch_concurrency,
        max_retries=settings.fetch_max_retries,
    )

    with console.status("[bold blue]Assembling PDF..."):
        pdf_size = write_pdf(images, pdf_path, options, title=title)

    elapsed = time.monotonic() - start_time

    summary_lines = [
        f"[bold]Pages:[/bold] {len(images)}",
        f"[bold]Layout:[/bold] {options.page_size.value} {options.orientation.value},"
        f" margin {options.margin:g}pt",
        f"[bold]PDF size:[/bold] {_format_size(pdf_size)}",
        f"[bold]Output:[/bold] {pdf_path}",
    ]

    console.print(Panel(
        "\n".join(summary_lines),
        title=f"[bold green]Done in {elapsed:.1f}s[/bold green]",
        border_style="green",
    ))


def _serve(args: argparse.Namespace, settings: Settings) -> None:
    from .web import create_app

    if args.upload_dir is not None:
        settings = replace(settings, upload_dir=args.upload_dir)

    app = create_app(settings)
    app.run(host=args.host, port=args.port, debug=args.debug)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ``image-binder`` CLI command."""
    console = Console(stderr=True)
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(verbose=args.verbose, console=console)

    try:
        settings = Settings.from_env()
        if args.command == "serve":
            _serve(args, settings)
        else:
            asyncio.run(_async_export(args, settings))
    except ImageBinderError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted.[/dim]")
        sys.exit(130)
