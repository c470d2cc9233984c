"""image-binder: Upload images into named directories and export them as a PDF."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from .assembler import ImageFormat, ImageInput, assemble_pdf, write_pdf
from .errors import (
    ConfigError,
    DirectoryExistsError,
    DirectoryNotFoundError,
    EmptyExportError,
    ImageBinderError,
    ImageDecodeError,
    ImageFetchError,
    ImageNotFoundError,
    InvalidDirectoryNameError,
    InvalidOptionsError,
    InvalidUploadError,
    LayoutError,
    StorageError,
)
from .layout import FitMode, Placement, fit_image, place_image
from .options import Orientation, PageGeometry, PageOptions, PageSize, resolve_page_size
from .sources import ImageRef, fetch_images
from .storage import StoredImage, UploadStore

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ConfigError",
    "DirectoryExistsError",
    "DirectoryNotFoundError",
    "EmptyExportError",
    "ExportResult",
    "FitMode",
    "ImageBinderError",
    "ImageDecodeError",
    "ImageFetchError",
    "ImageFormat",
    "ImageInput",
    "ImageNotFoundError",
    "InvalidDirectoryNameError",
    "InvalidOptionsError",
    "InvalidUploadError",
    "LayoutError",
    "Orientation",
    "PageGeometry",
    "PageOptions",
    "PageSize",
    "Placement",
    "StorageError",
    "UploadStore",
    "assemble_pdf",
    "export_directory",
    "fetch_images",
    "fit_image",
    "place_image",
    "render_pdf",
    "resolve_page_size",
    "select_images",
    "write_pdf",
]


@dataclass
class ExportResult:
    """Result of exporting a directory to a PDF file."""

    directory: str
    page_count: int
    total_bytes: int
    output_path: Path


def _resolve_pdf_path(
    *,
    output: Path | str | None,
    title: str,
) -> Path:
    """Resolve the output PDF file path.

    Rules:
        - ``None`` → ``{cwd}/{title}.pdf``
        - Ends in ``.pdf`` → treated as literal file path
        - Otherwise → treated as directory: ``{path}/{title}.pdf``
    """
    if output is None:
        return Path(f"{title}.pdf").resolve()

    output = Path(output)
    if output.suffix.lower() == ".pdf":
        return output.resolve()

    return (output / f"{title}.pdf").resolve()


def select_images(
    images: Sequence[StoredImage],
    selection: Sequence[str] | None = None,
) -> list[StoredImage]:
    """Pick the images to export, keeping directory order.

    Without a selection every PNG/JPEG image is exported.

    Raises:
        ImageNotFoundError: If *selection* names an image not in *images*.
    """
    if not selection:
        return [image for image in images if image.exportable]

    known = {image.name for image in images}
    missing = [name for name in selection if name not in known]
    if missing:
        raise ImageNotFoundError(f"Images not found: {', '.join(missing)}")

    wanted = set(selection)
    return [image for image in images if image.name in wanted]


async def render_pdf(
    refs: Sequence[ImageRef],
    options: PageOptions | None = None,
    *,
    concurrency: int = 10,
    max_retries: int = 3,
    on_image_done: Callable[[], None] | None = None,
    title: str | None = None,
) -> bytes:
    """Fetch images concurrently, then assemble them into a PDF in order.

    Raises:
        EmptyExportError: If *refs* is empty.
        ImageFetchError: If any reference cannot be read.
        ImageDecodeError: If any image fails to decode as its declared format.
        LayoutError: If an image cannot be placed with the given options.
    """
    if not refs:
        raise EmptyExportError("images must not be empty")

    images = await fetch_images(
        refs,
        concurrency=concurrency,
        max_retries=max_retries,
        on_image_done=on_image_done,
    )
    return assemble_pdf(images, options, title=title)


async def export_directory(
    store: UploadStore,
    directory: str,
    output: Path | str | None = None,
    *,
    selection: Sequence[str] | None = None,
    options: PageOptions | None = None,
    concurrency: int = 10,
) -> ExportResult:
    """Export images of an upload directory as a single PDF file.

    Args:
        store: Upload store holding the directory.
        directory: Name of the directory to export.
        output: Output path. Omit for ``{directory}.pdf`` in the CWD, pass a
            ``.pdf`` path to use it literally, or pass a directory to save
            ``{directory}.pdf`` inside it.
        selection: Names of the images to export; they keep the directory's
            display order. Defaults to every PNG/JPEG image.
        options: Page options for the export.
        concurrency: Maximum number of images read concurrently.

    Returns:
        An :class:`ExportResult` summarizing the outcome.

    Raises:
        DirectoryNotFoundError: If the directory does not exist.
        ImageNotFoundError: If *selection* names an unknown image.
        EmptyExportError: If there is nothing to export.

    Example::

        import asyncio
        from image_binder import UploadStore, export_directory

        result = asyncio.run(export_directory(
            store=UploadStore("uploads"),
            directory="holiday",
        ))
        print(f"Saved PDF to {result.output_path}")
    """
    chosen = select_images(store.list_images(directory), selection)
    pdf_path = _resolve_pdf_path(output=output, title=directory)

    pdf_bytes = await render_pdf(
        [image.path for image in chosen],
        options,
        concurrency=concurrency,
        title=directory,
    )

    pdf_path.parent.mkdir(parents=True, exist_ok=True)
    pdf_path.write_bytes(pdf_bytes)

    return ExportResult(
        directory=directory,
        page_count=len(chosen),
        total_bytes=len(pdf_bytes),
        output_path=pdf_path,
    )
