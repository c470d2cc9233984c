"""Assemble ordered images into a single PDF document, one page per image."""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .errors import EmptyExportError, ImageDecodeError, LayoutError
from .layout import Placement, place_image
from .options import PageOptions

logger = logging.getLogger(__name__)

_CREATOR = "image-binder"


class ImageFormat(str, Enum):
    PNG = "PNG"
    JPEG = "JPEG"

    @classmethod
    def from_filename(cls, name: str) -> ImageFormat:
        """Declared format of an image file, taken from its suffix."""
        suffix = Path(name).suffix.lower()
        if suffix == ".png":
            return cls.PNG
        if suffix in (".jpg", ".jpeg"):
            return cls.JPEG
        raise ImageDecodeError(
            f"Unsupported image format {suffix or '(none)'!r} for {name!r};"
            " only PNG and JPEG can be exported"
        )


@dataclass(frozen=True)
class ImageInput:
    """Raw image bytes with their declared format and pixel size."""

    source_bytes: bytes
    format: ImageFormat
    pixel_width: int
    pixel_height: int
    name: str = ""


def _decode(index: int, image: ImageInput) -> ImageReader:
    """Decode *image* with the codec of its declared format only."""
    try:
        with Image.open(
            io.BytesIO(image.source_bytes), formats=[image.format.value]
        ) as decoded:
            decoded.load()
            size = decoded.size
    except UnidentifiedImageError:
        raise ImageDecodeError(
            f"data is not a valid {image.format.value} image",
            index=index,
            name=image.name,
        ) from None
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(
            f"failed to decode {image.format.value} data: {exc}",
            index=index,
            name=image.name,
        ) from exc

    if size != (image.pixel_width, image.pixel_height):
        raise ImageDecodeError(
            f"decoded size {size[0]}x{size[1]} does not match declared size "
            f"{image.pixel_width}x{image.pixel_height}",
            index=index,
            name=image.name,
        )

    return ImageReader(io.BytesIO(image.source_bytes))


def _draw_page(
    pdf: canvas.Canvas,
    reader: ImageReader,
    placement: Placement,
    options: PageOptions,
) -> None:
    base_width, base_height = options.base_size
    pdf.setPageSize((base_width, base_height))

    pdf.saveState()
    if options.is_landscape:
        # The page box stays portrait and is displayed rotated 90 degrees
        # clockwise; map landscape coordinates (u, v) to (base_width - v, u).
        pdf.setPageRotation(90)
        pdf.transform(0, 1, -1, 0, base_width, 0)
    else:
        pdf.setPageRotation(0)

    pdf.drawImage(
        reader,
        placement.x,
        placement.y,
        width=placement.draw_width,
        height=placement.draw_height,
        mask="auto",
    )
    pdf.restoreState()
    pdf.showPage()


def assemble_pdf(
    images: Sequence[ImageInput],
    options: PageOptions | None = None,
    *,
    title: str | None = None,
) -> bytes:
    """Combine images into a single PDF, one page per image in input order.

    Each image is scaled to fit within the page margins, preserving its
    aspect ratio, and centered. The document is serialized only once every
    page has been added.

    Args:
        images: Ordered images to place, one per page.
        options: Page size, orientation, margin and quality. Defaults to
            A4 portrait with a 40pt margin.
        title: Optional document title metadata.

    Returns:
        The PDF document as bytes.

    Raises:
        EmptyExportError: If *images* is empty.
        LayoutError: If the margin leaves no usable area, or an image has
            non-positive pixel dimensions.
        ImageDecodeError: If an image's bytes don't decode as its declared
            format or its decoded size differs from the declared size.
    """
    if not images:
        raise EmptyExportError("images must not be empty")

    options = options or PageOptions()
    geometry = options.geometry
    if not geometry.has_usable_area:
        raise LayoutError(
            f"Margin {options.margin:g}pt leaves no usable area on a "
            f"{geometry.width:g}x{geometry.height:g}pt page"
        )

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=options.base_size, invariant=1)
    pdf.setCreator(_CREATOR)
    if title:
        pdf.setTitle(title)

    for index, image in enumerate(images):
        try:
            placement = place_image(geometry, image.pixel_width, image.pixel_height)
        except LayoutError as exc:
            label = f"image {index + 1}" + (f" ({image.name})" if image.name else "")
            raise LayoutError(f"{label}: {exc}") from exc

        reader = _decode(index, image)
        _draw_page(pdf, reader, placement, options)
        logger.debug(
            "Page %d: %s %dx%d px drawn at (%.2f, %.2f) size %.2fx%.2f pt (%s)",
            index + 1,
            image.format.value,
            image.pixel_width,
            image.pixel_height,
            placement.x,
            placement.y,
            placement.draw_width,
            placement.draw_height,
            placement.fit_mode.value,
        )

    pdf.save()
    pdf_bytes = buffer.getvalue()
    logger.info("Assembled %d-page PDF (%d bytes)", len(images), len(pdf_bytes))
    return pdf_bytes


def write_pdf(
    images: Sequence[ImageInput],
    output_path: Path,
    options: PageOptions | None = None,
    *,
    title: str | None = None,
) -> int:
    """Assemble images into a PDF file.

    Args:
        images: Ordered images to place, one per page.
        output_path: Path to write the output PDF.
        options: Page options, see :func:`assemble_pdf`.
        title: Optional document title metadata.

    Returns:
        Size of the written PDF in bytes.
    """
    pdf_bytes = assemble_pdf(images, options, title=title)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(pdf_bytes)

    return len(pdf_bytes)
