"""Fit-and-center placement of an image inside a page's usable area."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import LayoutError
from .options import PageGeometry


class FitMode(str, Enum):
    """Which side of the usable area bounds the scaled image."""

    WIDTH_BOUND = "width"
    HEIGHT_BOUND = "height"


@dataclass(frozen=True)
class Placement:
    """Where and how large an image is drawn, in PDF points."""

    draw_width: float
    draw_height: float
    x: float
    y: float
    fit_mode: FitMode


def fit_image(
    usable_width: float,
    usable_height: float,
    pixel_width: int,
    pixel_height: int,
    *,
    margin: float = 0.0,
) -> Placement:
    """Scale an image to the largest size that fits the usable area, centered.

    The aspect ratio of the image is preserved. An image relatively wider
    than the usable area is bound by its width, anything else by its height.

    Args:
        usable_width: Width available for drawing (page width net of margins).
        usable_height: Height available for drawing.
        pixel_width: Image width in pixels.
        pixel_height: Image height in pixels.
        margin: Offset of the usable area from the page origin on both axes.

    Returns:
        A :class:`Placement` with the draw size and lower-left corner.

    Raises:
        LayoutError: If the pixel dimensions or the usable area are not
            positive.
    """
    if pixel_width <= 0 or pixel_height <= 0:
        raise LayoutError(
            f"Image dimensions must be positive, got {pixel_width}x{pixel_height}"
        )
    if usable_width <= 0 or usable_height <= 0:
        raise LayoutError(
            f"No usable page area left after margins "
            f"({usable_width:g}x{usable_height:g} pt)"
        )

    image_aspect = pixel_width / pixel_height
    page_aspect = usable_width / usable_height

    if image_aspect > page_aspect:
        fit_mode = FitMode.WIDTH_BOUND
        draw_width = usable_width
        draw_height = usable_width / image_aspect
    else:
        fit_mode = FitMode.HEIGHT_BOUND
        draw_height = usable_height
        draw_width = usable_height * image_aspect

    return Placement(
        draw_width=draw_width,
        draw_height=draw_height,
        x=margin + (usable_width - draw_width) / 2,
        y=margin + (usable_height - draw_height) / 2,
        fit_mode=fit_mode,
    )


def place_image(
    geometry: PageGeometry,
    pixel_width: int,
    pixel_height: int,
) -> Placement:
    """Run :func:`fit_image` against a resolved page geometry."""
    return fit_image(
        geometry.usable_width,
        geometry.usable_height,
        pixel_width,
        pixel_height,
        margin=geometry.margin,
    )
