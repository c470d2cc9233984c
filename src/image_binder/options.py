"""Page options and page geometry resolution."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import InvalidOptionsError


class PageSize(str, Enum):
    A4 = "A4"
    LETTER = "Letter"


class Orientation(str, Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


# Width x height in PDF points, portrait.
PAGE_SIZES: dict[PageSize, tuple[float, float]] = {
    PageSize.A4: (595.0, 842.0),
    PageSize.LETTER: (612.0, 792.0),
}

DEFAULT_MARGIN = 40.0
DEFAULT_QUALITY = 0.8

# Accepted spellings for PageOptions.from_mapping().
_FIELD_ALIASES = {
    "pageSize": "page_size",
    "page_size": "page_size",
    "orientation": "orientation",
    "margin": "margin",
    "quality": "quality",
}


def _coerce_enum(enum_cls: type[Enum], value: Any, field_name: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        for member in enum_cls:
            if member.value.lower() == value.strip().lower():
                return member
    allowed = ", ".join(repr(m.value) for m in enum_cls)
    raise InvalidOptionsError(
        f"Invalid {field_name}: {value!r} (expected one of {allowed})"
    )


def _coerce_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise InvalidOptionsError(f"Invalid {field_name}: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidOptionsError(
            f"Invalid {field_name}: {value!r} is not a number"
        ) from None
    if not math.isfinite(number):
        raise InvalidOptionsError(f"Invalid {field_name}: {value!r} is not finite")
    return number


def resolve_page_size(
    page_size: PageSize | str,
    orientation: Orientation | str,
) -> tuple[float, float]:
    """Return the page width and height in points after orientation.

    Landscape swaps the portrait width and height of the page size.
    """
    size = _coerce_enum(PageSize, page_size, "page size")
    orient = _coerce_enum(Orientation, orientation, "orientation")
    width, height = PAGE_SIZES[size]
    if orient is Orientation.LANDSCAPE:
        width, height = height, width
    return width, height


@dataclass(frozen=True)
class PageGeometry:
    """Page dimensions after orientation, and the margin around the usable area."""

    width: float
    height: float
    margin: float

    @property
    def usable_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def usable_height(self) -> float:
        return self.height - 2 * self.margin

    @property
    def has_usable_area(self) -> bool:
        return self.usable_width > 0 and self.usable_height > 0


@dataclass(frozen=True)
class PageOptions:
    """Page configuration for one export.

    ``quality`` is validated and carried through but does not alter the
    embedded image data.
    """

    page_size: PageSize = PageSize.A4
    orientation: Orientation = Orientation.PORTRAIT
    margin: float = DEFAULT_MARGIN
    quality: float = DEFAULT_QUALITY

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "page_size", _coerce_enum(PageSize, self.page_size, "page size")
        )
        object.__setattr__(
            self,
            "orientation",
            _coerce_enum(Orientation, self.orientation, "orientation"),
        )

        margin = _coerce_number(self.margin, "margin")
        if margin < 0:
            raise InvalidOptionsError(f"Invalid margin: {margin} must not be negative")
        object.__setattr__(self, "margin", margin)

        quality = _coerce_number(self.quality, "quality")
        if not 0.0 <= quality <= 1.0:
            raise InvalidOptionsError(
                f"Invalid quality: {quality} must be between 0 and 1"
            )
        object.__setattr__(self, "quality", quality)

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any] | None,
        *,
        defaults: PageOptions | None = None,
    ) -> PageOptions:
        """Build options from a request payload or config mapping.

        Both ``pageSize`` and ``page_size`` spellings are accepted. Missing
        keys fall back to *defaults*; unknown keys are rejected.
        """
        base = defaults or cls()
        values: dict[str, Any] = {
            "page_size": base.page_size,
            "orientation": base.orientation,
            "margin": base.margin,
            "quality": base.quality,
        }
        for key, value in (data or {}).items():
            name = _FIELD_ALIASES.get(key)
            if name is None:
                raise InvalidOptionsError(f"Unknown page option: {key!r}")
            values[name] = value
        return cls(**values)

    @property
    def is_landscape(self) -> bool:
        return self.orientation is Orientation.LANDSCAPE

    @property
    def base_size(self) -> tuple[float, float]:
        """Portrait page size, before any orientation swap."""
        return PAGE_SIZES[self.page_size]

    @property
    def geometry(self) -> PageGeometry:
        width, height = resolve_page_size(self.page_size, self.orientation)
        return PageGeometry(width=width, height=height, margin=self.margin)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pageSize": self.page_size.value,
            "orientation": self.orientation.value,
            "margin": self.margin,
            "quality": self.quality,
        }


DEFAULT_PAGE_OPTIONS = PageOptions()