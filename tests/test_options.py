"""Unit tests for page options and page geometry."""

from __future__ import annotations

import pytest

from image_binder.errors import InvalidOptionsError
from image_binder.options import (
    DEFAULT_PAGE_OPTIONS,
    Orientation,
    PageOptions,
    PageSize,
    resolve_page_size,
)


class TestResolvePageSize:
    def test_a4_portrait(self):
        assert resolve_page_size(PageSize.A4, Orientation.PORTRAIT) == (595.0, 842.0)

    def test_letter_portrait(self):
        assert resolve_page_size("Letter", "portrait") == (612.0, 792.0)

    def test_landscape_swaps_dimensions(self):
        assert resolve_page_size("A4", "landscape") == (842.0, 595.0)
        assert resolve_page_size("Letter", "landscape") == (792.0, 612.0)

    def test_unknown_page_size_raises(self):
        with pytest.raises(InvalidOptionsError, match="page size"):
            resolve_page_size("A3", "portrait")


class TestPageOptions:
    def test_defaults(self):
        options = PageOptions()
        assert options.page_size is PageSize.A4
        assert options.orientation is Orientation.PORTRAIT
        assert options.margin == 40.0
        assert options.quality == 0.8
        assert options == DEFAULT_PAGE_OPTIONS

    def test_strings_coerced_to_enums(self):
        options = PageOptions(page_size="letter", orientation="LANDSCAPE")
        assert options.page_size is PageSize.LETTER
        assert options.orientation is Orientation.LANDSCAPE
        assert options.is_landscape

    def test_base_size_is_pre_swap(self):
        options = PageOptions(page_size="A4", orientation="landscape")
        assert options.base_size == (595.0, 842.0)

    def test_geometry_is_post_swap_net_of_margin(self):
        geometry = PageOptions(page_size="A4", orientation="landscape", margin=40).geometry
        assert (geometry.width, geometry.height) == (842.0, 595.0)
        assert (geometry.usable_width, geometry.usable_height) == (762.0, 515.0)
        assert geometry.has_usable_area

    def test_margin_consuming_page_has_no_usable_area(self):
        geometry = PageOptions(page_size="A4", margin=297.5).geometry
        assert geometry.usable_width == 0
        assert not geometry.has_usable_area

    def test_negative_margin_raises(self):
        with pytest.raises(InvalidOptionsError, match="margin"):
            PageOptions(margin=-1)

    @pytest.mark.parametrize("quality", [-0.1, 1.01, 5])
    def test_quality_out_of_range_raises(self, quality):
        with pytest.raises(InvalidOptionsError, match="quality"):
            PageOptions(quality=quality)

    @pytest.mark.parametrize("quality", [0, 0.5, 1])
    def test_quality_bounds_accepted(self, quality):
        assert PageOptions(quality=quality).quality == float(quality)

    @pytest.mark.parametrize("margin", ["abc", None, float("nan"), float("inf"), True])
    def test_non_numeric_margin_raises(self, margin):
        with pytest.raises(InvalidOptionsError):
            PageOptions(margin=margin)

    def test_numeric_strings_accepted(self):
        options = PageOptions(margin="12.5", quality="0.3")
        assert options.margin == 12.5
        assert options.quality == 0.3

    def test_invalid_orientation_raises(self):
        with pytest.raises(InvalidOptionsError, match="orientation"):
            PageOptions(orientation="sideways")

    def test_options_are_immutable(self):
        options = PageOptions()
        with pytest.raises(AttributeError):
            options.margin = 10


class TestFromMapping:
    def test_camel_case_keys(self):
        options = PageOptions.from_mapping(
            {"pageSize": "Letter", "orientation": "landscape", "margin": 0, "quality": 1}
        )
        assert options == PageOptions(
            page_size=PageSize.LETTER,
            orientation=Orientation.LANDSCAPE,
            margin=0,
            quality=1,
        )

    def test_snake_case_keys(self):
        options = PageOptions.from_mapping({"page_size": "Letter"})
        assert options.page_size is PageSize.LETTER

    def test_missing_keys_use_defaults(self):
        defaults = PageOptions(page_size="Letter", margin=10)
        options = PageOptions.from_mapping({"orientation": "landscape"}, defaults=defaults)
        assert options.page_size is PageSize.LETTER
        assert options.margin == 10.0
        assert options.is_landscape

    def test_none_returns_defaults(self):
        assert PageOptions.from_mapping(None) == PageOptions()

    def test_unknown_key_raises(self):
        with pytest.raises(InvalidOptionsError, match="Unknown page option"):
            PageOptions.from_mapping({"dpi": 300})

    def test_to_dict_round_trips_through_mapping(self):
        options = PageOptions(page_size="Letter", orientation="landscape", margin=5)
        assert PageOptions.from_mapping(options.to_dict()) == options
