"""Unit tests for environment-based settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from image_binder.config import Settings
from image_binder.errors import ConfigError
from image_binder.options import Orientation, PageOptions, PageSize


class TestSettingsFromEnv:
    def test_defaults(self):
        settings = Settings.from_env({})

        assert settings == Settings()
        assert settings.upload_dir == Path("uploads")
        assert settings.max_upload_mb == 200
        assert settings.default_options == PageOptions()

    def test_reads_variables(self):
        settings = Settings.from_env(
            {
                "IMAGE_BINDER_UPLOAD_DIR": "/srv/uploads",
                "IMAGE_BINDER_MAX_UPLOAD_MB": "5",
                "IMAGE_BINDER_FETCH_CONCURRENCY": "2",
                "IMAGE_BINDER_FETCH_MAX_RETRIES": "1",
                "IMAGE_BINDER_PAGE_SIZE": "Letter",
                "IMAGE_BINDER_ORIENTATION": "landscape",
                "IMAGE_BINDER_MARGIN": "12",
                "IMAGE_BINDER_QUALITY": "0.5",
            }
        )

        assert settings.upload_dir == Path("/srv/uploads")
        assert settings.max_upload_mb == 5
        assert settings.fetch_concurrency == 2
        assert settings.fetch_max_retries == 1
        assert settings.default_options.page_size is PageSize.LETTER
        assert settings.default_options.orientation is Orientation.LANDSCAPE
        assert settings.default_options.margin == 12.0
        assert settings.default_options.quality == 0.5

    def test_blank_values_use_defaults(self):
        settings = Settings.from_env(
            {"IMAGE_BINDER_MARGIN": " ", "IMAGE_BINDER_MAX_UPLOAD_MB": ""}
        )
        assert settings == Settings()

    @pytest.mark.parametrize("value", ["lots", "0", "-3", "1.5"])
    def test_bad_integer_raises(self, value):
        with pytest.raises(ConfigError, match="IMAGE_BINDER_MAX_UPLOAD_MB"):
            Settings.from_env({"IMAGE_BINDER_MAX_UPLOAD_MB": value})

    def test_bad_page_option_raises(self):
        with pytest.raises(ConfigError, match="Invalid default page options"):
            Settings.from_env({"IMAGE_BINDER_PAGE_SIZE": "A5"})
