"""Runtime settings, read from ``IMAGE_BINDER_*`` environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError, InvalidOptionsError
from .options import PageOptions

ENV_PREFIX = "IMAGE_BINDER_"

_DEFAULT_UPLOAD_DIR = Path("uploads")
_DEFAULT_MAX_UPLOAD_MB = 200
_DEFAULT_FETCH_CONCURRENCY = 10
_DEFAULT_FETCH_MAX_RETRIES = 3

# Environment variable suffix -> PageOptions.from_mapping() key.
_OPTION_VARS = {
    "PAGE_SIZE": "page_size",
    "ORIENTATION": "orientation",
    "MARGIN": "margin",
    "QUALITY": "quality",
}


def _positive_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ConfigError(f"{ENV_PREFIX}{name} must be at least 1, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Settings shared by the web application and the CLI."""

    upload_dir: Path = _DEFAULT_UPLOAD_DIR
    max_upload_mb: int = _DEFAULT_MAX_UPLOAD_MB
    fetch_concurrency: int = _DEFAULT_FETCH_CONCURRENCY
    fetch_max_retries: int = _DEFAULT_FETCH_MAX_RETRIES
    default_options: PageOptions = field(default_factory=PageOptions)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Load settings from the environment, falling back to defaults.

        Raises:
            ConfigError: If a variable is set to a malformed value.
        """
        environ = os.environ if environ is None else environ

        option_values = {
            key: environ[ENV_PREFIX + var]
            for var, key in _OPTION_VARS.items()
            if environ.get(ENV_PREFIX + var, "").strip()
        }
        try:
            default_options = PageOptions.from_mapping(option_values)
        except InvalidOptionsError as exc:
            raise ConfigError(f"Invalid default page options: {exc}") from exc

        upload_dir = environ.get(ENV_PREFIX + "UPLOAD_DIR", "").strip()

        return cls(
            upload_dir=Path(upload_dir) if upload_dir else _DEFAULT_UPLOAD_DIR,
            max_upload_mb=_positive_int(environ, "MAX_UPLOAD_MB", _DEFAULT_MAX_UPLOAD_MB),
            fetch_concurrency=_positive_int(
                environ, "FETCH_CONCURRENCY", _DEFAULT_FETCH_CONCURRENCY
            ),
            fetch_max_retries=_positive_int(
                environ, "FETCH_MAX_RETRIES", _DEFAULT_FETCH_MAX_RETRIES
            ),
            default_options=default_options,
        )
