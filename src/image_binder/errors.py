"""Exception hierarchy for image-binder."""

from __future__ import annotations


class ImageBinderError(Exception):
    """Base exception for image-binder errors."""


class ConfigError(ImageBinderError):
    """Raised when a configuration value from the environment is malformed."""


class InvalidOptionsError(ImageBinderError, ValueError):
    """Raised when page options are outside their allowed values."""


class LayoutError(ImageBinderError, ValueError):
    """Raised when an image cannot be placed on a page.

    Covers non-positive pixel dimensions and a margin that leaves no usable
    drawing area.
    """


class EmptyExportError(ImageBinderError, ValueError):
    """Raised when an export is requested for an empty image list."""


class ImageDecodeError(ImageBinderError):
    """Raised when image bytes cannot be decoded as their declared format."""

    def __init__(
        self,
        message: str,
        *,
        index: int | None = None,
        name: str | None = None,
    ) -> None:
        self.index = index
        self.name = name
        if index is not None:
            label = f"image {index + 1}"
            if name:
                label += f" ({name})"
            message = f"{label}: {message}"
        super().__init__(message)


class ImageFetchError(ImageBinderError):
    """Raised when an image reference cannot be resolved to bytes."""


class StorageError(ImageBinderError):
    """Base exception for upload storage errors."""


class InvalidDirectoryNameError(StorageError, ValueError):
    """Raised when a directory name contains disallowed characters."""


class InvalidUploadError(StorageError, ValueError):
    """Raised when uploaded files are missing or are not supported images."""


class DirectoryExistsError(StorageError):
    """Raised when creating a directory that already exists."""


class DirectoryNotFoundError(StorageError):
    """Raised when a directory does not exist in the upload store."""


class ImageNotFoundError(StorageError):
    """Raised when an image does not exist in a directory."""
