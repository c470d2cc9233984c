"""Named upload directories of images on local disk."""

from __future__ import annotations

import json
import logging
import re
import shutil
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path, PurePath

from .errors import (
    DirectoryExistsError,
    DirectoryNotFoundError,
    ImageNotFoundError,
    InvalidDirectoryNameError,
    InvalidUploadError,
    StorageError,
)

logger = logging.getLogger(__name__)

DIRECTORY_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")

IMAGE_SUFFIXES = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"})
EXPORTABLE_SUFFIXES = frozenset({".jpg", ".jpeg", ".png"})

ORDER_FILE = ".order.json"

# (file name, file content) pairs as received from an upload form.
UploadFile = tuple[str, bytes]


@dataclass(frozen=True)
class StoredDirectory:
    name: str
    path: Path

    @property
    def url(self) -> str:
        return f"/uploads/{self.name}"


@dataclass(frozen=True)
class StoredImage:
    directory: str
    name: str
    path: Path

    @property
    def url(self) -> str:
        return f"/uploads/{self.directory}/{self.name}"

    @property
    def exportable(self) -> bool:
        return self.path.suffix.lower() in EXPORTABLE_SUFFIXES


def validate_directory_name(name: str) -> str:
    if not name:
        raise InvalidDirectoryNameError("Directory name is required")
    if not DIRECTORY_NAME_PATTERN.match(name):
        raise InvalidDirectoryNameError(
            "Directory name can only contain letters, numbers, hyphens and"
            " underscores"
        )
    return name


def _validate_filename(filename: str) -> str:
    """Reduce an uploaded file name to a safe base name."""
    base = PurePath(filename.replace("\\", "/")).name
    if not base or base in (".", "..") or base.startswith("."):
        raise InvalidUploadError(f"Invalid file name: {filename!r}")
    return base


def _is_image_name(filename: str) -> bool:
    return PurePath(filename).suffix.lower() in IMAGE_SUFFIXES


class UploadStore:
    """Directories of uploaded images under a single root.

    The display order of each directory is kept in a small JSON file next to
    the images; files without a saved position follow in name order.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def _directory_path(self, name: str) -> Path:
        return self.root / validate_directory_name(name)

    def _existing_directory(self, name: str) -> Path:
        path = self._directory_path(name)
        if not path.is_dir():
            raise DirectoryNotFoundError(f"Directory not found: {name}")
        return path

    def _write_files(self, path: Path, files: Sequence[UploadFile]) -> list[str]:
        if not files:
            raise InvalidUploadError("At least one file is required")

        prepared = []
        for filename, content in files:
            safe_name = _validate_filename(filename)
            if not _is_image_name(safe_name):
                raise InvalidUploadError(
                    "All files must be images (SVG files are not supported):"
                    f" {filename!r}"
                )
            prepared.append((safe_name, content))

        path.mkdir(parents=True, exist_ok=True)
        for safe_name, content in prepared:
            (path / safe_name).write_bytes(content)
        return [safe_name for safe_name, _ in prepared]

    def list_directories(self) -> list[StoredDirectory]:
        if not self.root.is_dir():
            return []
        return [
            StoredDirectory(name=entry.name, path=entry)
            for entry in sorted(self.root.iterdir(), key=lambda p: p.name)
            if entry.is_dir() and DIRECTORY_NAME_PATTERN.match(entry.name)
        ]

    def create_directory(
        self,
        name: str,
        files: Sequence[UploadFile],
    ) -> StoredDirectory:
        """Create a directory and store the uploaded images in it.

        Raises:
            InvalidDirectoryNameError: If *name* is empty or has disallowed
                characters.
            InvalidUploadError: If no files are given or any is not an image.
            DirectoryExistsError: If the directory already exists.
        """
        path = self._directory_path(name)
        if path.exists():
            raise DirectoryExistsError(f'Directory "{name}" already exists')

        stored = self._write_files(path, files)
        logger.info("Created directory %s with %d images", name, len(stored))
        return StoredDirectory(name=name, path=path)

    def add_images(self, name: str, files: Sequence[UploadFile]) -> list[StoredImage]:
        path = self._existing_directory(name)
        stored = self._write_files(path, files)
        logger.info("Added %d images to %s", len(stored), name)
        return [StoredImage(directory=name, name=n, path=path / n) for n in stored]

    def _read_order(self, path: Path) -> list[str]:
        order_file = path / ORDER_FILE
        if not order_file.is_file():
            return []
        try:
            order = json.loads(order_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable order file %s: %s", order_file, exc)
            return []
        if not isinstance(order, list):
            return []
        return [entry for entry in order if isinstance(entry, str)]

    def _write_order(self, path: Path, order: Iterable[str]) -> None:
        (path / ORDER_FILE).write_text(json.dumps(list(order)), encoding="utf-8")

    def list_images(self, name: str) -> list[StoredImage]:
        """Images of a directory in display order.

        Raises:
            DirectoryNotFoundError: If the directory does not exist.
        """
        path = self._existing_directory(name)
        present = {
            entry.name
            for entry in path.iterdir()
            if entry.is_file() and _is_image_name(entry.name)
            and not entry.name.startswith(".")
        }

        ordered = [n for n in dict.fromkeys(self._read_order(path)) if n in present]
        ordered += sorted(present.difference(ordered))

        return [StoredImage(directory=name, name=n, path=path / n) for n in ordered]

    def save_order(self, name: str, order: Sequence[str]) -> list[StoredImage]:
        """Persist a new display order.

        *order* may name only some of the images; the rest keep their relative
        order after the named ones.

        Raises:
            ImageNotFoundError: If *order* names an image that doesn't exist.
        """
        current = [image.name for image in self.list_images(name)]
        unknown = [n for n in order if n not in current]
        if unknown:
            raise ImageNotFoundError(f"Unknown images in {name}: {', '.join(unknown)}")

        requested = list(dict.fromkeys(order))
        new_order = requested + [n for n in current if n not in requested]
        self._write_order(self._existing_directory(name), new_order)
        logger.debug("Saved order for %s: %s", name, new_order)
        return self.list_images(name)

    def move_image(self, name: str, filename: str, new_index: int) -> list[StoredImage]:
        """Move one image to *new_index*, shifting the others."""
        current = [image.name for image in self.list_images(name)]
        if filename not in current:
            raise ImageNotFoundError(f"Image not found: {name}/{filename}")
        if not 0 <= new_index < len(current):
            raise StorageError(
                f"Index {new_index} out of range for {len(current)} images"
            )

        current.remove(filename)
        current.insert(new_index, filename)
        return self.save_order(name, current)

    def image_path(self, name: str, filename: str) -> Path:
        """Path of an image inside a directory.

        Raises:
            ImageNotFoundError: If the image does not exist.
        """
        path = self._existing_directory(name)
        safe_name = PurePath(filename).name
        image = path / safe_name
        if safe_name != filename or not _is_image_name(safe_name) or not image.is_file():
            raise ImageNotFoundError(f"Image not found: {name}/{filename}")
        return image

    def delete_image(self, name: str, filename: str) -> None:
        self.image_path(name, filename).unlink()
        logger.info("Deleted image %s/%s", name, filename)

    def delete_directory(self, name: str) -> None:
        shutil.rmtree(self._existing_directory(name))
        logger.info("Deleted directory %s", name)
