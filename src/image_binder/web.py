"""Flask application exposing upload storage and PDF export as a JSON API."""

from __future__ import annotations

import asyncio
import io
import logging

from flask import Blueprint, Flask, current_app, jsonify, request, send_file

from . import render_pdf, select_images
from .config import Settings
from .errors import (
    DirectoryExistsError,
    DirectoryNotFoundError,
    ImageBinderError,
    ImageDecodeError,
    ImageFetchError,
    ImageNotFoundError,
    InvalidOptionsError,
    InvalidUploadError,
)
from .options import PageOptions
from .storage import StoredDirectory, StoredImage, UploadFile, UploadStore

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "images.pdf"

# First matching class wins.
_ERROR_STATUS: list[tuple[type[ImageBinderError], int]] = [
    (DirectoryNotFoundError, 404),
    (ImageNotFoundError, 404),
    (DirectoryExistsError, 409),
    (ImageDecodeError, 422),
    (ImageFetchError, 502),
]

api = Blueprint("image_binder", __name__)


def _store() -> UploadStore:
    return current_app.extensions["image_binder.store"]


def _settings() -> Settings:
    return current_app.extensions["image_binder.settings"]


def _directory_json(directory: StoredDirectory) -> dict:
    return {"name": directory.name, "path": directory.url}


def _image_json(image: StoredImage) -> dict:
    return {"name": image.name, "path": image.url, "exportable": image.exportable}


def _images_response(directory: str, images: list[StoredImage]):
    return jsonify(
        {"directory": directory, "images": [_image_json(image) for image in images]}
    )


def _uploaded_files() -> list[UploadFile]:
    files = []
    for storage in request.files.getlist("files"):
        if not storage.filename:
            continue
        mimetype = storage.mimetype or ""
        if not mimetype.startswith("image/") or "svg" in mimetype:
            raise InvalidUploadError(
                "All files must be images (SVG files are not supported):"
                f" {storage.filename!r}"
            )
        files.append((storage.filename, storage.read()))
    return files


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise InvalidOptionsError("Request body must be a JSON object")
    return body


@api.app_errorhandler(ImageBinderError)
def _handle_error(exc: ImageBinderError):
    status = 400
    for error_cls, code in _ERROR_STATUS:
        if isinstance(exc, error_cls):
            status = code
            break
    if status >= 500:
        logger.warning("Request failed: %s", exc)
    return jsonify({"error": str(exc)}), status


@api.get("/api/directories")
def list_directories():
    directories = _store().list_directories()
    return jsonify({"directories": [_directory_json(d) for d in directories]})


@api.post("/api/directories")
def create_directory():
    name = request.form.get("directoryName", "").strip()
    directory = _store().create_directory(name, _uploaded_files())
    return jsonify(_directory_json(directory)), 201


@api.get("/api/directories/<name>")
def list_images(name: str):
    return _images_response(name, _store().list_images(name))


@api.delete("/api/directories/<name>")
def delete_directory(name: str):
    _store().delete_directory(name)
    return jsonify({"success": True})


@api.post("/api/directories/<name>/images")
def add_images(name: str):
    store = _store()
    store.add_images(name, _uploaded_files())
    return _images_response(name, store.list_images(name)), 201


@api.put("/api/directories/<name>/order")
def save_order(name: str):
    order = _json_body().get("order")
    if not isinstance(order, list) or not all(isinstance(n, str) for n in order):
        raise InvalidOptionsError('"order" must be a list of image names')
    return _images_response(name, _store().save_order(name, order))


@api.post("/api/directories/<name>/images/<filename>/move")
def move_image(name: str, filename: str):
    index = _json_body().get("index")
    if not isinstance(index, int) or isinstance(index, bool):
        raise InvalidOptionsError('"index" must be an integer')
    return _images_response(name, _store().move_image(name, filename, index))


@api.delete("/api/directories/<name>/images/<filename>")
def delete_image(name: str, filename: str):
    _store().delete_image(name, filename)
    return jsonify({"success": True})


@api.get("/uploads/<name>/<filename>")
def get_image(name: str, filename: str):
    return send_file(_store().image_path(name, filename))


@api.post("/api/directories/<name>/export")
def export_pdf(name: str):
    body = _json_body()
    settings = _settings()

    selection = body.get("images")
    if selection is not None and (
        not isinstance(selection, list)
        or not all(isinstance(n, str) for n in selection)
    ):
        raise InvalidOptionsError('"images" must be a list of image names')

    options = PageOptions.from_mapping(
        body.get("options"), defaults=settings.default_options
    )
    chosen = select_images(_store().list_images(name), selection)

    pdf_bytes = asyncio.run(
        render_pdf(
            [image.path for image in chosen],
            options,
            concurrency=settings.fetch_concurrency,
            max_retries=settings.fetch_max_retries,
            title=name,
        )
    )
    logger.info("Exported %d images from %s", len(chosen), name)

    return send_file(
        io.BytesIO(pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=EXPORT_FILENAME,
    )


def create_app(settings: Settings | None = None) -> Flask:
    """Create the Flask application.

    Args:
        settings: Runtime settings. Defaults to :meth:`Settings.from_env`.
    """
    settings = settings or Settings.from_env()

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_mb * 1024 * 1024
    app.extensions["image_binder.settings"] = settings
    app.extensions["image_binder.store"] = UploadStore(settings.upload_dir.resolve())
    app.register_blueprint(api)

    return app
