"""Resolve image references to :class:`ImageInput` with concurrent pre-fetch."""

from __future__ import annotations

import asyncio
import io
import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx
from PIL import Image

from .assembler import ImageFormat, ImageInput
from .errors import ImageDecodeError, ImageFetchError

logger = logging.getLogger(__name__)

_DEFAULT_CONCURRENCY = 10
_DEFAULT_MAX_RETRIES = 3
_DEFAULT_TIMEOUT = 30.0

ImageRef = str | Path


def is_remote(ref: ImageRef) -> bool:
    return isinstance(ref, str) and ref.lower().startswith(("http://", "https://"))


def ref_name(ref: ImageRef) -> str:
    """File name of a path or URL reference, used as the image's display name."""
    if is_remote(ref):
        return Path(unquote(urlparse(str(ref)).path)).name
    return Path(ref).name


def image_input_from_bytes(data: bytes, name: str) -> ImageInput:
    """Build an :class:`ImageInput` from raw bytes.

    The declared format comes from the file name; the pixel size is read from
    the image header without decoding pixel data.

    Raises:
        ImageDecodeError: If the name has an unsupported suffix or the data is
            not a recognizable image.
    """
    image_format = ImageFormat.from_filename(name)
    try:
        with Image.open(io.BytesIO(data)) as header:
            width, height = header.size
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(f"{name}: not a recognizable image ({exc})") from exc

    return ImageInput(
        source_bytes=data,
        format=image_format,
        pixel_width=width,
        pixel_height=height,
        name=name,
    )


async def _fetch_remote(
    client: httpx.AsyncClient,
    url: str,
    *,
    max_retries: int,
    timeout: float,
) -> bytes:
    for attempt in range(1, max_retries + 1):
        try:
            response = await client.get(url, timeout=timeout)
            response.raise_for_status()
            return response.content
        except httpx.HTTPError as exc:
            if attempt == max_retries:
                raise ImageFetchError(
                    f"Failed to fetch {url} after {max_retries} attempts: {exc}"
                ) from exc
            logger.debug("Fetch attempt %d for %s failed: %s", attempt, url, exc)
            await asyncio.sleep(1.0 * attempt)

    raise ImageFetchError(f"Failed to fetch {url}")


async def _fetch_local(path: Path) -> bytes:
    try:
        return await asyncio.to_thread(path.read_bytes)
    except OSError as exc:
        raise ImageFetchError(f"Cannot read image {path}: {exc}") from exc


async def _fetch_one(
    client: httpx.AsyncClient,
    ref: ImageRef,
    semaphore: asyncio.Semaphore,
    *,
    max_retries: int = _DEFAULT_MAX_RETRIES,
    timeout: float = _DEFAULT_TIMEOUT,
) -> ImageInput:
    """Fetch a single reference and read its header."""
    async with semaphore:
        if is_remote(ref):
            data = await _fetch_remote(
                client, str(ref), max_retries=max_retries, timeout=timeout
            )
        else:
            data = await _fetch_local(Path(ref))

    return image_input_from_bytes(data, ref_name(ref))


async def fetch_images(
    refs: Sequence[ImageRef],
    *,
    concurrency: int = _DEFAULT_CONCURRENCY,
    max_retries: int = _DEFAULT_MAX_RETRIES,
    timeout: float = _DEFAULT_TIMEOUT,
    on_image_done: Callable[[], None] | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[ImageInput]:
    """Fetch all images concurrently, returning them in reference order.

    Args:
        refs: Local file paths or ``http(s)://`` URLs.
        concurrency: Maximum number of concurrent fetches.
        max_retries: Number of attempts per remote image.
        timeout: Per-request timeout in seconds for remote images.
        on_image_done: Called once after each image is fetched.
        client: Optional HTTP client to use instead of a private one.

    Returns:
        One :class:`ImageInput` per reference, in the order of *refs*.

    Raises:
        ImageFetchError: If any reference cannot be read.
        ImageDecodeError: If any fetched data is not a supported image.
    """
    semaphore = asyncio.Semaphore(concurrency)

    async def _tracked(http: httpx.AsyncClient, ref: ImageRef) -> ImageInput:
        image = await _fetch_one(
            client=http,
            ref=ref,
            semaphore=semaphore,
            max_retries=max_retries,
            timeout=timeout,
        )
        if on_image_done is not None:
            on_image_done()
        return image

    async def _gather(http: httpx.AsyncClient) -> list[ImageInput]:
        tasks = [asyncio.ensure_future(_tracked(http, ref)) for ref in refs]
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            # The first failure ends the export; stop the remaining fetches
            # before the client is closed.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    if client is not None:
        images = await _gather(client)
    else:
        async with httpx.AsyncClient() as http:
            images = await _gather(http)

    logger.debug("Fetched %d images", len(images))
    return list(images)
