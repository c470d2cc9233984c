"""Shared fixtures: in-memory PNG and JPEG images."""

from __future__ import annotations

import io
import struct
import zlib
from collections.abc import Callable

import pytest
from PIL import Image


def _create_minimal_png(*, width: int = 100, height: int = 100) -> bytes:
    """Create a minimal valid RGB PNG without going through an encoder."""

    def _chunk(chunk_type: bytes, data: bytes) -> bytes:
        c = chunk_type + data
        crc = struct.pack(">I", zlib.crc32(c) & 0xFFFFFFFF)
        return struct.pack(">I", len(data)) + c + crc

    signature = b"\x89PNG\r\n\x1a\n"
    ihdr_data = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    ihdr = _chunk(b"IHDR", ihdr_data)

    raw_data = b""
    for _ in range(height):
        raw_data += b"\x00" + b"\xff\x00\x00" * width
    idat = _chunk(b"IDAT", zlib.compress(raw_data))
    iend = _chunk(b"IEND", b"")

    return signature + ihdr + idat + iend


def _create_jpeg(*, width: int = 100, height: int = 100) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (0, 128, 255)).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def make_png() -> Callable[..., bytes]:
    return _create_minimal_png


@pytest.fixture
def make_jpeg() -> Callable[..., bytes]:
    return _create_jpeg


@pytest.fixture
def make_rgba_png() -> Callable[..., bytes]:
    def _make(*, width: int = 40, height: int = 20) -> bytes:
        buffer = io.BytesIO()
        Image.new("RGBA", (width, height), (255, 0, 0, 128)).save(buffer, format="PNG")
        return buffer.getvalue()

    return _make
