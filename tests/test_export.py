"""Tests for fetching and exporting whole directories."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from pypdf import PdfReader

from image_binder import export_directory, render_pdf, select_images
from image_binder.errors import (
    DirectoryNotFoundError,
    EmptyExportError,
    ImageDecodeError,
    ImageNotFoundError,
)
from image_binder.options import PageOptions
from image_binder.storage import UploadStore


@pytest.fixture
def store(tmp_path: Path, make_png, make_jpeg) -> UploadStore:
    store = UploadStore(tmp_path / "uploads")
    store.create_directory(
        "album",
        [
            ("a.png", make_png(width=30, height=10)),
            ("b.jpg", make_jpeg(width=40, height=20)),
            ("c.gif", b"GIF89a"),
            ("d.png", make_png(width=50, height=60)),
        ],
    )
    return store


class TestSelectImages:
    def test_default_selects_exportable_in_order(self, store: UploadStore):
        chosen = select_images(store.list_images("album"))
        assert [i.name for i in chosen] == ["a.png", "b.jpg", "d.png"]

    def test_selection_keeps_directory_order(self, store: UploadStore):
        chosen = select_images(store.list_images("album"), ["d.png", "a.png"])
        assert [i.name for i in chosen] == ["a.png", "d.png"]

    def test_unknown_selection_raises(self, store: UploadStore):
        with pytest.raises(ImageNotFoundError, match="z.png"):
            select_images(store.list_images("album"), ["z.png"])


class TestRenderPdf:
    @pytest.mark.asyncio
    async def test_renders_one_page_per_ref(self, store: UploadStore):
        refs = [store.image_path("album", n) for n in ("d.png", "a.png")]

        pdf_bytes = await render_pdf(refs, PageOptions(margin=0))

        assert len(PdfReader(io.BytesIO(pdf_bytes)).pages) == 2

    @pytest.mark.asyncio
    async def test_empty_refs_raise(self):
        with pytest.raises(EmptyExportError):
            await render_pdf([])

    @pytest.mark.asyncio
    async def test_unsupported_format_raises(self, store: UploadStore):
        with pytest.raises(ImageDecodeError, match="Unsupported image format"):
            await render_pdf([store.image_path("album", "c.gif")])


class TestExportDirectory:
    @pytest.mark.asyncio
    async def test_writes_pdf(self, store: UploadStore, tmp_path: Path):
        result = await export_directory(store, "album", tmp_path / "out")

        assert result.output_path == (tmp_path / "out" / "album.pdf").resolve()
        assert result.page_count == 3
        assert result.total_bytes == result.output_path.stat().st_size
        assert len(PdfReader(result.output_path).pages) == 3

    @pytest.mark.asyncio
    async def test_selection_and_options(self, store: UploadStore, tmp_path: Path):
        out = tmp_path / "pick.pdf"

        result = await export_directory(
            store,
            "album",
            out,
            selection=["b.jpg"],
            options=PageOptions(page_size="Letter", orientation="landscape"),
        )

        reader = PdfReader(out)
        assert result.page_count == 1
        assert reader.pages[0].rotation == 90
        assert reader.metadata.title == "album"

    @pytest.mark.asyncio
    async def test_missing_directory_raises(self, store: UploadStore, tmp_path: Path):
        with pytest.raises(DirectoryNotFoundError):
            await export_directory(store, "nope", tmp_path)

    @pytest.mark.asyncio
    async def test_decode_failure_writes_nothing(
        self, store: UploadStore, tmp_path: Path, make_jpeg
    ):
        store.add_images("album", [("e.png", make_jpeg())])
        out = tmp_path / "out.pdf"

        with pytest.raises(ImageDecodeError, match="e.png"):
            await export_directory(store, "album", out)

        assert not out.exists()
