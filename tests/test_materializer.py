from __future__ import annotations

import io
import sys
import threading
import time
import types
from pathlib import Path

import pytest
from PIL import Image
from pypdf import PdfReader

from invoice_merger import (
    CorruptImageError,
    FileRecord,
    PageMaterializer,
    SourceNotFoundError,
    UnreadablePDFError,
    UnsupportedCodecError,
    UnsupportedFormatError,
)
from invoice_merger import materializer
from invoice_merger.materializer import fit_to_canvas, flatten_to_rgb
from invoice_merger.options import A4_SIZE, MergeOptions
from invoice_merger.types import PageKind


def _record(path: Path) -> FileRecord:
    return FileRecord.from_path(path)


def test_fit_to_canvas_wide_image_is_letterboxed() -> None:
    placement = fit_to_canvas(400, 100, 200, 300)

    assert placement.width == pytest.approx(200)
    assert placement.height == pytest.approx(50)
    assert placement.x == pytest.approx(0)
    assert placement.y == pytest.approx(125)


def test_fit_to_canvas_tall_image_is_pillarboxed() -> None:
    placement = fit_to_canvas(100, 600, 200, 300)

    assert placement.height == pytest.approx(300)
    assert placement.width == pytest.approx(50)
    assert placement.x == pytest.approx(75)
    assert placement.y == pytest.approx(0)


def test_fit_to_canvas_preserves_aspect_ratio_and_margin() -> None:
    placement = fit_to_canvas(30, 20, *A4_SIZE, margin=36)

    assert placement.width / placement.height == pytest.approx(1.5)
    assert placement.width == pytest.approx(A4_SIZE[0] - 72)
    assert placement.x == pytest.approx(36)


def test_fit_to_canvas_rejects_empty_image() -> None:
    with pytest.raises(ValueError):
        fit_to_canvas(0, 10, 100, 100)


def test_flatten_to_rgb_composites_on_white() -> None:
    transparent = Image.new("RGBA", (2, 2), (255, 0, 0, 0))

    flattened = flatten_to_rgb(transparent)

    assert flattened.mode == "RGB"
    assert flattened.getpixel((0, 0)) == (255, 255, 255)


def test_flatten_to_rgb_converts_cmyk() -> None:
    assert flatten_to_rgb(Image.new("CMYK", (2, 2))).mode == "RGB"


def test_materialize_pdf_keeps_page_order(pdf_factory) -> None:
    path = pdf_factory("a.pdf", widths=(101, 102, 103))

    pages = PageMaterializer().materialize(_record(path))

    assert [page.page_index for page in pages] == [0, 1, 2]
    assert [round(page.width) for page in pages] == [101, 102, 103]
    assert all(page.kind is PageKind.PDF for page in pages)
    assert all(page.source_path == path for page in pages)


def test_materialize_empty_pdf_yields_no_pages(pdf_factory) -> None:
    path = pdf_factory("empty.pdf", widths=())
    assert PageMaterializer().materialize(_record(path)) == []


def test_materialize_encrypted_pdf_fails(pdf_factory) -> None:
    path = pdf_factory("locked.pdf", password="secret")
    with pytest.raises(UnreadablePDFError):
        PageMaterializer().materialize(_record(path))


def test_materialize_corrupt_pdf_fails(source_dir: Path) -> None:
    path = source_dir / "broken.pdf"
    path.write_bytes(b"this is not a pdf")
    with pytest.raises(UnreadablePDFError):
        PageMaterializer().materialize(_record(path))


@pytest.mark.parametrize("filename", ["b.png", "b.jpg", "b.bmp", "b.gif", "b.tiff", "b.webp"])
def test_materialize_image_produces_one_a4_page(image_factory, filename: str) -> None:
    path = image_factory(filename, size=(80, 40))

    (page,) = PageMaterializer().materialize(_record(path))

    assert page.kind is PageKind.RASTER
    assert (page.width, page.height) == pytest.approx(A4_SIZE)
    assert page.placement is not None
    assert page.placement.width == pytest.approx(A4_SIZE[0])
    assert page.placement.height == pytest.approx(A4_SIZE[0] / 2)
    assert page.content.startswith(b"%PDF")


def test_materialize_transparent_png(image_factory) -> None:
    path = image_factory("logo.png", mode="RGBA", color=(0, 0, 255, 128))
    (page,) = PageMaterializer().materialize(_record(path))
    assert page.kind is PageKind.RASTER


def test_materialize_uses_configured_page_size(image_factory) -> None:
    path = image_factory("square.png", size=(10, 10))
    options = MergeOptions(page_size=(612.0, 792.0))

    (page,) = PageMaterializer(options=options).materialize(_record(path))

    assert (page.width, page.height) == (612.0, 792.0)
    assert page.placement.y == pytest.approx(90)


def test_materialize_heic_without_codec(no_heif, heic_file: Path) -> None:
    with pytest.raises(UnsupportedCodecError):
        PageMaterializer().materialize(_record(heic_file))


def test_materialize_corrupt_image(source_dir: Path) -> None:
    path = source_dir / "bad.png"
    path.write_bytes(b"\x89PNG garbage")
    with pytest.raises(CorruptImageError):
        PageMaterializer().materialize(_record(path))


def test_materialize_unsupported_extension(source_dir: Path) -> None:
    path = source_dir / "notes.txt"
    path.write_text("hello")
    with pytest.raises(UnsupportedFormatError):
        PageMaterializer().materialize(_record(path))


def test_materialize_missing_file(pdf_factory) -> None:
    path = pdf_factory("gone.pdf")
    record = _record(path)
    path.unlink()
    with pytest.raises(SourceNotFoundError):
        PageMaterializer().materialize(record)


def test_failures_carry_reason(source_dir: Path) -> None:
    path = source_dir / "broken.pdf"
    path.write_bytes(b"garbage")
    with pytest.raises(UnreadablePDFError) as excinfo:
        PageMaterializer().materialize(_record(path))
    assert "broken.pdf" in excinfo.value.message


def test_materialize_applies_exif_orientation(source_dir: Path) -> None:
    path = source_dir / "rotated.jpg"
    exif = Image.Exif()
    exif[0x0112] = 6  # rotate 90 degrees clockwise when displayed
    Image.new("RGB", (80, 40), (10, 120, 200)).save(path, exif=exif)

    (page,) = PageMaterializer().materialize(_record(path))

    assert page.placement.height > page.placement.width
    assert page.placement.height == pytest.approx(A4_SIZE[1])
    assert page.placement.width == pytest.approx(A4_SIZE[1] / 2)
    assert page.placement.y == pytest.approx(0)


def test_materialize_animated_gif_uses_first_frame(source_dir: Path) -> None:
    path = source_dir / "stamp.gif"
    frames = [Image.new("RGB", (40, 20), color).convert("P") for color in ((255, 0, 0), (0, 0, 255))]
    frames[0].save(path, save_all=True, append_images=frames[1:], transparency=0, duration=100, loop=0)
    with Image.open(path) as opened:
        assert opened.n_frames == 2

    pages = PageMaterializer().materialize(_record(path))

    assert len(pages) == 1
    assert pages[0].kind is PageKind.RASTER
    assert len(PdfReader(io.BytesIO(pages[0].content)).pages) == 1


def test_heif_opener_registered_once_across_threads(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def register_heif_opener() -> None:
        time.sleep(0.01)
        calls.append(threading.get_ident())

    fake = types.ModuleType("pillow_heif")
    fake.register_heif_opener = register_heif_opener
    monkeypatch.setitem(sys.modules, "pillow_heif", fake)
    monkeypatch.setattr(materializer, "_HEIF_REGISTERED", None)
    barrier = threading.Barrier(6)
    results = []

    def check() -> None:
        barrier.wait()
        results.append(materializer._heif_available())

    threads = [threading.Thread(target=check) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results == [True] * 6
    assert len(calls) == 1
