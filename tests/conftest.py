from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence
import sys

import pytest
from PIL import Image
from pypdf import PdfReader, PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from invoice_merger import materializer  # noqa: E402

PdfFactory = Callable[..., Path]
ImageFactory = Callable[..., Path]


@pytest.fixture()
def source_dir(tmp_path: Path) -> Path:
    folder = tmp_path / "invoices"
    folder.mkdir()
    return folder


@pytest.fixture()
def pdf_factory(source_dir: Path) -> PdfFactory:
    """Create PDFs whose page widths identify each page."""

    def _create(
        filename: str,
        widths: Sequence[int] = (200,),
        *,
        height: int = 300,
        password: str | None = None,
        folder: Path | None = None,
    ) -> Path:
        path = (folder or source_dir) / filename
        writer = PdfWriter()
        for width in widths:
            writer.add_blank_page(width=width, height=height)
        if password is not None:
            writer.encrypt(user_password=password)
        with path.open("wb") as handle:
            writer.write(handle)
        return path

    return _create


@pytest.fixture()
def image_factory(source_dir: Path) -> ImageFactory:
    def _create(
        filename: str,
        size: tuple[int, int] = (40, 20),
        *,
        mode: str = "RGB",
        color: object = (200, 30, 30),
        folder: Path | None = None,
    ) -> Path:
        path = (folder or source_dir) / filename
        Image.new(mode, size, color).save(path)
        return path

    return _create


@pytest.fixture()
def no_heif(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(materializer, "_heif_available", lambda: False)


@pytest.fixture()
def heic_file(source_dir: Path) -> Path:
    path = source_dir / "c.heic"
    path.write_bytes(b"\x00\x00\x00\x18ftypheic\x00\x00\x00\x00heicmif1")
    return path


@pytest.fixture()
def page_widths() -> Callable[[Path], list[int]]:
    """Return the rounded page widths of a PDF, in page order."""

    def _read(path: Path) -> list[int]:
        reader = PdfReader(str(path))
        return [round(float(page.mediabox.width)) for page in reader.pages]

    return _read
