"""Conversion of individual input files into assembly-ready pages."""

from __future__ import annotations

import io
import logging
import threading
from typing import List, Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from .backends import PDFBackend, PypdfBackend
from .classifier import IMAGE_EXTENSIONS, PDF_EXTENSIONS
from .exceptions import (
    CorruptImageError,
    SourceNotFoundError,
    UnsupportedCodecError,
    UnsupportedFormatError,
)
from .options import MergeOptions
from .types import FileRecord, MaterializedPage, PageKind, Placement

LOGGER = logging.getLogger("invoice_merger.materializer")

_HEIF_REGISTERED: Optional[bool] = None
_HEIF_LOCK = threading.Lock()


def _heif_available() -> bool:
    """Register the HEIF opener with Pillow once and report whether it exists."""

    global _HEIF_REGISTERED
    with _HEIF_LOCK:
        if _HEIF_REGISTERED is None:
            try:
                from pillow_heif import register_heif_opener
            except ImportError:
                LOGGER.debug("pillow-heif is not installed; HEIC input is unavailable")
                _HEIF_REGISTERED = False
            else:
                register_heif_opener()
                _HEIF_REGISTERED = True
        return _HEIF_REGISTERED


def fit_to_canvas(
    image_width: float,
    image_height: float,
    canvas_width: float,
    canvas_height: float,
    margin: float = 0.0,
) -> Placement:
    """Return where an image lands when scaled uniformly into a canvas.

    The image is scaled up or down by one factor so that it touches the
    printable area on at least one axis, then centered on both axes.
    """

    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Image has no area: {image_width}x{image_height}")
    area_width = canvas_width - 2 * margin
    area_height = canvas_height - 2 * margin
    scale = min(area_width / image_width, area_height / image_height)
    width = image_width * scale
    height = image_height * scale
    return Placement(
        x=(canvas_width - width) / 2.0,
        y=(canvas_height - height) / 2.0,
        width=width,
        height=height,
    )


def flatten_to_rgb(image: Image.Image) -> Image.Image:
    """Composite transparency onto white and return an RGB or L image."""

    has_alpha = image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )
    if has_alpha:
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if image.mode in ("RGB", "L"):
        return image
    return image.convert("RGB")


class PageMaterializer:
    """Turn one :class:`FileRecord` into zero or more pages.

    Instances hold no per-file state, so :meth:`materialize` may be called
    from several threads at once.
    """

    def __init__(
        self,
        backend: Optional[PDFBackend] = None,
        options: Optional[MergeOptions] = None,
    ) -> None:
        self.backend: PDFBackend = backend or PypdfBackend()
        self.options = options or MergeOptions()

    def materialize(self, record: FileRecord) -> List[MaterializedPage]:
        extension = record.extension.lower()
        if extension in PDF_EXTENSIONS:
            pages = self._materialize_pdf(record)
        elif extension in IMAGE_EXTENSIONS:
            pages = [self._materialize_image(record)]
        else:
            raise UnsupportedFormatError(f"Unsupported file format '.{extension}': {record.display_name}")

        LOGGER.debug("Materialized %d page(s) from %s", len(pages), record.path)
        return pages

    def _read_bytes(self, record: FileRecord) -> bytes:
        try:
            return record.path.read_bytes()
        except FileNotFoundError as exc:
            raise SourceNotFoundError(f"File not found: {record.path}") from exc
        except OSError as exc:
            raise SourceNotFoundError(f"Unable to read file: {record.path}. Error: {exc}") from exc

    def _materialize_pdf(self, record: FileRecord) -> List[MaterializedPage]:
        data = self._read_bytes(record)
        parsed = self.backend.parse_pages(data, source=record.display_name)
        if not parsed:
            LOGGER.warning("PDF %s contains no pages", record.path)
        return [
            MaterializedPage(
                source_path=record.path,
                page_index=index,
                content=page.content,
                width=page.width,
                height=page.height,
                kind=PageKind.PDF,
            )
            for index, page in enumerate(parsed)
        ]

    def _materialize_image(self, record: FileRecord) -> MaterializedPage:
        if record.extension.lower() == "heic" and not _heif_available():
            raise UnsupportedCodecError(
                f"HEIC decoding is not available on this system: {record.display_name}"
            )

        data = self._read_bytes(record)
        encoded, size = self._encode_image(data, record)
        canvas_width, canvas_height = self.options.page_size
        placement = fit_to_canvas(size[0], size[1], canvas_width, canvas_height, self.options.margin)
        return MaterializedPage(
            source_path=record.path,
            page_index=0,
            content=encoded,
            width=canvas_width,
            height=canvas_height,
            kind=PageKind.RASTER,
            placement=placement,
        )

    def _encode_image(self, data: bytes, record: FileRecord) -> Tuple[bytes, Tuple[int, int]]:
        """Decode *data* and return it re-encoded as a one-page image PDF."""

        try:
            with Image.open(io.BytesIO(data)) as opened:
                opened.seek(0)
                image = ImageOps.exif_transpose(opened)
                image = flatten_to_rgb(image)
                buffer = io.BytesIO()
                image.save(buffer, format="PDF", resolution=self.options.render_dpi)
        except UnidentifiedImageError as exc:
            raise CorruptImageError(f"Unrecognised image data: {record.display_name}") from exc
        except (OSError, ValueError, EOFError) as exc:
            raise CorruptImageError(f"Failed to decode image {record.display_name}: {exc}") from exc

        if image.width == 0 or image.height == 0:
            raise CorruptImageError(f"Image has no pixels: {record.display_name}")
        return buffer.getvalue(), image.size


__all__ = ["PageMaterializer", "fit_to_canvas", "flatten_to_rgb"]
