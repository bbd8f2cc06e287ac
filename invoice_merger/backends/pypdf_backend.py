"""pypdf backend implementation for Invoice Merger."""

from __future__ import annotations

import io
from typing import List, Mapping

from pypdf import PageObject, PdfReader, PdfWriter, Transformation
from pypdf.errors import FileNotDecryptedError, PdfReadError

from ..exceptions import UnreadablePDFError
from ..types import MaterializedPage, PageKind
from .base import BackendPage, PDFBackend


class PypdfBackend(PDFBackend):
    """Backend implementation that uses `pypdf` under the hood.

    :meth:`PdfWriter.add_page` clones every object reachable from a page
    into the writer, so the output never references the source readers
    and object numbers are assigned by the writer.
    """

    def parse_pages(self, data: bytes, *, source: str = "") -> List[BackendPage]:
        label = source or "<memory>"
        try:
            reader = PdfReader(io.BytesIO(data))
        except PdfReadError as exc:
            raise UnreadablePDFError(f"Corrupted or invalid PDF file: {label}. Error: {exc}") from exc
        except Exception as exc:
            raise UnreadablePDFError(f"Unexpected error reading PDF: {label}. Error: {exc}") from exc

        if reader.is_encrypted:
            try:
                unlocked = reader.decrypt("")
            except Exception as exc:
                raise UnreadablePDFError(f"PDF is encrypted: {label}. Error: {exc}") from exc
            if not unlocked:
                raise UnreadablePDFError(f"PDF is encrypted and requires a password: {label}")

        pages: List[BackendPage] = []
        try:
            for page in reader.pages:
                box = page.mediabox
                pages.append(BackendPage(content=page, width=float(box.width), height=float(box.height)))
        except FileNotDecryptedError as exc:
            raise UnreadablePDFError(f"PDF is encrypted and requires a password: {label}") from exc
        except Exception as exc:
            raise UnreadablePDFError(f"Invalid page tree in PDF: {label}. Error: {exc}") from exc
        return pages

    def new_document(self) -> PdfWriter:
        return PdfWriter()

    def embed_page(self, document: PdfWriter, page: MaterializedPage) -> None:
        if page.kind is PageKind.RASTER:
            document.add_page(self._compose_raster(page))
        else:
            document.add_page(page.content)

    def page_count(self, document: PdfWriter) -> int:
        return len(document.pages)

    def set_metadata(self, document: PdfWriter, metadata: Mapping[str, str]) -> None:
        document.add_metadata(dict(metadata))

    def serialize(self, document: PdfWriter) -> bytes:
        buffer = io.BytesIO()
        document.write(buffer)
        return buffer.getvalue()

    @staticmethod
    def _compose_raster(page: MaterializedPage) -> PageObject:
        """Draw the encoded image of *page* onto a blank canvas page."""

        image_page = PdfReader(io.BytesIO(page.content)).pages[0]
        canvas = PageObject.create_blank_page(width=page.width, height=page.height)
        placement = page.placement
        if placement is None:
            canvas.merge_page(image_page)
            return canvas

        natural_width = float(image_page.mediabox.width)
        scale = placement.width / natural_width if natural_width else 1.0
        transform = Transformation().scale(scale, scale).translate(placement.x, placement.y)
        canvas.merge_transformed_page(image_page, transform)
        return canvas
