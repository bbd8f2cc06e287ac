"""Backend protocol for PDF operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Protocol

from ..types import MaterializedPage


@dataclass(frozen=True)
class BackendPage:
    """A page parsed from a source document, with its size in points."""

    content: Any
    width: float
    height: float


class PDFBackend(Protocol):
    """Narrow capability set the assembler and materializer rely on."""

    def parse_pages(self, data: bytes, *, source: str = "") -> List[BackendPage]:
        """Parse a PDF and return its pages in document order."""

    def new_document(self) -> Any:
        """Return an empty output document."""

    def embed_page(self, document: Any, page: MaterializedPage) -> None:
        """Copy *page* into *document* as its new last page."""

    def page_count(self, document: Any) -> int:
        """Return the number of pages currently in *document*."""

    def set_metadata(self, document: Any, metadata: Mapping[str, str]) -> None:
        """Attach document information entries to *document*."""

    def serialize(self, document: Any) -> bytes:
        """Return the complete file representation of *document*."""
