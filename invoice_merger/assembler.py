"""Assembly of materialized pages into a single output document."""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional, Sequence

from .backends import PDFBackend, PypdfBackend
from .exceptions import AssemblyError
from .types import AssembledDocument, MaterializedPage

LOGGER = logging.getLogger("invoice_merger.assembler")

ProgressCallback = Callable[[int, int], None]


class DocumentAssembler:
    """Concatenate pages, in the order given, into one serialized document."""

    def __init__(self, backend: Optional[PDFBackend] = None) -> None:
        self.backend: PDFBackend = backend or PypdfBackend()

    def assemble(
        self,
        pages: Sequence[MaterializedPage],
        *,
        metadata: Optional[Mapping[str, str]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> AssembledDocument:
        """Build the output document from *pages*.

        Args:
            pages: Pages flattened across all sources, in output order.
            metadata: Document information entries such as ``/Title``.
            progress_callback: Called with ``(embedded, total)`` after
                each page.

        Raises:
            AssemblyError: If there are no pages, a page cannot be
                embedded, or the result does not hold exactly the
                supplied pages.
        """

        if not pages:
            raise AssemblyError("No pages to assemble")

        total = len(pages)
        document = self.backend.new_document()
        for position, page in enumerate(pages, start=1):
            LOGGER.debug(
                "Embedding page %d of %s as output page %d",
                page.page_index + 1,
                page.source_path.name,
                position,
            )
            try:
                self.backend.embed_page(document, page)
            except Exception as exc:
                LOGGER.error("Failed to embed page %d of %s: %s", page.page_index + 1, page.source_path, exc)
                raise AssemblyError(
                    f"Unable to embed page {page.page_index + 1} of {page.source_path.name}: {exc}"
                ) from exc
            if progress_callback:
                progress_callback(position, total)

        embedded = self.backend.page_count(document)
        if embedded != total:
            raise AssemblyError(f"Assembled document has {embedded} pages, expected {total}")

        try:
            if metadata:
                self.backend.set_metadata(document, metadata)
            data = self.backend.serialize(document)
        except Exception as exc:
            LOGGER.error("Failed to serialize merged document: %s", exc)
            raise AssemblyError(f"Unable to serialize merged document: {exc}") from exc

        sources = len({page.source_path for page in pages})
        LOGGER.info("Assembled %d page(s) from %d source(s)", total, sources)
        return AssembledDocument(data=data, page_count=total, source_count=sources)


__all__ = ["DocumentAssembler"]
