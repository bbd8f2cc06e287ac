"""Backend abstractions for Invoice Merger."""

from .base import BackendPage, PDFBackend
from .pypdf_backend import PypdfBackend

__all__ = [
    "BackendPage",
    "PDFBackend",
    "PypdfBackend",
]
