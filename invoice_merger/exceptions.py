"""
Custom exceptions for Invoice Merger.

Per-file problems derive from :class:`MaterializationError` and are
collected into the merge outcome. The remaining errors stop a run.
"""


class InvoiceMergerError(Exception):
    """Base exception for all Invoice Merger errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown invoice merger error occurred."


class FolderUnreadableError(InvoiceMergerError):
    """Raised when the source folder is missing or cannot be listed."""

    @property
    def default_message(self) -> str:
        return "The selected folder does not exist or cannot be read."


class MaterializationError(InvoiceMergerError):
    """Raised when a single input file cannot be turned into pages."""

    @property
    def default_message(self) -> str:
        return "The file could not be converted into pages."


class UnsupportedCodecError(MaterializationError):
    """Raised when no decoder is available for an image format."""

    @property
    def default_message(self) -> str:
        return "No decoder is available for this image format."


class UnreadablePDFError(MaterializationError):
    """Raised when a PDF is encrypted or structurally invalid."""

    @property
    def default_message(self) -> str:
        return "The PDF is encrypted or corrupted."


class UnsupportedFormatError(MaterializationError):
    """Raised for files whose extension is not a supported input."""

    @property
    def default_message(self) -> str:
        return "Unsupported file format."


class CorruptImageError(MaterializationError):
    """Raised when image bytes cannot be decoded."""

    @property
    def default_message(self) -> str:
        return "The image could not be decoded."


class SourceNotFoundError(MaterializationError):
    """Raised when a requested file is no longer available in the folder."""

    @property
    def default_message(self) -> str:
        return "The file is no longer present in the source folder."


class AssemblyError(InvoiceMergerError):
    """Raised when materialized pages cannot be combined into one document."""

    @property
    def default_message(self) -> str:
        return "The merged document could not be assembled."


class WriteError(InvoiceMergerError):
    """Raised when the merged document cannot be written to disk."""

    @property
    def default_message(self) -> str:
        return "The merged document could not be written."


class MergeCancelledError(InvoiceMergerError):
    """Raised when a run is cancelled by the caller."""

    @property
    def default_message(self) -> str:
        return "The merge was cancelled."
