"""
Invoice Merger - combine invoice PDFs and scanned receipts into one PDF.

The library scans a folder for PDFs and images, converts each selected
file into pages, and writes a single merged document in the order the
caller chose. Files that cannot be converted are reported instead of
stopping the merge.

Quick Start:
    >>> from invoice_merger import MergePipeline, MergeRequest, OrderedSelection
    >>> pipeline = MergePipeline()
    >>> selection = OrderedSelection.from_catalog(pipeline.scan('invoices/'))
    >>> request = MergeRequest.from_selection('invoices/', selection.sorted_by('name'))
    >>> outcome = pipeline.merge(request)

Main Classes:
    - MergePipeline: Runs the scan, convert, merge and write phases
    - OrderedSelection: Caller-controlled file order and include flags
    - PageMaterializer / DocumentAssembler / OutputWriter: Pipeline stages

Exceptions:
    - InvoiceMergerError: Base exception
    - FolderUnreadableError, AssemblyError, WriteError: Run-level errors
    - MaterializationError and subclasses: Per-file errors

For CLI usage, use the 'invoice-merger' command after installation.
"""

# Core classes
from invoice_merger.assembler import DocumentAssembler
from invoice_merger.classifier import SUPPORTED_EXTENSIONS, scan_folder
from invoice_merger.materializer import PageMaterializer
from invoice_merger.options import MergeOptions
from invoice_merger.pipeline import MergePipeline, merge_files
from invoice_merger.selection import OrderedSelection, SelectionEntry, SortField
from invoice_merger.writer import OutputWriter

# Data types
from invoice_merger.types import (
    FailedFile,
    FileRecord,
    MaterializedPage,
    MergeOutcome,
    MergeRequest,
    Phase,
    ProgressEvent,
    RunState,
)

# Exceptions
from invoice_merger.exceptions import (
    AssemblyError,
    CorruptImageError,
    FolderUnreadableError,
    InvoiceMergerError,
    MaterializationError,
    MergeCancelledError,
    SourceNotFoundError,
    UnreadablePDFError,
    UnsupportedCodecError,
    UnsupportedFormatError,
    WriteError,
)

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = [
    # Main classes
    "MergePipeline",
    "OrderedSelection",
    "SelectionEntry",
    "SortField",
    "PageMaterializer",
    "DocumentAssembler",
    "OutputWriter",
    "MergeOptions",
    # Functions
    "scan_folder",
    "merge_files",
    "SUPPORTED_EXTENSIONS",
    # Data types
    "FileRecord",
    "MaterializedPage",
    "MergeRequest",
    "MergeOutcome",
    "FailedFile",
    "ProgressEvent",
    "Phase",
    "RunState",
    # Exceptions
    "InvoiceMergerError",
    "FolderUnreadableError",
    "MaterializationError",
    "UnsupportedCodecError",
    "UnreadablePDFError",
    "UnsupportedFormatError",
    "CorruptImageError",
    "SourceNotFoundError",
    "AssemblyError",
    "WriteError",
    "MergeCancelledError",
    # Version info
    "__version__",
]
