"""
Type definitions and dataclasses for Invoice Merger.

This module defines the data structures passed between the classifier,
materializer, assembler, writer and the pipeline that drives them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover
    from .selection import OrderedSelection


class Phase(str, Enum):
    """Pipeline stages, in execution order."""

    SCAN = "scan"
    CONVERT = "convert"
    MERGE = "merge"
    WRITE = "write"


class RunState(str, Enum):
    IDLE = "idle"
    SCAN = "scan"
    CONVERT = "convert"
    MERGE = "merge"
    WRITE = "write"
    COMPLETED = "completed"
    ABORTED = "aborted"


class PageKind(str, Enum):
    PDF = "pdf"
    RASTER = "raster"


@dataclass(frozen=True)
class FileRecord:
    """
    Metadata describing one candidate input file.

    Attributes:
        path: Absolute path of the file; unique key of the record
        display_name: File name shown to users
        extension: Lower-case extension without the leading dot
        modified_at: Modification time in epoch seconds
        size_bytes: File size in bytes
    """
    path: Path
    display_name: str
    extension: str
    modified_at: int
    size_bytes: int

    @classmethod
    def from_path(cls, path: Path) -> "FileRecord":
        stat = path.stat()
        return cls(
            path=path,
            display_name=path.name,
            extension=path.suffix.lstrip(".").lower(),
            modified_at=int(stat.st_mtime),
            size_bytes=stat.st_size,
        )


@dataclass(frozen=True)
class Placement:
    """Rectangle, in points, where an image is drawn on its canvas."""

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class MaterializedPage:
    """
    One page-equivalent unit ready for assembly.

    For PDF sources ``content`` is the backend page object. For images it
    is the encoded single-image document produced by the materializer and
    ``placement`` locates the image on a ``width`` x ``height`` canvas.
    """
    source_path: Path
    page_index: int
    content: Any = field(repr=False)
    width: float
    height: float
    kind: PageKind = PageKind.PDF
    placement: Optional[Placement] = None


@dataclass(frozen=True)
class MergeRequest:
    """
    Immutable description of one merge invocation.

    Attributes:
        folder_path: Folder holding the source files
        ordered_files: Included files, in output order
        output_file_name: Requested output name; a default is derived when empty
        output_folder: Destination folder; defaults to ``folder_path``
    """
    folder_path: Path
    ordered_files: Tuple[FileRecord, ...]
    output_file_name: Optional[str] = None
    output_folder: Optional[Path] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "folder_path", Path(self.folder_path))
        object.__setattr__(self, "ordered_files", tuple(self.ordered_files))
        if self.output_folder is not None:
            object.__setattr__(self, "output_folder", Path(self.output_folder))

    @classmethod
    def from_selection(
        cls,
        folder_path: Path | str,
        selection: "OrderedSelection",
        output_file_name: Optional[str] = None,
        output_folder: Path | str | None = None,
    ) -> "MergeRequest":
        """Snapshot the included files of *selection* into a request."""
        return cls(
            folder_path=Path(folder_path),
            ordered_files=selection.included(),
            output_file_name=output_file_name,
            output_folder=Path(output_folder) if output_folder is not None else None,
        )

    @property
    def destination(self) -> Path:
        return self.output_folder or self.folder_path


@dataclass(frozen=True)
class FailedFile:
    path: Path
    reason: str
    error_type: str = "MaterializationError"

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class ProgressEvent:
    phase: Phase
    current: int
    total: int


@dataclass(frozen=True)
class AssembledDocument:
    """Serialized merged document held in memory until it is written."""

    data: bytes = field(repr=False)
    page_count: int
    source_count: int


@dataclass(frozen=True)
class MergeOutcome:
    """
    Result of a merge run.

    Attributes:
        success: Whether an output file was written
        output_path: Path of the written file, if any
        failed_files: Files that contributed no pages, with reasons
        message: Summary for the caller, set on failures
        state: Terminal state of the run (completed or aborted)
        page_count: Number of pages in the assembled document
        document: Assembled document kept when writing failed
    """
    success: bool
    output_path: Optional[Path] = None
    failed_files: Tuple[FailedFile, ...] = ()
    message: Optional[str] = None
    state: RunState = RunState.COMPLETED
    page_count: int = 0
    document: Optional[AssembledDocument] = field(default=None, repr=False)

    @property
    def aborted(self) -> bool:
        return self.state is RunState.ABORTED

    @property
    def failed_names(self) -> list[str]:
        return [failure.name for failure in self.failed_files]

    def __str__(self) -> str:
        """String representation of the outcome."""
        if self.success:
            return (
                f"MergeOutcome(success=True, output='{self.output_path}', "
                f"pages={self.page_count}, failed={len(self.failed_files)})"
            )
        return f"MergeOutcome(success=False, state={self.state.value}, message='{self.message}')"


__all__ = [
    "Phase",
    "RunState",
    "PageKind",
    "FileRecord",
    "Placement",
    "MaterializedPage",
    "MergeRequest",
    "FailedFile",
    "ProgressEvent",
    "AssembledDocument",
    "MergeOutcome",
]
