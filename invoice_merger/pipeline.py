"""Phased orchestration of scan, convert, merge and write."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Set

from .assembler import DocumentAssembler
from .backends import PDFBackend, PypdfBackend
from .classifier import SUPPORTED_EXTENSIONS, scan_folder
from .exceptions import (
    AssemblyError,
    FolderUnreadableError,
    MaterializationError,
    MergeCancelledError,
    SourceNotFoundError,
    WriteError,
)
from .materializer import PageMaterializer
from .options import MergeOptions
from .types import (
    AssembledDocument,
    FailedFile,
    FileRecord,
    MaterializedPage,
    MergeOutcome,
    MergeRequest,
    Phase,
    ProgressEvent,
    RunState,
)
from .utils import PathLike, ensure_path
from .writer import OutputWriter

LOGGER = logging.getLogger("invoice_merger.pipeline")

ProgressCallback = Callable[[ProgressEvent], None]
Classifier = Callable[[PathLike], List[FileRecord]]


class CancelSignal(Protocol):
    def is_set(self) -> bool:  # pragma: no cover - protocol
        ...


def _catalog_key(path: Path) -> Path:
    # Resolve the folder only, so a symlinked file keeps its own name.
    return ensure_path(path.parent) / path.name


class _MergeRun:
    """State of a single :meth:`MergePipeline.merge` invocation."""

    def __init__(
        self,
        pipeline: "MergePipeline",
        request: MergeRequest,
        progress_callback: Optional[ProgressCallback],
        cancel_event: Optional[CancelSignal],
    ) -> None:
        self.pipeline = pipeline
        self.request = request
        self.progress_callback = progress_callback
        self.cancel_event = cancel_event
        self.state = RunState.IDLE
        self.failures: Dict[int, FailedFile] = {}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _enter(self, state: RunState) -> None:
        LOGGER.debug("Merge run %s -> %s", self.state.value, state.value)
        self.state = state

    def _emit(self, phase: Phase, current: int, total: int) -> None:
        if self.progress_callback is None:
            return
        try:
            self.progress_callback(ProgressEvent(phase=phase, current=current, total=total))
        except Exception:
            LOGGER.exception("Progress callback raised during %s phase", phase.value)

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _check_cancelled(self) -> None:
        if self._cancelled():
            raise MergeCancelledError()

    def _failed_files(self) -> tuple:
        return tuple(self.failures[index] for index in sorted(self.failures))

    def _abort(self, message: str) -> MergeOutcome:
        self._enter(RunState.ABORTED)
        LOGGER.error("Merge aborted: %s", message)
        return MergeOutcome(
            success=False,
            failed_files=self._failed_files(),
            message=message,
            state=RunState.ABORTED,
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    def run(self) -> MergeOutcome:
        try:
            catalog = self._scan()
            results = self._convert(catalog)
            self._check_cancelled()
            document = self._merge(results)
            self._check_cancelled()
        except FolderUnreadableError as exc:
            return self._abort(exc.message)
        except MergeCancelledError as exc:
            return self._abort(exc.message)
        except AssemblyError as exc:
            return self._abort(exc.message)
        return self._write(document)

    def _scan(self) -> Set[Path]:
        self._enter(RunState.SCAN)
        records = self.pipeline.classifier(self.request.folder_path)
        self._emit(Phase.SCAN, len(records), len(records))
        return {_catalog_key(record.path) for record in records}

    def _convert(self, catalog: Set[Path]) -> List[Optional[List[MaterializedPage]]]:
        self._enter(RunState.CONVERT)
        records = self.request.ordered_files
        total = len(records)
        results: List[Optional[List[MaterializedPage]]] = [None] * total
        if not total:
            return results

        workers = min(self.pipeline.options.max_workers, total)
        completed = 0
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="invoice-merger") as executor:
            futures: Dict[Future, int] = {
                executor.submit(self._materialize_one, record, catalog): index
                for index, record in enumerate(records)
            }
            try:
                for future in as_completed(futures):
                    index = futures[future]
                    record = records[index]
                    try:
                        results[index] = future.result()
                    except MaterializationError as exc:
                        LOGGER.warning("Skipping %s: %s", record.display_name, exc.message)
                        self.failures[index] = FailedFile(
                            path=record.path,
                            reason=exc.message,
                            error_type=type(exc).__name__,
                        )
                    completed += 1
                    self._emit(Phase.CONVERT, completed, total)
                    self._check_cancelled()
            except MergeCancelledError:
                for pending in futures:
                    pending.cancel()
                raise

        LOGGER.info("Converted %d of %d file(s)", total - len(self.failures), total)
        return results

    def _materialize_one(self, record: FileRecord, catalog: Set[Path]) -> List[MaterializedPage]:
        self._check_cancelled()
        if record.extension.lower() in SUPPORTED_EXTENSIONS and _catalog_key(record.path) not in catalog:
            raise SourceNotFoundError(
                f"File is no longer present in {self.request.folder_path}: {record.display_name}"
            )
        try:
            return self.pipeline.materializer.materialize(record)
        except MaterializationError:
            raise
        except Exception as exc:
            LOGGER.exception("Unexpected error converting %s", record.path)
            raise MaterializationError(f"Unexpected error converting {record.display_name}: {exc}") from exc

    def _merge(self, results: Sequence[Optional[List[MaterializedPage]]]) -> AssembledDocument:
        self._enter(RunState.MERGE)
        pages = [page for file_pages in results if file_pages for page in file_pages]
        if not pages:
            total = len(self.request.ordered_files)
            if total == 0:
                raise AssemblyError("No files were selected for merging")
            if len(self.failures) == total:
                raise AssemblyError(f"All {total} selected file(s) failed to convert")
            raise AssemblyError("The selected files contain no pages")

        self._emit(Phase.MERGE, 0, len(pages))
        return self.pipeline.assembler.assemble(
            pages,
            metadata=self.pipeline.document_metadata(self.request),
            progress_callback=lambda current, total: self._emit(Phase.MERGE, current, total),
        )

    def _write(self, document: AssembledDocument) -> MergeOutcome:
        self._enter(RunState.WRITE)
        self._emit(Phase.WRITE, 0, 1)
        failed = self._failed_files()
        try:
            output_path = self.pipeline.writer.write(
                document.data,
                self.request.destination,
                self.request.output_file_name,
            )
        except WriteError as exc:
            self._enter(RunState.COMPLETED)
            return MergeOutcome(
                success=False,
                failed_files=failed,
                message=exc.message,
                state=RunState.COMPLETED,
                page_count=document.page_count,
                document=document,
            )

        self._emit(Phase.WRITE, 1, 1)
        self._enter(RunState.COMPLETED)
        message = f"{len(failed)} file(s) failed to convert" if failed else None
        return MergeOutcome(
            success=True,
            output_path=output_path,
            failed_files=failed,
            message=message,
            state=RunState.COMPLETED,
            page_count=document.page_count,
        )


class MergePipeline:
    """Run the scan, convert, merge and write phases for merge requests.

    A pipeline holds only collaborators and options; every call to
    :meth:`merge` keeps its own state, so one pipeline can serve
    concurrent runs.
    """

    def __init__(
        self,
        options: Optional[MergeOptions] = None,
        *,
        backend: Optional[PDFBackend] = None,
        classifier: Optional[Classifier] = None,
        materializer: Optional[PageMaterializer] = None,
        assembler: Optional[DocumentAssembler] = None,
        writer: Optional[OutputWriter] = None,
    ) -> None:
        self.options = options or MergeOptions()
        self.backend: PDFBackend = backend or PypdfBackend()
        self.classifier: Classifier = classifier or scan_folder
        self.materializer = materializer or PageMaterializer(self.backend, self.options)
        self.assembler = assembler or DocumentAssembler(self.backend)
        self.writer = writer or OutputWriter(
            overwrite=self.options.overwrite,
            name_template=self.options.default_name_template,
        )

    def scan(self, folder_path: PathLike) -> List[FileRecord]:
        """Return the supported files of *folder_path*."""

        return self.classifier(folder_path)

    def merge(
        self,
        request: MergeRequest,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[CancelSignal] = None,
    ) -> MergeOutcome:
        """Merge the files of *request* and return the outcome.

        Per-file failures are collected in ``failed_files``. Folder,
        assembly and cancellation failures produce an aborted outcome
        with no output written. Write failures produce a completed,
        unsuccessful outcome that keeps the assembled document for
        :meth:`retry_write`.
        """

        LOGGER.info(
            "Merging %d file(s) from %s",
            len(request.ordered_files),
            request.folder_path,
        )
        outcome = _MergeRun(self, request, progress_callback, cancel_event).run()
        LOGGER.info("%s", outcome)
        return outcome

    def retry_write(
        self,
        outcome: MergeOutcome,
        folder: PathLike,
        file_name: Optional[str] = None,
    ) -> MergeOutcome:
        """Write the document kept on a failed *outcome* to another place."""

        if outcome.document is None:
            raise ValueError("Outcome does not carry an assembled document")

        try:
            output_path = self.writer.write(outcome.document.data, folder, file_name)
        except WriteError as exc:
            return replace(outcome, message=exc.message)

        failed = outcome.failed_files
        return replace(
            outcome,
            success=True,
            output_path=output_path,
            message=f"{len(failed)} file(s) failed to convert" if failed else None,
            document=None,
        )

    def document_metadata(self, request: MergeRequest) -> Dict[str, str]:
        title = Path((request.output_file_name or "").strip()).stem or "Merged invoices"
        return {"/Producer": self.options.producer, "/Title": title}


def _record_for(folder: Path, name: PathLike) -> FileRecord:
    path = Path(name)
    if not path.is_absolute():
        path = folder / path
    try:
        return FileRecord.from_path(path)
    except OSError:
        # Left for the pipeline to report as a per-file failure.
        return FileRecord(
            path=path,
            display_name=path.name,
            extension=path.suffix.lstrip(".").lower(),
            modified_at=0,
            size_bytes=0,
        )


def merge_files(
    folder_path: PathLike,
    files: Iterable[PathLike],
    output_file_name: Optional[str] = None,
    *,
    options: Optional[MergeOptions] = None,
    progress_callback: Optional[ProgressCallback] = None,
    cancel_event: Optional[CancelSignal] = None,
) -> MergeOutcome:
    """Convenience wrapper merging *files* of *folder_path* in the given order."""

    folder = ensure_path(folder_path)
    request = MergeRequest(
        folder_path=folder,
        ordered_files=tuple(_record_for(folder, name) for name in files),
        output_file_name=output_file_name,
    )
    return MergePipeline(options).merge(request, progress_callback, cancel_event)


__all__ = ["MergePipeline", "merge_files", "CancelSignal", "ProgressCallback"]
