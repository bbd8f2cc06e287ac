"""Atomic persistence of merged documents."""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from .exceptions import WriteError
from .options import DEFAULT_NAME_TEMPLATE
from .utils import PathLike, ensure_path

LOGGER = logging.getLogger("invoice_merger.writer")

PDF_SUFFIX = ".pdf"
TEMP_PREFIX = ".invoice-merger-"


def resolve_output_name(
    file_name: Optional[str],
    *,
    template: str = DEFAULT_NAME_TEMPLATE,
    now: Optional[Callable[[], datetime]] = None,
) -> str:
    """Return the output file name for *file_name*.

    Blank names fall back to *template* formatted with the current local
    time. A ``.pdf`` suffix is appended when missing.

    Raises:
        WriteError: If the name contains a path separator.
    """

    name = (file_name or "").strip()
    if not name:
        name = (now or datetime.now)().strftime(template)
    if "/" in name or "\\" in name or name in {".", ".."}:
        raise WriteError(f"Output file name must not contain a path: {file_name!r}")
    if not name.lower().endswith(PDF_SUFFIX):
        name = f"{name}{PDF_SUFFIX}"
    return name


def next_free_path(target: Path) -> Path:
    """Return *target*, or the first ``<stem>_<n><suffix>`` sibling that does not exist."""

    candidate = target
    counter = 1
    while candidate.exists():
        candidate = target.with_name(f"{target.stem}_{counter}{target.suffix}")
        counter += 1
    return candidate


class OutputWriter:
    """Write document bytes to a folder without leaving partial files behind.

    With ``overwrite`` disabled the final name is claimed with a hard link,
    so a file another run creates under the same name in the meantime is
    never replaced; the writer moves on to the next free ``_N`` name.
    """

    def __init__(self, *, overwrite: bool = False, name_template: str = DEFAULT_NAME_TEMPLATE) -> None:
        self.overwrite = overwrite
        self.name_template = name_template

    def write(self, data: bytes, folder: PathLike, file_name: Optional[str] = None) -> Path:
        """Write *data* into *folder* and return the final path.

        Raises:
            WriteError: If the name is invalid or any I/O step fails.
        """

        directory = ensure_path(folder)
        name = resolve_output_name(file_name, template=self.name_template)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise WriteError(f"Cannot create output folder {directory}: {exc}") from exc

        target = directory / name
        if not self.overwrite:
            target = next_free_path(target)

        temp_path: Optional[Path] = None
        try:
            with tempfile.NamedTemporaryFile(
                "wb", delete=False, dir=directory, prefix=TEMP_PREFIX, suffix=".tmp"
            ) as handle:
                temp_path = Path(handle.name)
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            target = self._finalize(temp_path, target)
        except OSError as exc:
            LOGGER.error("Failed to write merged PDF to %s: %s", target, exc)
            raise WriteError(f"Failed to write merged PDF to {target}: {exc}") from exc
        finally:
            if temp_path is not None:
                _discard(temp_path)

        LOGGER.info("Wrote %d bytes to %s", len(data), target)
        return target

    def _finalize(self, temp_path: Path, target: Path) -> Path:
        if self.overwrite:
            temp_path.replace(target)
            return target
        while True:
            try:
                os.link(temp_path, target)
            except FileExistsError:
                LOGGER.warning("%s appeared while writing; choosing another name", target)
                target = next_free_path(target)
            else:
                return target


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        LOGGER.warning("Could not remove temporary file %s: %s", path, exc)


__all__ = ["OutputWriter", "resolve_output_name", "next_free_path"]
