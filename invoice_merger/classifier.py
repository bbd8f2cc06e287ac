"""Folder scanning and classification of candidate input files."""

from __future__ import annotations

import logging
import os
from typing import List

from .exceptions import FolderUnreadableError
from .types import FileRecord
from .utils import PathLike, ensure_path

LOGGER = logging.getLogger("invoice_merger.classifier")

PDF_EXTENSIONS = frozenset({"pdf"})
IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "bmp", "gif", "tiff", "webp", "heic"})
SUPPORTED_EXTENSIONS = PDF_EXTENSIONS | IMAGE_EXTENSIONS


def is_supported(file_name: str) -> bool:
    _, _, extension = file_name.rpartition(".")
    return "." in file_name and extension.lower() in SUPPORTED_EXTENSIONS


def scan_folder(folder_path: PathLike) -> List[FileRecord]:
    """Return a :class:`FileRecord` for every supported file in *folder_path*.

    Records come back in directory enumeration order. Subdirectories,
    unsupported extensions, broken links and link cycles are skipped. An
    entry that vanishes or cannot be stat'ed while the folder is being
    listed is skipped as well; only the folder itself can fail the scan.

    Raises:
        FolderUnreadableError: If the folder is missing, not a directory,
            or cannot be opened.
    """

    folder = ensure_path(folder_path)
    LOGGER.debug("Scanning folder %s", folder)
    if not folder.is_dir():
        raise FolderUnreadableError(f"Folder not found or not a directory: {folder}")

    records: List[FileRecord] = []
    try:
        with os.scandir(folder) as entries:
            for entry in entries:
                if not is_supported(entry.name):
                    continue
                try:
                    if not entry.is_file():
                        continue
                    stat = entry.stat()
                except OSError as exc:
                    LOGGER.debug("Skipping unreadable entry %s: %s", entry.path, exc)
                    continue

                path = folder / entry.name
                records.append(
                    FileRecord(
                        path=path,
                        display_name=entry.name,
                        extension=entry.name.rpartition(".")[2].lower(),
                        modified_at=int(stat.st_mtime),
                        size_bytes=stat.st_size,
                    )
                )
    except OSError as exc:
        LOGGER.error("Failed to list folder %s: %s", folder, exc)
        raise FolderUnreadableError(f"Unable to read folder {folder}: {exc}") from exc

    LOGGER.info("Found %d supported file(s) in %s", len(records), folder)
    return records


__all__ = [
    "scan_folder",
    "is_supported",
    "SUPPORTED_EXTENSIONS",
    "IMAGE_EXTENSIONS",
    "PDF_EXTENSIONS",
]
