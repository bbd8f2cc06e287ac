"""Utility helpers shared across :mod:`invoice_merger`."""

from __future__ import annotations

from pathlib import Path
from typing import Union

PathLike = Union[str, Path]


def ensure_path(path: PathLike) -> Path:
    """Return an absolute :class:`~pathlib.Path` for *path*.

    User-home references are expanded and relative paths are resolved
    against the current working directory. Symbolic links are resolved
    too, so two spellings of the same file compare equal.
    """

    return Path(path).expanduser().resolve(strict=False)


def format_file_size(size_bytes: float) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "500 B")
    """
    if size_bytes < 1024:
        return f"{int(size_bytes)} B"
    for unit in ['KB', 'MB', 'GB']:
        size_bytes /= 1024.0
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
    return f"{size_bytes / 1024.0:.1f} TB"


__all__ = ["PathLike", "ensure_path", "format_file_size"]
