"""Ordered, immutable file selections that drive output page order."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, Tuple, Union

from .types import FileRecord

PathKey = Union[str, Path]


class SortField(str, Enum):
    NAME = "name"
    EXTENSION = "extension"
    MODIFIED = "modified"
    SIZE = "size"


_SORT_KEYS: Dict[SortField, Callable[[FileRecord], object]] = {
    SortField.NAME: lambda record: record.display_name.casefold(),
    SortField.EXTENSION: lambda record: record.extension,
    SortField.MODIFIED: lambda record: record.modified_at,
    SortField.SIZE: lambda record: record.size_bytes,
}


@dataclass(frozen=True)
class SelectionEntry:
    record: FileRecord
    included: bool = True


@dataclass(frozen=True)
class OrderedSelection:
    """
    Caller-controlled ordering of catalog files with include flags.

    Every operation returns a new selection; the pipeline only ever sees
    a snapshot taken through :meth:`included`.
    """

    entries: Tuple[SelectionEntry, ...] = ()

    @classmethod
    def from_catalog(cls, records: Iterable[FileRecord], *, included: bool = True) -> "OrderedSelection":
        return cls(tuple(SelectionEntry(record, included) for record in records))

    def __iter__(self) -> Iterator[SelectionEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def records(self) -> Tuple[FileRecord, ...]:
        return tuple(entry.record for entry in self.entries)

    def included(self) -> Tuple[FileRecord, ...]:
        """Return the included records in their current order."""
        return tuple(entry.record for entry in self.entries if entry.included)

    def index_of(self, path: PathKey) -> int:
        key = Path(path)
        for index, entry in enumerate(self.entries):
            if entry.record.path == key or entry.record.display_name == str(path):
                return index
        raise KeyError(f"File not in selection: {path}")

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------
    def sorted_by(self, field: Union[SortField, str], *, descending: bool = False) -> "OrderedSelection":
        """Return a copy sorted by *field*; ties keep their current order."""
        key = _SORT_KEYS[SortField(field)]
        ordered = sorted(self.entries, key=lambda entry: key(entry.record), reverse=descending)
        return replace(self, entries=tuple(ordered))

    def move(self, old_index: int, new_index: int) -> "OrderedSelection":
        """Move the entry at *old_index* so it ends up at *new_index*."""
        size = len(self.entries)
        if not 0 <= old_index < size or not 0 <= new_index < size:
            raise IndexError(f"Move {old_index} -> {new_index} out of range for {size} entries")
        entries = list(self.entries)
        entry = entries.pop(old_index)
        entries.insert(new_index, entry)
        return replace(self, entries=tuple(entries))

    def reordered(self, paths: Iterable[PathKey]) -> "OrderedSelection":
        """
        Put the named files first, in the given order.

        Files not named keep their relative order after the named ones.
        Names may be full paths or display names.
        """
        positions = [self.index_of(path) for path in paths]
        taken = set(positions)
        if len(taken) != len(positions):
            raise ValueError("Explicit order names the same file more than once")
        chosen = [self.entries[index] for index in positions]
        rest = [entry for index, entry in enumerate(self.entries) if index not in taken]
        return replace(self, entries=tuple(chosen + rest))

    # ------------------------------------------------------------------
    # Inclusion
    # ------------------------------------------------------------------
    def set_included(self, path: PathKey, included: bool) -> "OrderedSelection":
        index = self.index_of(path)
        entries = list(self.entries)
        entries[index] = replace(entries[index], included=included)
        return replace(self, entries=tuple(entries))

    def toggle(self, path: PathKey) -> "OrderedSelection":
        index = self.index_of(path)
        return self.set_included(self.entries[index].record.path, not self.entries[index].included)

    def set_all(self, included: bool) -> "OrderedSelection":
        return replace(
            self,
            entries=tuple(replace(entry, included=included) for entry in self.entries),
        )


__all__ = ["SortField", "SelectionEntry", "OrderedSelection"]
