"""Run configuration for the merge pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

MM_PER_INCH = 25.4
POINTS_PER_INCH = 72.0


def mm_to_points(value: float) -> float:
    return value / MM_PER_INCH * POINTS_PER_INCH


A4_SIZE: Tuple[float, float] = (mm_to_points(210.0), mm_to_points(297.0))

DEFAULT_NAME_TEMPLATE = "merged_invoices_%Y%m%d_%H%M"
DEFAULT_RENDER_DPI = 150.0
DEFAULT_MAX_WORKERS = 4


@dataclass(frozen=True)
class MergeOptions:
    """
    Behavioural toggles for a merge run.

    Attributes:
        overwrite: Replace an existing output file instead of choosing a
            new name with a numeric suffix.
        max_workers: Upper bound on files converted concurrently.
        render_dpi: Resolution used when encoding raster images.
        page_size: Canvas (width, height) in points for image pages.
        margin: Blank border in points kept around images on the canvas.
        default_name_template: ``strftime`` pattern for the output name
            when the caller does not provide one.
        producer: Value written to the ``/Producer`` metadata entry.
    """

    overwrite: bool = False
    max_workers: int = DEFAULT_MAX_WORKERS
    render_dpi: float = DEFAULT_RENDER_DPI
    page_size: Tuple[float, float] = A4_SIZE
    margin: float = 0.0
    default_name_template: str = DEFAULT_NAME_TEMPLATE
    producer: str = "Invoice Merger"

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.render_dpi <= 0:
            raise ValueError(f"render_dpi must be positive, got {self.render_dpi}")
        width, height = self.page_size
        if width <= 0 or height <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if self.margin < 0 or 2 * self.margin >= min(width, height):
            raise ValueError(f"margin {self.margin} does not fit the page size")


__all__ = ["MergeOptions", "A4_SIZE", "mm_to_points"]
