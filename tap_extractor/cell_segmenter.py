"""
Cell segmentation from grid line coordinates.
"""

from dataclasses import dataclass
from typing import List

from .utils import setup_logger
from .grid_detector import GridLineSet


logger = setup_logger(__name__)


@dataclass(frozen=True)
class CellDescriptor:
    """Top-left anchored rectangle of one table cell, in pixels."""
    x: int
    y: int
    width: int
    height: int

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0


CellGrid = List[List[CellDescriptor]]


def segment_cells(grid: GridLineSet) -> CellGrid:
    """
    Turn grid line coordinates into rows of cell rectangles.

    Each cell sits strictly inside the lines that bound it, so its anchor is
    one pixel past the leading line and its extent stops one pixel short of
    the trailing line. Cells squeezed between adjacent lines come out
    degenerate and are left in place to keep column positions stable.

    Args:
        grid: Detected grid lines

    Returns:
        len(y_coords) - 1 rows of len(x_coords) - 1 cells, or [] when either
        axis has fewer than two lines
    """
    if grid.is_empty:
        logger.warning("Grid has fewer than two lines on an axis, no cells produced")
        return []

    xs, ys = grid.x_coords, grid.y_coords
    cells = []
    for i in range(len(ys) - 1):
        row_height = ys[i + 1] - ys[i] - 1
        cells.append([
            CellDescriptor(x=xs[j] + 1, y=ys[i] + 1, width=xs[j + 1] - xs[j] - 1, height=row_height)
            for j in range(len(xs) - 1)
        ])

    logger.debug(f"Segmented {len(cells)} rows of {len(xs) - 1} cells")
    return cells
