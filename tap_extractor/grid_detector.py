"""
Grid line detection by scanning one reference row and one reference column.
"""

from dataclasses import dataclass
from typing import Tuple
import numpy as np
from PIL import Image

from .utils import setup_logger, image_to_numpy
from .config import Config


logger = setup_logger(__name__)


@dataclass(frozen=True)
class GridLineSet:
    """Vertical line x-positions and horizontal line y-positions, each led by 0."""
    x_coords: Tuple[int, ...] = (0,)
    y_coords: Tuple[int, ...] = (0,)

    @property
    def is_empty(self) -> bool:
        """True when either axis holds only the leading 0."""
        return len(self.x_coords) < 2 or len(self.y_coords) < 2


def darkness_mask(pixels: np.ndarray, metric: str, threshold: int) -> np.ndarray:
    """
    Classify pixels as grid line pixels.

    Args:
        pixels: Array of shape (n, 3) with RGB values
        metric: "sum" to compare R+G+B, "red" to compare the red channel
        threshold: Pixels strictly below it are dark

    Returns:
        Boolean array of length n
    """
    pixels = pixels.astype(np.int32)
    if metric == "red":
        intensity = pixels[:, 0]
    else:
        intensity = pixels.sum(axis=1)
    return intensity < threshold


class GridDetector:
    """Finds grid line coordinates along a single reference row and column."""

    def __init__(self, config: Config):
        """
        Initialize grid detector.

        Args:
            config: Configuration object
        """
        self.config = config

    def detect(self, image: Image.Image, x_offset: int = None, y_offset: int = None) -> GridLineSet:
        """
        Scan the image for grid lines.

        The row at y_offset is scanned from x_offset to the right edge for
        vertical lines, and the column at x_offset from y_offset to the bottom
        edge for horizontal lines. Offsets of 0 are bumped to 1 so the image
        border is never scanned.

        Args:
            image: Decoded PIL Image
            x_offset: Reference column (defaults to config)
            y_offset: Reference row (defaults to config)

        Returns:
            GridLineSet; only the sentinel 0 on an axis means no lines found
        """
        x_offset = self.config.x_offset if x_offset is None else x_offset
        y_offset = self.config.y_offset if y_offset is None else y_offset
        x_offset = x_offset or 1
        y_offset = y_offset or 1

        pixels = image_to_numpy(image)
        height, width = pixels.shape[:2]

        if x_offset >= width or y_offset >= height:
            logger.warning(f"Reference offsets ({x_offset}, {y_offset}) outside image of size {image.size}")
            return GridLineSet()

        row = pixels[y_offset, x_offset:]
        column = pixels[y_offset:, x_offset]

        vertical = darkness_mask(row, self.config.vertical_line_metric,
                                 self.config.vertical_line_threshold)
        horizontal = darkness_mask(column, self.config.horizontal_line_metric,
                                   self.config.horizontal_line_threshold)

        x_coords = (0,) + tuple(int(x) + x_offset for x in np.flatnonzero(vertical))
        y_coords = (0,) + tuple(int(y) + y_offset for y in np.flatnonzero(horizontal))

        logger.info(f"Detected {len(x_coords) - 1} vertical and {len(y_coords) - 1} horizontal grid lines")
        return GridLineSet(x_coords=x_coords, y_coords=y_coords)
