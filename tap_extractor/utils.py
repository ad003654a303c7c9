"""
Utility functions for the tap list extraction pipeline.
"""

import io
import logging
from typing import Union

import numpy as np
from PIL import Image


def setup_logger(name: str, level: Union[int, str] = logging.INFO) -> logging.Logger:
    """
    Setup logger with consistent formatting.

    Args:
        name: Logger name
        level: Logging level

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def set_log_level(level: Union[int, str]) -> None:
    """Apply a level to every logger of the package."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("tap_extractor"):
            logging.getLogger(name).setLevel(level)


def image_to_numpy(image: Image.Image) -> np.ndarray:
    """
    Convert PIL Image to numpy array.

    Args:
        image: PIL Image

    Returns:
        Numpy array in RGB format
    """
    if image.mode != 'RGB':
        image = image.convert('RGB')
    return np.array(image)


def crop_image(image: Image.Image, x: int, y: int, width: int, height: int) -> Image.Image:
    """
    Copy a rectangle anchored at its top-left corner.

    Args:
        image: PIL Image
        x: Left edge
        y: Top edge
        width: Rectangle width
        height: Rectangle height

    Returns:
        Cropped copy; the source image is untouched
    """
    return image.crop((x, y, x + width, y + height))


def encode_image(image: Image.Image, fmt: str = "JPEG") -> bytes:
    """Encode an image into bytes of the given format."""
    if fmt.upper() == "JPEG" and image.mode != "RGB":
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format=fmt.upper())
    return buffer.getvalue()
