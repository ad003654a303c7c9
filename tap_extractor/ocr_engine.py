"""
OCR engine wrapper for PaddleOCR and per-cell text extraction.
"""

from typing import Any, List, Optional, Tuple
import io
import threading

import numpy as np
from PIL import Image

from .utils import setup_logger, crop_image, encode_image
from .config import Config
from .cell_segmenter import CellDescriptor
from .exceptions import RecognitionError


logger = setup_logger(__name__)


def parse_ocr_result(result: Any) -> List[str]:
    """
    Collect recognized lines from a PaddleOCR result.

    Handles both the 2.x nested list form ``[[bbox, (text, score)], ...]``
    and the 3.x form where each page carries ``rec_texts``.
    """
    lines: List[str] = []
    if not result:
        return lines

    for res in result:
        if not res:
            continue
        if hasattr(res, "get") and res.get("rec_texts") is not None:
            lines.extend(str(text) for text in res.get("rec_texts"))
            continue
        for line in res:
            if isinstance(line, (list, tuple)) and len(line) >= 2:
                if isinstance(line[1], (list, tuple)) and len(line[1]) >= 1:
                    lines.append(str(line[1][0]))
    return lines


class OCREngine:
    """Wrapper for PaddleOCR text recognition."""

    def __init__(self, config: Config):
        """
        Initialize OCR engine.

        The PaddleOCR model is loaded on first use and reused afterwards.

        Args:
            config: Configuration object
        """
        self.config = config
        self.ocr = None
        self._lock = threading.Lock()

    def _initialize_ocr(self):
        """Initialize PaddleOCR instance."""
        try:
            from paddleocr import PaddleOCR

            logger.info("Initializing PaddleOCR engine...")
            self.ocr = PaddleOCR(lang=self.config.ocr_lang)
            logger.info("PaddleOCR engine initialized successfully")

        except ImportError:
            logger.error("PaddleOCR is not installed. Install with: pip install paddleocr")
            raise
        except Exception as e:
            logger.error(f"Failed to initialize PaddleOCR: {e}")
            raise

    def recognize(self, image_bytes: bytes) -> Tuple[str, Optional[Exception]]:
        """
        Recognize the text in an encoded image.

        Args:
            image_bytes: Encoded image (JPEG or PNG)

        Returns:
            Tuple of (text, error). Lines are joined with newlines; on
            failure text is empty and error holds the cause.
        """
        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                img_array = np.array(image.convert('RGB'))
        except Exception as e:
            return "", RecognitionError(f"Unreadable cell image: {e}")

        try:
            with self._lock:
                if self.ocr is None:
                    self._initialize_ocr()
                result = self.ocr.ocr(img_array)
        except Exception as e:
            return "", RecognitionError(f"OCR failed: {e}")

        lines = parse_ocr_result(result)
        if not lines:
            return "", None
        return "\n".join(lines), None


class FieldExtractor:
    """Crops one cell out of the poster and reads its text."""

    def __init__(self, config: Config, engine):
        """
        Args:
            config: Configuration object
            engine: Any object exposing recognize(image_bytes) -> (text, error)
        """
        self.config = config
        self.engine = engine

    def extract(self, image: Image.Image, cell: CellDescriptor) -> str:
        """
        Recognize one cell.

        Failures never propagate: a degenerate cell, an engine error or an
        empty result all yield "".

        Args:
            image: Source poster image
            cell: Cell rectangle

        Returns:
            Recognized text, unnormalized
        """
        if cell.is_degenerate:
            logger.warning(f"Skipping degenerate cell {cell}")
            return ""

        cell_image = crop_image(image, cell.x, cell.y, cell.width, cell.height)
        try:
            payload = encode_image(cell_image, self.config.cell_format)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to encode cell {cell}: {e}")
            return ""

        text, error = self.engine.recognize(payload)
        if error is not None:
            logger.warning(f"Recognition failed for cell {cell}: {error}")
            return ""

        logger.debug(f"Cell {cell} read as {text!r}")
        return text or ""
