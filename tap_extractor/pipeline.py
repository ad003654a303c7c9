"""
Main tap list pipeline orchestrating all components.
"""

from dataclasses import dataclass
from typing import List, Optional
import json
import threading
import time

from PIL import Image

from .config import Config, DEFAULT_CONFIG
from .utils import setup_logger
from .image_loader import RemoteImageSource, decode_image
from .grid_detector import GridDetector
from .cell_segmenter import segment_cells
from .ocr_engine import OCREngine, FieldExtractor
from .record_assembler import Record, RecordAssembler, data_rows
from .exceptions import FetchError, ImageDecodeError


logger = setup_logger(__name__)


@dataclass(frozen=True)
class CachedDocument:
    """Serialized tap list together with the image version it came from."""
    fingerprint: str
    payload: bytes
    record_count: int = 0


class DocumentCache:
    """Holds the latest document; replacement is a single atomic swap."""

    def __init__(self):
        self._lock = threading.Lock()
        self._document: Optional[CachedDocument] = None

    def get(self) -> Optional[CachedDocument]:
        with self._lock:
            return self._document

    def swap(self, document: CachedDocument) -> Optional[CachedDocument]:
        """Install a new document and return the one it replaced."""
        with self._lock:
            previous, self._document = self._document, document
        return previous

    def is_fresh_for(self, fingerprint: Optional[str]) -> bool:
        """True when the cached document was built from this fingerprint."""
        document = self.get()
        return fingerprint is not None and document is not None and document.fingerprint == fingerprint


class TapListPipeline:
    """
    Complete pipeline turning the tap list poster into a JSON document.

    This pipeline:
    1. Checks the poster fingerprint against the cached document
    2. Fetches and decodes the poster when it changed
    3. Detects grid lines
    4. Segments the grid into cells
    5. Reads each data row into a record
    6. Serializes and caches the records
    """

    def __init__(self, config: Optional[Config] = None, source=None, engine=None,
                 cache: Optional[DocumentCache] = None):
        """
        Initialize pipeline.

        Args:
            config: Configuration object (uses DEFAULT_CONFIG if None)
            source: Image source exposing fingerprint() and fetch()
            engine: Recognition engine exposing recognize(image_bytes)
            cache: Document cache shared with the caller
        """
        self.config = config or DEFAULT_CONFIG
        self.source = source or RemoteImageSource(self.config)
        self.engine = engine or OCREngine(self.config)
        self.cache = cache or DocumentCache()

        self.grid_detector = GridDetector(self.config)
        self.field_extractor = FieldExtractor(self.config, self.engine)
        self.assembler = RecordAssembler(self.field_extractor, workers=self.config.cell_workers)
        self._refresh_lock = threading.Lock()

        logger.info(
            f"Variant '{self.config.variant}': offsets=({self.config.x_offset}, {self.config.y_offset}), "
            f"vertical {self.config.vertical_line_metric}<{self.config.vertical_line_threshold}, "
            f"horizontal {self.config.horizontal_line_metric}<{self.config.horizontal_line_threshold}, "
            f"cells encoded as {self.config.cell_format}"
        )

    def run(self, image: Image.Image) -> List[Record]:
        """
        Extract the records of a decoded poster.

        Args:
            image: PIL Image of the poster

        Returns:
            One record per data row, numbered from 1
        """
        grid = self.grid_detector.detect(image)
        rows = data_rows(segment_cells(grid))

        if not rows:
            logger.warning("No data rows found in image")
            return []

        records = []
        for tap_number, row in enumerate(rows, 1):
            records.append(self.assembler.assemble(tap_number, row, image))
            logger.debug(f"Assembled tap {tap_number}/{len(rows)}")

        logger.info(f"Assembled {len(records)} record(s)")
        return records

    def serialize(self, records: List[Record]) -> bytes:
        """Encode records as an indented JSON array."""
        return json.dumps(
            [record.to_dict() for record in records],
            indent=self.config.json_indent,
            ensure_ascii=False,
        ).encode("utf-8")

    def get_document(self) -> CachedDocument:
        """
        Return the tap list document, rebuilding it when the poster changed.

        Concurrent callers wait for an in-flight rebuild and then see its
        result. A failed fetch or decode keeps serving the previous document.

        Raises:
            FetchError: If the poster cannot be fetched and nothing is cached
            ImageDecodeError: If the poster is unreadable and nothing is cached
        """
        with self._refresh_lock:
            current = self.cache.get()

            try:
                probed = self.source.fingerprint()
            except FetchError as e:
                logger.warning(f"Fingerprint check failed, downloading image instead: {e}")
                probed = None

            if self.cache.is_fresh_for(probed):
                logger.debug("Fingerprint unchanged, serving cached document")
                return current

            try:
                data, fingerprint = self.source.fetch()
                if self.cache.is_fresh_for(fingerprint):
                    logger.debug("Fetched image unchanged, serving cached document")
                    return current

                logger.info(f"Image fingerprint changed to {fingerprint}, rebuilding tap list")
                image = decode_image(data)
            except (FetchError, ImageDecodeError) as e:
                if current is None:
                    logger.error(f"Refresh failed with no cached document: {e}")
                    raise
                logger.warning(f"Refresh failed, serving previous document: {e}")
                return current

            t0 = time.perf_counter()
            records = self.run(image)
            document = CachedDocument(
                fingerprint=fingerprint,
                payload=self.serialize(records),
                record_count=len(records),
            )
            self.cache.swap(document)
            logger.info(f"Tap list rebuilt in {time.perf_counter() - t0:.2f}s")
            return document
