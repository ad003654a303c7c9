"""
Tap List Extraction from a draft-list poster image.

Rebuilds the poster's table grid from pixel geometry, reads each cell with
PaddleOCR and publishes the taps as a JSON document.
"""

from .config import Config, DEFAULT_CONFIG
from .pipeline import TapListPipeline, DocumentCache, CachedDocument
from .record_assembler import Record

__version__ = "1.0.0"
__all__ = ["Config", "DEFAULT_CONFIG", "TapListPipeline", "DocumentCache", "CachedDocument", "Record"]
