"""
Assembly of recognized cell text into tap records.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple
import re

from .utils import setup_logger


logger = setup_logger(__name__)

PROMO_MARKER = "**"

LINE_BREAKS = re.compile(r"\s*\n\s*")
WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Record:
    """One tap of the draft list."""
    sequence_number: int
    supplier: str = ""
    item_name: str = ""
    category: str = ""
    origin: str = ""
    strength: str = ""
    price_small: str = ""
    price_large: str = ""
    promoted: bool = False

    def to_dict(self) -> dict:
        """Serialize with the published JSON field names."""
        return {
            "TapNumber": self.sequence_number,
            "Brewery": self.supplier,
            "Name": self.item_name,
            "Style": self.category,
            "Location": self.origin,
            "ABV": self.strength,
            "CrowlerPrice": self.price_small,
            "GrowlerPrice": self.price_large,
            "OnSale": self.promoted,
        }


def collapse_line_breaks(text: str) -> str:
    return LINE_BREAKS.sub(" ", text.strip())


def strip_whitespace(text: str) -> str:
    return WHITESPACE.sub("", text)


def correct_decimal(text: str) -> str:
    """
    Restore a decimal point the OCR dropped from a percentage.

    ``"75%"`` is read back as ``"7.5%"``: when the third character from the
    end is not a point, one is inserted before the last two characters.
    Text shorter than three characters is returned unchanged.
    """
    text = text.strip()
    if len(text) < 3 or text[-3] == ".":
        return text
    return text[:-2] + "." + text[-2:]


def _supplier(text: str) -> Dict[str, object]:
    text = text.strip()
    promoted = text.startswith(PROMO_MARKER)
    if promoted:
        text = text[len(PROMO_MARKER):]
    return {"supplier": collapse_line_breaks(text), "promoted": promoted}


def _text_field(name: str) -> Callable[[str], Dict[str, object]]:
    return lambda text: {name: collapse_line_breaks(text)}


# Column index (after the tap number column) -> field setter
FIELD_TABLE: Tuple[Tuple[str, Callable[[str], Dict[str, object]]], ...] = (
    ("supplier", _supplier),
    ("item_name", _text_field("item_name")),
    ("category", _text_field("category")),
    ("origin", _text_field("origin")),
    ("strength", lambda text: {"strength": correct_decimal(text)}),
    ("price_small", lambda text: {"price_small": strip_whitespace(text)}),
    ("price_large", lambda text: {"price_large": strip_whitespace(text)}),
)


def assemble_record(sequence_number: int, texts: Sequence[str]) -> Record:
    """
    Build a record from a row's cell texts.

    Args:
        sequence_number: Tap number for the row
        texts: Recognized text of each cell after the tap number column,
            in column order. Extra columns are ignored and missing ones
            leave their fields at the default.

    Returns:
        Record with normalized fields
    """
    fields: Dict[str, object] = {}
    for index, text in enumerate(texts[:len(FIELD_TABLE)]):
        if not text or not text.strip():
            logger.debug(f"Tap {sequence_number}: empty {FIELD_TABLE[index][0]}")
            continue
        _, setter = FIELD_TABLE[index]
        fields.update(setter(text))

    if len(texts) > len(FIELD_TABLE):
        logger.debug(f"Tap {sequence_number}: ignoring {len(texts) - len(FIELD_TABLE)} extra column(s)")

    return Record(sequence_number=sequence_number, **fields)


def data_rows(rows: List[list]) -> List[list]:
    """Drop the header and footer rows; fewer than two rows leaves nothing."""
    if len(rows) < 2:
        return []
    return rows[1:-1]


class RecordAssembler:
    """Reads the cells of a data row and assembles its record."""

    def __init__(self, extractor, workers: int = 1):
        """
        Args:
            extractor: FieldExtractor used to read each cell
            workers: Number of cells read concurrently within a row
        """
        self.extractor = extractor
        self.workers = workers

    def read_cells(self, image, cells: Sequence) -> List[str]:
        """Recognize cells, returning texts in column order."""
        if self.workers <= 1 or len(cells) <= 1:
            return [self.extractor.extract(image, cell) for cell in cells]

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            return list(pool.map(lambda cell: self.extractor.extract(image, cell), cells))

    def assemble(self, sequence_number: int, row: Sequence, image) -> Record:
        """
        Build the record for one data row.

        Args:
            sequence_number: Tap number for the row
            row: Cells of the row, tap number column included
            image: Source poster image

        Returns:
            Assembled Record
        """
        texts = self.read_cells(image, row[1:])
        return assemble_record(sequence_number, texts)
