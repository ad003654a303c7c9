"""Tests for the OCR wrapper and per-cell field extraction."""

import io

from PIL import Image

from tap_extractor.cell_segmenter import CellDescriptor
from tap_extractor.config import Config
from tap_extractor.exceptions import RecognitionError
from tap_extractor.ocr_engine import FieldExtractor, OCREngine, parse_ocr_result
from tap_extractor.utils import encode_image

from conftest import FakeEngine


class FakePaddle:
    """Stands in for a loaded PaddleOCR model."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.shapes = []

    def ocr(self, img_array):
        self.shapes.append(img_array.shape)
        if self.error:
            raise self.error
        return self.result


def cell_bytes(width=20, height=10):
    return encode_image(Image.new("RGB", (width, height), (255, 255, 255)), "PNG")


def test_parse_legacy_result():
    result = [[
        [[[0, 0], [1, 0], [1, 1], [0, 1]], ("Acme", 0.98)],
        [[[0, 2], [1, 2], [1, 3], [0, 3]], ("Brewing", 0.91)],
    ]]
    assert parse_ocr_result(result) == ["Acme", "Brewing"]


def test_parse_predict_result():
    result = [{"rec_texts": ["7.5%"], "rec_scores": [0.9]}]
    assert parse_ocr_result(result) == ["7.5%"]


def test_parse_empty_results():
    assert parse_ocr_result(None) == []
    assert parse_ocr_result([]) == []
    assert parse_ocr_result([None]) == []


def test_recognize_joins_lines():
    engine = OCREngine(Config())
    engine.ocr = FakePaddle([[
        [None, ("Double", 0.9)],
        [None, ("IPA", 0.9)],
    ]])

    text, error = engine.recognize(cell_bytes(30, 12))

    assert (text, error) == ("Double\nIPA", None)
    assert engine.ocr.shapes == [(12, 30, 3)]


def test_recognize_reports_engine_error():
    engine = OCREngine(Config())
    engine.ocr = FakePaddle(error=RuntimeError("model crashed"))

    text, error = engine.recognize(cell_bytes())

    assert text == ""
    assert isinstance(error, RecognitionError)
    assert "model crashed" in str(error)


def test_recognize_reports_unreadable_bytes():
    engine = OCREngine(Config())
    engine.ocr = FakePaddle([])

    text, error = engine.recognize(b"not an image")

    assert text == ""
    assert isinstance(error, RecognitionError)
    assert engine.ocr.shapes == []


def test_recognize_nothing_found_is_empty_without_error():
    engine = OCREngine(Config())
    engine.ocr = FakePaddle([[]])
    assert engine.recognize(cell_bytes()) == ("", None)


def test_extractor_crops_cell_extent(poster_image):
    engine = FakeEngine({24: "Acme"})
    extractor = FieldExtractor(Config(), engine)

    text = extractor.extract(poster_image, CellDescriptor(x=21, y=31, width=24, height=39))

    assert text == "Acme"
    assert engine.calls == [(24, 39)]


def test_extractor_leaves_source_untouched(poster_image):
    before = poster_image.tobytes()
    FieldExtractor(Config(), FakeEngine()).extract(poster_image, CellDescriptor(1, 1, 10, 10))
    assert poster_image.tobytes() == before


def test_extractor_encodes_with_variant_format(poster_image):
    seen = []

    class Recorder:
        def recognize(self, image_bytes):
            seen.append(Image.open(io.BytesIO(image_bytes)).format)
            return "x", None

    cell = CellDescriptor(1, 1, 10, 10)
    FieldExtractor(Config(variant="jpeg"), Recorder()).extract(poster_image, cell)
    FieldExtractor(Config(variant="png"), Recorder()).extract(poster_image, cell)

    assert seen == ["JPEG", "PNG"]


def test_extractor_swallows_recognition_failure(poster_image):
    engine = FakeEngine({24: "Acme"}, errors=[24])
    extractor = FieldExtractor(Config(), engine)
    assert extractor.extract(poster_image, CellDescriptor(21, 31, 24, 39)) == ""


def test_extractor_skips_degenerate_cell(poster_image):
    engine = FakeEngine()
    extractor = FieldExtractor(Config(), engine)

    assert extractor.extract(poster_image, CellDescriptor(x=21, y=31, width=0, height=39)) == ""
    assert engine.calls == []
