"""
Pytest configuration and shared fixtures for tap list tests.

Provides synthetic poster images, a fake image source and a fake
recognition engine so no test touches the network or an OCR model.
"""

import io
from typing import Dict, Optional, Sequence

import numpy as np
import pytest
from PIL import Image

from tap_extractor.config import Config
from tap_extractor.utils import encode_image


# Vertical lines of an 8-column poster. Every column has a distinct width so
# the fake engine can tell cells apart from the crop alone.
POSTER_X_LINES = (20, 45, 75, 110, 150, 195, 245, 300)
# Header, one tap, footer
POSTER_Y_LINES = (30, 70, 100)

# Cell width -> recognized text for the tap row
POSTER_TEXTS = {
    24: "**Acme\nBrewing\n",
    29: "Hop Bomb\n",
    34: "Double\nIPA",
    39: "Portland, OR",
    44: "75%\n",
    49: "$ 12",
    54: "$ 24",
}


def draw_grid(x_lines: Sequence[int], y_lines: Sequence[int],
              width: int = 320, height: int = 120,
              color=(0, 0, 0), background=(255, 255, 255)) -> Image.Image:
    """Create a poster with full-length grid lines."""
    pixels = np.empty((height, width, 3), dtype=np.uint8)
    pixels[:, :] = background
    for x in x_lines:
        pixels[:, x] = color
    for y in y_lines:
        pixels[y, :] = color
    return Image.fromarray(pixels)


class FakeEngine:
    """Recognition engine answering by crop width."""

    def __init__(self, texts: Optional[Dict[int, str]] = None, errors: Sequence[int] = ()):
        self.texts = texts or {}
        self.errors = set(errors)
        self.calls = []

    def recognize(self, image_bytes):
        with Image.open(io.BytesIO(image_bytes)) as image:
            size = image.size
        self.calls.append(size)
        if size[0] in self.errors:
            return "", RuntimeError(f"engine failed on width {size[0]}")
        return self.texts.get(size[0], ""), None


class FakeSource:
    """Image source serving a fixed image and counting calls."""

    def __init__(self, data: bytes, fingerprint: Optional[str] = "etag-1", probe: bool = True):
        self.data = data
        self.etag = fingerprint
        self.probe = probe
        self.fingerprint_calls = 0
        self.fetch_calls = 0
        self.error = None
        self.probe_error = None

    def fingerprint(self):
        self.fingerprint_calls += 1
        if self.error or self.probe_error:
            raise self.error or self.probe_error
        return self.etag if self.probe else None

    def fetch(self):
        self.fetch_calls += 1
        if self.error:
            raise self.error
        return self.data, self.etag


@pytest.fixture
def config() -> Config:
    """Default configuration without server warm-up."""
    return Config(warm_on_start=False)


@pytest.fixture
def poster_image() -> Image.Image:
    """Three-row, eight-column poster."""
    return draw_grid(POSTER_X_LINES, POSTER_Y_LINES)


@pytest.fixture
def poster_bytes(poster_image: Image.Image) -> bytes:
    """The poster as PNG bytes, so line pixels stay exactly black."""
    return encode_image(poster_image, "PNG")


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine(POSTER_TEXTS)


@pytest.fixture
def source(poster_bytes: bytes) -> FakeSource:
    return FakeSource(poster_bytes)
