"""
Remote tap list image retrieval and decoding.
"""

from typing import Optional, Tuple
import hashlib
import io
import re

import requests
from PIL import Image

from .utils import setup_logger
from .config import Config
from .exceptions import FetchError, ImageDecodeError


logger = setup_logger(__name__)

# srcset entries look like "https://host/list-1024x1536.jpg 1024w, https://host/list.jpg 2048w"
SRCSET_PATTERN = re.compile(r"w,\s([^\s]+)\s")


class RemoteImageSource:
    """Retrieves the tap list poster and its version fingerprint over HTTP."""

    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        """
        Initialize image source.

        Args:
            config: Configuration object
            session: Optional requests session to reuse
        """
        self.config = config
        self.session = session or requests.Session()
        self.timeout = config.http_timeout
        # URL found by the last fingerprint() call, consumed by the next fetch()
        self._resolved_url: Optional[str] = None

    def _get(self, url: str, method: str = "GET") -> requests.Response:
        try:
            response = self.session.request(method, url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(f"Request failed: {e}", url=url) from e

        if not 200 <= response.status_code < 300:
            raise FetchError("Unexpected response status", url=url,
                             status=response.status_code)
        return response

    def resolve_image_url(self) -> str:
        """
        Find the poster URL.

        Uses the configured image URL when present, otherwise scrapes the
        largest srcset rendition from the draft list page.

        Raises:
            FetchError: If the page cannot be fetched or lists no image
        """
        if self.config.image_url:
            return self.config.image_url

        page = self._get(self.config.page_url)
        matches = SRCSET_PATTERN.findall(page.text)
        if not matches:
            raise FetchError("No image URL found on page", url=self.config.page_url)

        image_url = matches[-1]
        logger.info(f"Found image URL: {image_url}")
        return image_url

    def fingerprint(self) -> Optional[str]:
        """
        Ask the server for the current image ETag without downloading it.

        Returns:
            ETag string, or None when the server does not send one
        """
        self._resolved_url = None
        self._resolved_url = self.resolve_image_url()
        response = self._get(self._resolved_url, method="HEAD")
        return response.headers.get("ETag")

    def fetch(self) -> Tuple[bytes, str]:
        """
        Download the poster.

        Returns:
            Tuple of (image bytes, fingerprint). The fingerprint is the ETag,
            or a SHA-256 digest of the body when no ETag is sent.
        """
        image_url, self._resolved_url = self._resolved_url, None
        if image_url is None:
            image_url = self.resolve_image_url()
        response = self._get(image_url)
        content = response.content

        fingerprint = response.headers.get("ETag")
        if not fingerprint:
            fingerprint = hashlib.sha256(content).hexdigest()
            logger.debug("No ETag sent, using content digest as fingerprint")

        logger.info(f"Fetched {len(content)} bytes from {image_url}")
        return content, fingerprint


def decode_image(data: bytes) -> Image.Image:
    """
    Decode raw image bytes into an RGB image.

    Raises:
        ImageDecodeError: If the bytes are not a readable image
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except Exception as e:
        raise ImageDecodeError(f"Failed to decode image: {e}",
                               {"size": len(data)}) from e

    if image.mode != 'RGB':
        logger.info(f"Converting image from {image.mode} to RGB")
        image = image.convert('RGB')

    logger.info(f"Successfully decoded image with size {image.size}")
    return image
