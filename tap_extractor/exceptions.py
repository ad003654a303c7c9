"""
Exceptions raised by the tap list extraction pipeline.
"""

from typing import Any, Optional


class TapListError(Exception):
    """Base exception for all tap list extraction errors."""

    def __init__(self, message: str, details: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} (Details: {details_str})"
        return self.message


class ConfigurationError(TapListError):
    """Raised when configuration values are invalid."""
    pass


class FetchError(TapListError):
    """Raised when the remote tap list image cannot be retrieved."""

    def __init__(self, message: str, url: Optional[str] = None,
                 status: Optional[int] = None, **kwargs: Any) -> None:
        details = kwargs
        if url:
            details["url"] = url
        if status is not None:
            details["status"] = status
        super().__init__(message, details)


class ImageDecodeError(TapListError):
    """Raised when the fetched body is not a readable image."""
    pass


class RecognitionError(TapListError):
    """Raised by the OCR wrapper when a cell cannot be recognized."""
    pass
