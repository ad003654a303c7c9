"""
Configuration settings for the tap list extraction pipeline.
"""

from dataclasses import dataclass
from typing import Mapping, Optional
import os

from .exceptions import ConfigurationError


DEFAULT_PAGE_URL = "https://www.ajsbeerwarehouse.com/draft-list/"

# Grid-line policies observed in the two deployments of the tap list poster.
# They disagree, so both are kept and selected by name. Thresholds are on
# 8-bit channels; "sum" compares R+G+B, "red" compares the red channel only.
VARIANTS = {
    "jpeg": {
        "x_offset": 3,
        "y_offset": 2,
        "vertical_line_metric": "sum",
        "vertical_line_threshold": 12,
        "horizontal_line_metric": "red",
        "horizontal_line_threshold": 20,
        "cell_format": "JPEG",
    },
    "png": {
        "x_offset": 3,
        "y_offset": 2,
        "vertical_line_metric": "sum",
        "vertical_line_threshold": 1,
        "horizontal_line_metric": "sum",
        "horizontal_line_threshold": 1,
        "cell_format": "PNG",
    },
}

LINE_METRICS = ("sum", "red")
CELL_FORMATS = ("JPEG", "PNG")


@dataclass
class Config:
    """Central configuration for the tap list pipeline."""

    # Deployment variant; unset grid/encoding fields are taken from it
    variant: str = "jpeg"

    # Remote image source
    page_url: str = DEFAULT_PAGE_URL
    image_url: Optional[str] = None
    http_timeout: float = 30.0

    # Grid detection
    x_offset: Optional[int] = None
    y_offset: Optional[int] = None
    vertical_line_metric: Optional[str] = None
    vertical_line_threshold: Optional[int] = None
    horizontal_line_metric: Optional[str] = None
    horizontal_line_threshold: Optional[int] = None

    # Cell extraction
    cell_format: Optional[str] = None
    cell_workers: int = 1

    # PaddleOCR settings
    ocr_lang: str = "en"

    # Output
    json_indent: int = 2

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    warm_on_start: bool = True
    log_level: str = "INFO"

    def __post_init__(self):
        """Fill variant defaults and validate."""
        if self.variant not in VARIANTS:
            raise ConfigurationError(
                f"Unknown variant '{self.variant}'",
                {"known": ", ".join(sorted(VARIANTS))}
            )
        for name, value in VARIANTS[self.variant].items():
            if getattr(self, name) is None:
                setattr(self, name, value)

        if self.x_offset < 0 or self.y_offset < 0:
            raise ConfigurationError("Grid offsets must be non-negative")
        for metric in (self.vertical_line_metric, self.horizontal_line_metric):
            if metric not in LINE_METRICS:
                raise ConfigurationError(f"Unknown line metric '{metric}'")
        if self.vertical_line_threshold < 0 or self.horizontal_line_threshold < 0:
            raise ConfigurationError("Line thresholds must be non-negative")
        self.cell_format = self.cell_format.upper()
        if self.cell_format not in CELL_FORMATS:
            raise ConfigurationError(f"Unsupported cell format '{self.cell_format}'")
        if self.cell_workers < 1:
            raise ConfigurationError("cell_workers must be at least 1")
        if not 1 <= self.port <= 65535:
            raise ConfigurationError(f"Port out of range: {self.port}")
        if self.http_timeout <= 0:
            raise ConfigurationError("http_timeout must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "Config":
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)
            **overrides: Explicit values that win over the environment

        Returns:
            Validated Config instance
        """
        env = os.environ if environ is None else environ
        values = {}

        try:
            if env.get("PORT"):
                values["port"] = int(env["PORT"])
            if env.get("TAP_LIST_HTTP_TIMEOUT"):
                values["http_timeout"] = float(env["TAP_LIST_HTTP_TIMEOUT"])
            if env.get("TAP_LIST_CELL_WORKERS"):
                values["cell_workers"] = int(env["TAP_LIST_CELL_WORKERS"])
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        if env.get("HOST"):
            values["host"] = env["HOST"]
        if env.get("TAP_LIST_VARIANT"):
            values["variant"] = env["TAP_LIST_VARIANT"].lower()
        if env.get("TAP_LIST_PAGE_URL"):
            values["page_url"] = env["TAP_LIST_PAGE_URL"]
        if env.get("TAP_LIST_IMAGE_URL"):
            values["image_url"] = env["TAP_LIST_IMAGE_URL"]
        if env.get("TAP_LIST_OCR_LANG"):
            values["ocr_lang"] = env["TAP_LIST_OCR_LANG"]
        if env.get("TAP_LIST_LOG_LEVEL"):
            values["log_level"] = env["TAP_LIST_LOG_LEVEL"].upper()

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


# Default configuration instance
DEFAULT_CONFIG = Config()
