"""Tap list extraction: serve the JSON API or print the list once."""
import argparse
import sys

from tap_extractor import Config, TapListPipeline
from tap_extractor.config import VARIANTS
from tap_extractor.exceptions import TapListError
from tap_extractor.utils import setup_logger, set_log_level


logger = setup_logger("tap_extractor.main")


def build_config(args):
    return Config.from_env(
        port=args.port,
        host=args.host,
        variant=args.variant,
        image_url=args.image_url,
        cell_workers=args.workers,
    )


def main(argv=None):
    parser = argparse.ArgumentParser(description="Read a draft-list poster into JSON tap records")
    parser.add_argument("--once", action="store_true", help="Build the tap list once, print it and exit.")
    parser.add_argument("--host", default=None, help="Host for the API server (default: $HOST or 0.0.0.0).")
    parser.add_argument("--port", type=int, default=None, help="Port for the API server (default: $PORT or 8080).")
    parser.add_argument("--variant", choices=sorted(VARIANTS), default=None,
                        help="Poster variant selecting grid thresholds and cell encoding.")
    parser.add_argument("--image-url", default=None, help="Poster URL; skips discovery from the draft list page.")
    parser.add_argument("-w", "--workers", type=int, default=None, help="Cells recognized concurrently per row.")

    args = parser.parse_args(argv)

    try:
        config = build_config(args)
        set_log_level(config.log_level)

        if args.once:
            document = TapListPipeline(config).get_document()
            sys.stdout.write(document.payload.decode("utf-8") + "\n")
            return 0

        from api import serve
        serve(config)
        return 0

    except TapListError as e:
        logger.error(f"ERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
