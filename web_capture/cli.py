"""Command-line entry point for the page capture tool."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence

from .config import CaptureConfig, DEFAULT_MARKDOWN_FORMAT
from .crawler import PlaywrightPageSource, capture_url
from .errors import CaptureError
from .markdown import PandocMarkdownConverter

logger = logging.getLogger("web_capture.cli")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Capture a web page as HTML, pandoc Markdown, metadata JSON and images."
        ),
    )
    parser.add_argument("url", help="URL of the page to capture")
    parser.add_argument(
        "output_dir",
        nargs="?",
        type=Path,
        default=None,
        help="Directory to create for the capture (defaults to one named after the page title)",
    )
    parser.add_argument(
        "--output-root",
        default=".",
        type=Path,
        help="Parent directory used when no output directory is given",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=1.0,
        help="Seconds to wait after network idle before reading HTML",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Navigation timeout in seconds",
    )
    parser.add_argument(
        "--fetch-timeout",
        type=float,
        default=15.0,
        help="Timeout in seconds for each image download",
    )
    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=8,
        help="Maximum simultaneous image downloads (0 for no limit)",
    )
    parser.add_argument(
        "--format",
        default=DEFAULT_MARKDOWN_FORMAT,
        help="Pandoc output format used for the Markdown file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args(argv)
    if args.max_concurrency < 0:
        parser.error("--max-concurrency must be 0 or a positive integer")
    return args


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    config = CaptureConfig(
        output_root=Path(args.output_root).resolve(),
        wait_after_load=args.wait,
        navigation_timeout=args.timeout,
        fetch_timeout=args.fetch_timeout,
        max_concurrent_fetches=args.max_concurrency or None,
        markdown_format=args.format,
    )

    try:
        result = asyncio.run(
            capture_url(
                args.url,
                config,
                page_source=PlaywrightPageSource(config),
                converter=PandocMarkdownConverter(config.markdown_format),
                output_dir=args.output_dir,
            )
        )
    except CaptureError as exc:
        logger.error("Capture of %s failed: %s", args.url, exc)
        return 1

    logger.info(
        "Finished in %.2fs: %d words, %d images -> %s",
        result.total_seconds,
        result.bundle.metadata.nb_md_words,
        result.bundle.metadata.nb_images,
        result.output_dir,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
