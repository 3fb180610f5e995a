"""Assembly of a capture bundle from a loaded page."""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from typing import Optional

from .content import find_image_references, resolve_references
from .images import AssetFetcher
from .markdown import MarkdownConverter
from .models import CaptureBundle, CaptureMetadata, PageSnapshot

logger = logging.getLogger("web_capture")


def count_words(text: str) -> int:
    """Count whitespace-delimited tokens."""
    return len(text.split())


def capture_date() -> str:
    return dt.date.today().isoformat()


async def assemble_bundle(
    snapshot: PageSnapshot,
    converter: MarkdownConverter,
    fetcher: AssetFetcher,
    date: Optional[str] = None,
) -> CaptureBundle:
    """Convert the page and fetch its images concurrently, then build the bundle.

    Both the conversion and every image fetch settle before anything else
    happens. A conversion failure is re-raised afterwards; image failures were
    already dropped by the fetcher.
    """
    references = find_image_references(snapshot.html)
    descriptors = resolve_references(references, snapshot.url)
    logger.debug(
        "Resolved %d of %d image reference(s) on %s",
        len(descriptors),
        len(references),
        snapshot.url,
    )

    markdown, assets = await asyncio.gather(
        converter.convert(snapshot.html),
        fetcher.fetch_all(descriptors),
        return_exceptions=True,
    )
    if isinstance(markdown, BaseException):
        raise markdown
    if isinstance(assets, BaseException):
        raise assets

    metadata = CaptureMetadata(
        url=snapshot.url,
        title=snapshot.title,
        date=date or capture_date(),
        nb_md_words=count_words(markdown),
        nb_images=len(assets),
    )
    return CaptureBundle(
        url=snapshot.url,
        title=snapshot.title,
        date=metadata.date,
        html=snapshot.html,
        markdown=markdown,
        assets=tuple(assets),
        metadata=metadata,
    )
