"""High-level orchestration for loading pages and capturing them to disk."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import urlparse

from playwright.async_api import (
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .bundle import assemble_bundle
from .config import CaptureConfig
from .content import ensure_absolute_url
from .errors import PageLoadError
from .images import AssetFetcher
from .markdown import MarkdownConverter
from .models import CaptureBundle, PageSnapshot
from .storage import write_bundle
from .utils import slugify

logger = logging.getLogger("web_capture")


@dataclass
class CaptureResult:
    """Outcome and timing of a captured URL."""

    bundle: CaptureBundle
    output_dir: Path
    total_seconds: float


class PageSource(Protocol):
    """Provider of already loaded page snapshots."""

    async def load(self, url: str) -> PageSnapshot:
        ...


class PlaywrightPageSource:
    """Load pages in headless Chromium and snapshot their rendered HTML."""

    def __init__(self, config: CaptureConfig) -> None:
        self.config = config

    async def load(self, url: str) -> PageSnapshot:
        try:
            async with async_playwright() as playwright:
                browser = await playwright.chromium.launch(headless=True)
                page = await browser.new_page(user_agent=self.config.user_agent)
                page.set_default_navigation_timeout(self.config.navigation_timeout * 1000)
                try:
                    logger.info("Loading %s", url)
                    await page.goto(url, wait_until="networkidle")
                    if self.config.wait_after_load:
                        await page.wait_for_timeout(int(self.config.wait_after_load * 1000))
                    html = await page.content()
                    title = await page.title()
                    final_url = page.url
                finally:
                    await browser.close()
        except PlaywrightTimeoutError as exc:
            raise PageLoadError(url, f"timed out: {exc}") from exc
        except PlaywrightError as exc:
            raise PageLoadError(url, str(exc)) from exc
        return PageSnapshot(url=final_url, title=title, html=html)


def build_output_dir(config: CaptureConfig, snapshot: PageSnapshot) -> Path:
    """Derive a bundle directory from the page title, or its host when untitled."""
    host = urlparse(snapshot.url).netloc
    name = slugify(snapshot.title or host or "page")
    return config.output_root / name[:80]


async def capture_url(
    url: str,
    config: CaptureConfig,
    page_source: PageSource,
    converter: MarkdownConverter,
    fetcher: Optional[AssetFetcher] = None,
    output_dir: Optional[Path] = None,
) -> CaptureResult:
    """Load ``url``, assemble its bundle and write it to disk."""
    start = time.perf_counter()
    ensure_absolute_url(url)
    snapshot = await page_source.load(url)
    owned_fetcher = fetcher is None
    fetcher = fetcher or AssetFetcher(config)
    try:
        bundle = await assemble_bundle(snapshot, converter, fetcher)
    finally:
        if owned_fetcher:
            fetcher.close()

    target = Path(output_dir) if output_dir else build_output_dir(config, snapshot)
    await write_bundle(bundle, target)

    elapsed = time.perf_counter() - start
    logger.debug(
        "Captured %s in %.2fs (%d words, %d images)",
        snapshot.url,
        elapsed,
        bundle.metadata.nb_md_words,
        bundle.metadata.nb_images,
    )
    return CaptureResult(bundle=bundle, output_dir=target, total_seconds=elapsed)
