"""Image downloading and inline image decoding."""

from __future__ import annotations

import asyncio
import base64
import binascii
import contextlib
import logging
from typing import List, Optional, Sequence
from urllib.parse import urlparse

import requests

from .config import CaptureConfig
from .errors import (
    Base64DecodeError,
    Base64FormatError,
    FetchError,
    HttpStatusError,
)
from .models import FetchedAsset, InlineImage, RemoteImage, ResolvedDescriptor

logger = logging.getLogger("web_capture")

DEFAULT_IMAGE_FILENAME = "image"
DEFAULT_INLINE_EXTENSION = "img"


def filename_from_url(url: str) -> str:
    """Use the last non-empty path segment of ``url`` as the asset filename."""
    segments = [segment for segment in urlparse(url).path.split("/") if segment]
    if not segments or segments[-1] in (".", ".."):
        return DEFAULT_IMAGE_FILENAME
    return segments[-1]


def decode_data_url(payload: str) -> FetchedAsset:
    """Decode a ``data:<type>/<subtype>;base64,<body>`` image."""
    header, separator, body = payload.partition(",")
    if not separator:
        raise Base64FormatError()

    mime = header.split(";", 1)[0]
    if mime.startswith("data:"):
        mime = mime[len("data:"):]
    parts = mime.split("/")
    extension = parts[1].strip() if len(parts) > 1 else ""
    extension = extension or DEFAULT_INLINE_EXTENSION

    try:
        data = base64.b64decode(body.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise Base64DecodeError(f"Invalid Base64 image data: {exc}") from exc

    return FetchedAsset(data=data, filename=f"inline.{extension}", source=header)


class AssetFetcher:
    """Fetch or decode resolved image descriptors concurrently.

    Remote images are downloaded with a shared :class:`requests.Session` in
    worker threads. Responses are buffered fully in memory, which is fine for
    page images but would need streaming for very large files.
    """

    def __init__(
        self,
        config: CaptureConfig,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self._owns_session = session is None
        self.session = session or requests.Session()

    def close(self) -> None:
        """Close the HTTP session if this fetcher created it."""
        if self._owns_session:
            self.session.close()

    def fetch_remote(self, url: str) -> FetchedAsset:
        """Download ``url`` and wrap the body as an asset (blocking)."""
        try:
            resp = self.session.get(
                url,
                headers={"User-Agent": self.config.user_agent},
                timeout=self.config.fetch_timeout,
            )
        except requests.RequestException as exc:
            raise FetchError(url, str(exc)) from exc

        if not 200 <= resp.status_code < 300:
            raise HttpStatusError(resp.status_code, url)

        return FetchedAsset(
            data=resp.content,
            filename=filename_from_url(url),
            source=url,
        )

    async def fetch(self, descriptor: ResolvedDescriptor) -> FetchedAsset:
        """Produce the asset for a single descriptor."""
        if isinstance(descriptor, InlineImage):
            return decode_data_url(descriptor.payload)
        if isinstance(descriptor, RemoteImage):
            return await asyncio.to_thread(self.fetch_remote, descriptor.url)
        raise TypeError(f"Unsupported descriptor: {descriptor!r}")

    async def _fetch_limited(
        self,
        descriptor: ResolvedDescriptor,
        limiter: Optional[asyncio.Semaphore],
    ) -> FetchedAsset:
        async with limiter or contextlib.nullcontext():
            return await self.fetch(descriptor)

    async def fetch_all(
        self,
        descriptors: Sequence[ResolvedDescriptor],
    ) -> List[FetchedAsset]:
        """Fetch every descriptor and keep only the successful assets.

        A failing fetch is logged and dropped; it never cancels or fails its
        siblings.
        """
        if not descriptors:
            return []

        limit = self.config.max_concurrent_fetches
        limiter = asyncio.Semaphore(limit) if limit else None
        results = await asyncio.gather(
            *(self._fetch_limited(descriptor, limiter) for descriptor in descriptors),
            return_exceptions=True,
        )

        assets: List[FetchedAsset] = []
        for descriptor, result in zip(descriptors, results):
            if isinstance(result, Exception):
                logger.warning(
                    "Failed to fetch image %.80s: %s",
                    descriptor.reference.raw,
                    result,
                )
                continue
            if isinstance(result, BaseException):
                raise result
            logger.debug("Fetched %s (%d bytes)", result.filename, len(result.data))
            assets.append(result)
        logger.info("Fetched %d of %d image(s)", len(assets), len(descriptors))
        return assets
