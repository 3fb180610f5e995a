"""Image reference discovery and resolution for captured HTML."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from .errors import SrcsetFormatError, UrlParseError
from .models import (
    ImageReference,
    InlineImage,
    ReferenceKind,
    RemoteImage,
    ResolvedDescriptor,
)

logger = logging.getLogger("web_capture")

INLINE_DATA_PREFIX = "data:"
SRCSET_ATTRIBUTES = ("data-srcset", "srcset")
SRCSET_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp")


def _srcset_value(img) -> Optional[str]:
    for attribute in SRCSET_ATTRIBUTES:
        value = img.get(attribute)
        if value and value.strip():
            return value
    return None


def find_image_references(html: str) -> List[ImageReference]:
    """Return one reference per image source and per candidate list in ``html``."""
    soup = BeautifulSoup(html, "html.parser")
    references: List[ImageReference] = []
    for img in soup.find_all("img"):
        src = img.get("src")
        if src and src.strip():
            src = src.strip()
            kind = (
                ReferenceKind.INLINE_DATA
                if src.startswith(INLINE_DATA_PREFIX)
                else ReferenceKind.URL
            )
            references.append(ImageReference(src, kind))
        srcset = _srcset_value(img)
        if srcset:
            references.append(ImageReference(srcset, ReferenceKind.SRCSET))
    return references


def ensure_absolute_url(url: str) -> str:
    """Validate that ``url`` parses and carries a scheme and a host."""
    try:
        parsed = urlparse(url)
        parsed.port  # raises ValueError on a malformed port
    except ValueError as exc:
        raise UrlParseError(url, str(exc)) from exc
    if not parsed.scheme:
        raise UrlParseError(url, "missing scheme")
    if not parsed.netloc and parsed.scheme != "file":
        raise UrlParseError(url, "missing host")
    return url


def resolve_url(base_url: str, src: str) -> str:
    """Join ``src`` against ``base_url`` with standard relative-URL rules."""
    ensure_absolute_url(base_url)
    try:
        joined = urljoin(base_url, src)
    except ValueError as exc:
        raise UrlParseError(src, str(exc)) from exc
    return ensure_absolute_url(joined)


def select_srcset_candidate(srcset: str) -> str:
    """Pick the last candidate of a responsive list that looks like an image.

    Candidate lists are usually written smallest first, so the last match is
    taken as the largest rendition. Nothing in HTML guarantees that ordering;
    this is a heuristic.
    """
    selected: Optional[str] = None
    for entry in srcset.split(","):
        tokens = entry.strip().split()
        if not tokens:
            continue
        candidate = tokens[0]
        try:
            path = urlparse(candidate).path
        except ValueError:
            logger.debug("Ignoring malformed srcset candidate %.80s", candidate)
            continue
        if path.lower().endswith(SRCSET_IMAGE_EXTENSIONS):
            selected = candidate
    if selected is None:
        raise SrcsetFormatError(srcset)
    return selected


def resolve_reference(reference: ImageReference, base_url: str) -> ResolvedDescriptor:
    """Turn a raw reference into a concrete fetch instruction."""
    if reference.kind is ReferenceKind.INLINE_DATA:
        return InlineImage(payload=reference.raw, reference=reference)
    if reference.kind is ReferenceKind.SRCSET:
        candidate = select_srcset_candidate(reference.raw)
        return RemoteImage(url=resolve_url(base_url, candidate), reference=reference)
    return RemoteImage(url=resolve_url(base_url, reference.raw), reference=reference)


def resolve_references(
    references: Iterable[ImageReference],
    base_url: str,
) -> List[ResolvedDescriptor]:
    """Resolve every reference, dropping the ones that cannot be resolved.

    An invalid ``base_url`` raises :class:`UrlParseError` since no reference
    could be resolved against it.
    """
    ensure_absolute_url(base_url)
    descriptors: List[ResolvedDescriptor] = []
    for reference in references:
        try:
            descriptors.append(resolve_reference(reference, base_url))
        except (UrlParseError, SrcsetFormatError) as exc:
            logger.warning("Skipping image reference %.80s: %s", reference.raw, exc)
    return descriptors
