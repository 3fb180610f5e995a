"""Exception hierarchy raised by the capture pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class CaptureError(Exception):
    """Base class for every error raised while capturing a page."""


class UrlParseError(CaptureError):
    """A base address or joined image address is not a usable absolute URL."""

    def __init__(self, url: str, reason: str = "not an absolute URL") -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Cannot parse URL {url!r}: {reason}")


class SrcsetFormatError(CaptureError):
    """No candidate in a responsive image list points at a supported image."""

    def __init__(self, srcset: str) -> None:
        self.srcset = srcset
        super().__init__(f"No image candidate found in srcset {srcset!r}")


class FetchError(CaptureError):
    """Transport-level failure while downloading an image."""

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(f"Failed to fetch {url}: {message}")


class HttpStatusError(FetchError):
    """The server answered an image request with a non-2xx status."""

    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        super().__init__(url, f"HTTP status {status_code}")


class Base64FormatError(CaptureError):
    """An inline data URL has no comma between its header and body."""

    def __init__(self) -> None:
        super().__init__("Inline data URL is missing the ',' separator")


class Base64DecodeError(CaptureError):
    """The body of an inline data URL is not valid standard Base64."""


class ConversionError(CaptureError):
    """The external markup converter failed."""


class PathExistsError(CaptureError):
    """The bundle output path is already present on disk."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Output path already exists: {path}")


class StorageError(CaptureError):
    """Writing part of a bundle to disk failed."""

    def __init__(self, path: Path, cause: Optional[BaseException] = None) -> None:
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to write {path}{detail}")


class PageLoadError(CaptureError):
    """The browser could not load the requested page."""

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(f"Failed to load {url}: {message}")
