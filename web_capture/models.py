"""Data models used throughout the capture pipeline."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Tuple, Union


class ReferenceKind(enum.Enum):
    """How an image reference found in the markup must be resolved."""

    INLINE_DATA = "inline_data"
    URL = "url"
    SRCSET = "srcset"


@dataclass(frozen=True)
class ImageReference:
    """Raw image reference discovered while scanning page markup."""

    raw: str
    kind: ReferenceKind


@dataclass(frozen=True)
class InlineImage:
    """Instruction to decode an image embedded as a data URL."""

    payload: str
    reference: ImageReference


@dataclass(frozen=True)
class RemoteImage:
    """Instruction to download an image from an absolute URL."""

    url: str
    reference: ImageReference


ResolvedDescriptor = Union[InlineImage, RemoteImage]


@dataclass(frozen=True)
class FetchedAsset:
    """Image bytes ready to be written under the bundle's images directory."""

    data: bytes = field(repr=False)
    filename: str
    source: str


@dataclass(frozen=True)
class PageSnapshot:
    """An already loaded page as handed over by the page source."""

    url: str
    title: str
    html: str


@dataclass(frozen=True)
class CaptureMetadata:
    """Summary record persisted as ``informations.json``."""

    url: str
    title: str
    date: str
    nb_md_words: int
    nb_images: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "CaptureMetadata":
        return cls(
            url=str(payload["url"]),
            title=str(payload["title"]),
            date=str(payload["date"]),
            nb_md_words=int(payload["nb_md_words"]),
            nb_images=int(payload["nb_images"]),
        )


@dataclass(frozen=True)
class CaptureBundle:
    """Every artifact collected for one captured page."""

    url: str
    title: str
    date: str
    html: str = field(repr=False)
    markdown: str = field(repr=False)
    assets: Tuple[FetchedAsset, ...]
    metadata: CaptureMetadata
