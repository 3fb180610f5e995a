"""Persisting capture bundles as a directory of artifacts."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Awaitable, List, Sequence

from .errors import PathExistsError, StorageError
from .models import CaptureBundle, CaptureMetadata, FetchedAsset
from .utils import safe_filename

logger = logging.getLogger("web_capture")

METADATA_FILENAME = "informations.json"
IMAGES_DIRNAME = "images"


def _write_bytes(path: Path, data: bytes) -> None:
    try:
        path.write_bytes(data)
    except OSError as exc:
        raise StorageError(path, exc) from exc


async def _write_file(path: Path, data: bytes) -> None:
    await asyncio.to_thread(_write_bytes, path, data)


async def _join_writes(writes: Sequence[Awaitable[None]]) -> None:
    """Run every write to completion, then raise the first failure if any."""
    results = await asyncio.gather(*writes, return_exceptions=True)
    errors: List[BaseException] = [r for r in results if isinstance(r, BaseException)]
    if errors:
        raise errors[0]


async def _write_images(directory: Path, assets: Sequence[FetchedAsset]) -> None:
    if not assets:
        return
    image_dir = directory / IMAGES_DIRNAME
    try:
        image_dir.mkdir()
    except OSError as exc:
        raise StorageError(image_dir, exc) from exc
    # Assets sharing a filename overwrite each other; the survivor is arbitrary.
    await _join_writes([_write_file(image_dir / asset.filename, asset.data) for asset in assets])


def metadata_to_json(metadata: CaptureMetadata) -> str:
    return json.dumps(metadata.to_dict(), indent=2, ensure_ascii=False)


def read_metadata(directory: Path) -> CaptureMetadata:
    """Load the summary record of a bundle previously written to ``directory``."""
    path = Path(directory) / METADATA_FILENAME
    return CaptureMetadata.from_dict(json.loads(path.read_text(encoding="utf-8")))


async def write_bundle(bundle: CaptureBundle, output_dir: Path) -> Path:
    """Write ``bundle`` into a new directory at ``output_dir``.

    The directory must not exist yet. All artifacts are written concurrently
    and every write is attempted even if another one fails; the first error is
    raised afterwards and whatever was written stays on disk.
    """
    output_dir = Path(output_dir)
    if os.path.lexists(output_dir):
        raise PathExistsError(output_dir)
    try:
        output_dir.mkdir(parents=True)
    except FileExistsError as exc:
        raise PathExistsError(output_dir) from exc
    except OSError as exc:
        raise StorageError(output_dir, exc) from exc

    stem = safe_filename(bundle.title)
    await _join_writes(
        [
            _write_file(output_dir / f"{stem}.html", bundle.html.encode("utf-8")),
            _write_file(output_dir / f"{stem}.md", bundle.markdown.encode("utf-8")),
            _write_file(
                output_dir / METADATA_FILENAME,
                metadata_to_json(bundle.metadata).encode("utf-8"),
            ),
            _write_images(output_dir, bundle.assets),
        ]
    )
    logger.info("Saved capture of %s to %s", bundle.url, output_dir)
    return output_dir
