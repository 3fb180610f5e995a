"""Markdown conversion of captured HTML through pandoc."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Sequence

import pypandoc

from .config import DEFAULT_MARKDOWN_FORMAT
from .errors import ConversionError

logger = logging.getLogger("web_capture")


class MarkdownConverter(Protocol):
    """Anything able to turn raw page markup into Markdown text."""

    async def convert(self, html: str) -> str:
        """Return Markdown for ``html`` or raise :class:`ConversionError`."""
        ...


class PandocMarkdownConverter:
    """Thin wrapper around ``pandoc`` driven through pypandoc."""

    def __init__(
        self,
        output_format: str = DEFAULT_MARKDOWN_FORMAT,
        extra_args: Sequence[str] = (),
    ) -> None:
        self.output_format = output_format
        self.extra_args = list(extra_args)

    def convert_sync(self, html: str) -> str:
        try:
            return pypandoc.convert_text(
                html,
                self.output_format,
                format="html",
                extra_args=self.extra_args,
            )
        except (RuntimeError, OSError) as exc:
            raise ConversionError(f"Pandoc conversion failed: {exc}") from exc

    async def convert(self, html: str) -> str:
        logger.debug(
            "Converting %d characters of HTML to %s", len(html), self.output_format
        )
        return await asyncio.to_thread(self.convert_sync, html)
