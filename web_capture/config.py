"""Configuration objects and constants for page capture."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/115.0.0.0 Safari/537.36"
)
DEFAULT_MARKDOWN_FORMAT = "gfm-raw_html"


@dataclass
class CaptureConfig:
    """Top-level settings that control page loading, fetching and writing."""

    output_root: Path = Path(".")
    wait_after_load: float = 1.0
    navigation_timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    fetch_timeout: float = 15.0
    # None or 0 lets every image fetch run at once.
    max_concurrent_fetches: Optional[int] = 8
    markdown_format: str = DEFAULT_MARKDOWN_FORMAT
