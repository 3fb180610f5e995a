"""Pytest configuration and fakes for the capture pipeline."""

from __future__ import annotations

import threading
import time
from typing import Dict, List, Optional, Union

import pytest
import requests

from web_capture.config import CaptureConfig
from web_capture.errors import ConversionError
from web_capture.models import PageSnapshot

PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
PNG_DATA_URL = f"data:image/png;base64,{PNG_BASE64}"


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b"") -> None:
        self.status_code = status_code
        self.content = content


class FakeSession:
    """Stand-in for ``requests.Session`` serving canned responses per URL."""

    def __init__(
        self,
        routes: Optional[Dict[str, Union[FakeResponse, Exception]]] = None,
        delay: float = 0.0,
    ) -> None:
        self.routes = routes or {}
        self.delay = delay
        self.calls: List[dict] = []
        self.in_flight = 0
        self.peak_in_flight = 0
        self.closed = False
        self._lock = threading.Lock()

    def get(self, url, headers=None, timeout=None):
        with self._lock:
            self.calls.append({"url": url, "headers": headers or {}, "timeout": timeout})
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
        finally:
            with self._lock:
                self.in_flight -= 1
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(404)
        if isinstance(route, Exception):
            raise route
        return route

    def close(self) -> None:
        self.closed = True


class FakeConverter:
    """Markdown converter returning fixed text, or failing on demand."""

    def __init__(self, markdown: str = "# Title\n\nsome body text", fail: bool = False) -> None:
        self.markdown = markdown
        self.fail = fail
        self.calls: List[str] = []

    async def convert(self, html: str) -> str:
        self.calls.append(html)
        if self.fail:
            raise ConversionError("pandoc exploded")
        return self.markdown


class FakePageSource:
    def __init__(self, snapshot: PageSnapshot) -> None:
        self.snapshot = snapshot
        self.loaded: List[str] = []

    async def load(self, url: str) -> PageSnapshot:
        self.loaded.append(url)
        return self.snapshot


@pytest.fixture
def config(tmp_path) -> CaptureConfig:
    return CaptureConfig(output_root=tmp_path, fetch_timeout=5.0, max_concurrent_fetches=4)


@pytest.fixture
def connection_error() -> Exception:
    return requests.ConnectionError("connection refused")
