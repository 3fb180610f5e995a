"""Tests for end-to-end capture orchestration."""

from pathlib import Path

import pytest

from web_capture.cli import parse_args
from web_capture.crawler import build_output_dir, capture_url
from web_capture.errors import PathExistsError, UrlParseError
from web_capture.images import AssetFetcher
from web_capture.models import PageSnapshot
from web_capture.storage import read_metadata

from conftest import FakeConverter, FakePageSource, FakeResponse, FakeSession

SNAPSHOT = PageSnapshot(
    url="https://blog.test/posts/hello",
    title="Hello World",
    html='<h1>Hello</h1><img src="a.png"><img src="b.png"><img src="c.png">',
)


def make_fetcher(config) -> AssetFetcher:
    return AssetFetcher(
        config,
        session=FakeSession(
            {
                "https://blog.test/posts/a.png": FakeResponse(200, b"a"),
                "https://blog.test/posts/b.png": FakeResponse(404),
                "https://blog.test/posts/c.png": FakeResponse(200, b"c"),
            }
        ),
    )


class TestBuildOutputDir:
    """Tests for default directory naming."""

    def test_uses_title(self, config):
        """The title slug names the directory."""
        assert build_output_dir(config, SNAPSHOT) == config.output_root / "hello-world"

    def test_untitled_page_uses_host(self, config):
        """Untitled pages fall back to their host name."""
        snapshot = PageSnapshot(url="https://blog.test/x", title="", html="")
        assert build_output_dir(config, snapshot) == config.output_root / "blog-test"


class TestCaptureUrl:
    """Tests for the full capture flow with fake collaborators."""

    @pytest.mark.asyncio
    async def test_capture_with_one_failed_image(self, config, tmp_path: Path):
        """A failing image reduces the count but the capture succeeds."""
        source = FakePageSource(SNAPSHOT)
        target = tmp_path / "bundle"

        result = await capture_url(
            "https://blog.test/posts/hello",
            config,
            page_source=source,
            converter=FakeConverter("# Hello"),
            fetcher=make_fetcher(config),
            output_dir=target,
        )

        assert source.loaded == ["https://blog.test/posts/hello"]
        assert result.output_dir == target
        assert result.total_seconds >= 0
        assert sorted(p.name for p in (target / "images").iterdir()) == ["a.png", "c.png"]
        meta = read_metadata(target)
        assert meta == result.bundle.metadata
        assert meta.nb_images == 2
        assert meta.nb_md_words == 2

    @pytest.mark.asyncio
    async def test_default_output_dir(self, config):
        """Without an explicit directory the title-derived one is used."""
        result = await capture_url(
            SNAPSHOT.url,
            config,
            page_source=FakePageSource(SNAPSHOT),
            converter=FakeConverter(),
            fetcher=make_fetcher(config),
        )
        assert result.output_dir == config.output_root / "hello-world"
        assert (result.output_dir / "Hello World.html").is_file()

    @pytest.mark.asyncio
    async def test_existing_output_dir(self, config, tmp_path: Path):
        """Capturing into an existing directory fails."""
        (tmp_path / "taken").mkdir()
        with pytest.raises(PathExistsError):
            await capture_url(
                SNAPSHOT.url,
                config,
                page_source=FakePageSource(SNAPSHOT),
                converter=FakeConverter(),
                fetcher=make_fetcher(config),
                output_dir=tmp_path / "taken",
            )

    @pytest.mark.asyncio
    async def test_invalid_url_is_rejected_before_loading(self, config):
        """Malformed URLs never reach the page source."""
        source = FakePageSource(SNAPSHOT)
        with pytest.raises(UrlParseError):
            await capture_url("not-a-url", config, page_source=source, converter=FakeConverter())
        assert source.loaded == []


class TestParseArgs:
    """Tests for command-line parsing."""

    def test_defaults(self):
        """Only the URL is required."""
        args = parse_args(["https://blog.test"])
        assert args.url == "https://blog.test"
        assert args.output_dir is None
        assert args.max_concurrency == 8
        assert args.format == "gfm-raw_html"

    def test_output_dir_and_flags(self):
        """Positional output directory and tuning flags are parsed."""
        args = parse_args(
            ["https://blog.test", "out", "--fetch-timeout", "2.5", "--max-concurrency", "0", "--verbose"]
        )
        assert args.output_dir == Path("out")
        assert args.fetch_timeout == 2.5
        assert args.max_concurrency == 0
        assert args.verbose is True

    def test_negative_concurrency_rejected(self):
        """A negative download limit is a usage error."""
        with pytest.raises(SystemExit):
            parse_args(["https://blog.test", "--max-concurrency", "-1"])


class TestCaptureResources:
    """Tests for session handling and odd inline images during a capture."""

    @pytest.mark.asyncio
    async def test_default_fetcher_session_is_closed(self, config, tmp_path: Path, monkeypatch):
        """The session of an implicitly created fetcher is closed afterwards."""
        created = []

        def make_session():
            session = FakeSession()
            created.append(session)
            return session

        monkeypatch.setattr("web_capture.images.requests.Session", make_session)

        await capture_url(
            SNAPSHOT.url,
            config,
            page_source=FakePageSource(SNAPSHOT),
            converter=FakeConverter(),
            output_dir=tmp_path / "out",
        )

        assert len(created) == 1
        assert created[0].closed is True

    @pytest.mark.asyncio
    async def test_injected_fetcher_session_left_open(self, config, tmp_path: Path):
        """Caller-supplied fetchers are not closed by the capture."""
        fetcher = make_fetcher(config)
        await capture_url(
            SNAPSHOT.url,
            config,
            page_source=FakePageSource(SNAPSHOT),
            converter=FakeConverter(),
            fetcher=fetcher,
            output_dir=tmp_path / "out",
        )
        assert fetcher.session.closed is False

    @pytest.mark.asyncio
    async def test_inline_image_with_extra_slashes(self, config, tmp_path: Path):
        """A data URL with a nested media type still writes a single file."""
        snapshot = PageSnapshot(
            url="https://blog.test/odd",
            title="Odd",
            html='<img src="data:image/png/x;base64,aGVsbG8=">',
        )
        result = await capture_url(
            snapshot.url,
            config,
            page_source=FakePageSource(snapshot),
            converter=FakeConverter(),
            fetcher=AssetFetcher(config, session=FakeSession()),
            output_dir=tmp_path / "odd",
        )
        assert (tmp_path / "odd" / "images" / "inline.png").read_bytes() == b"hello"
        assert result.bundle.metadata.nb_images == 1
