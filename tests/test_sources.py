"""Tests for the HTTP and directory list sources and the source factory."""

import json

import httpx
import pytest

from listwatch.errors import ConfigError, MetadataUnavailable, SourceUnavailable
from listwatch.pipeline.snapshot_builder import build_snapshot
from listwatch.scraper.directory_strategy import DirectoryListSource
from listwatch.scraper.pacer import Pacer
from listwatch.scraper.pages_strategy import PagesListSource
from listwatch.scraper.strategy_factory import create_source

BASE = "https://lists.example/data"

SITE = {
    "/data/main/_list.json": ["bloodbath", "acu", "broken"],
    "/data/main/bloodbath.json": {"game": "Bloodbath", "name": "bb"},
    "/data/main/acu.json": {"name": "Acu"},
}


def site_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/data/main/broken.json":
        return httpx.Response(200, text="{not json")
    if path in SITE:
        return httpx.Response(200, json=SITE[path])
    return httpx.Response(404, text="not found")


def make_pages_source(handler=site_handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PagesListSource({"source": "pages", "base_url": BASE}, retry_attempts=1, client=client)


class TestPagesListSource:
    @pytest.mark.asyncio
    async def test_ordered_keys(self):
        async with make_pages_source() as source:
            assert await source.get_ordered_keys("main") == ["bloodbath", "acu", "broken"]

    @pytest.mark.asyncio
    async def test_name_field_priority(self):
        async with make_pages_source() as source:
            assert (await source.get_entity_metadata("main", "bloodbath")).display_name == "Bloodbath"
            assert (await source.get_entity_metadata("main", "acu")).display_name == "Acu"

    @pytest.mark.asyncio
    async def test_missing_list_is_source_unavailable(self):
        async with make_pages_source() as source:
            with pytest.raises(SourceUnavailable):
                await source.get_ordered_keys("bonus")

    @pytest.mark.asyncio
    async def test_invalid_list_payload(self):
        def handler(request):
            return httpx.Response(200, json={"levels": ["a"]})

        async with make_pages_source(handler) as source:
            with pytest.raises(SourceUnavailable):
                await source.get_ordered_keys("main")

    @pytest.mark.asyncio
    async def test_duplicate_keys_rejected(self):
        def handler(request):
            return httpx.Response(200, json=["a", "b", "a"])

        async with make_pages_source(handler) as source:
            with pytest.raises(SourceUnavailable, match="Duplicate"):
                await source.get_ordered_keys("main")

    @pytest.mark.asyncio
    async def test_metadata_errors(self):
        async with make_pages_source() as source:
            with pytest.raises(MetadataUnavailable):
                await source.get_entity_metadata("main", "broken")
            with pytest.raises(MetadataUnavailable) as exc_info:
                await source.get_entity_metadata("main", "missing")
            assert exc_info.value.key == "missing"

    @pytest.mark.asyncio
    async def test_network_error_is_source_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_pages_source(handler) as source:
            with pytest.raises(SourceUnavailable):
                await source.get_ordered_keys("main")

    @pytest.mark.asyncio
    async def test_retries_transient_failure(self):
        calls = []

        def handler(request):
            calls.append(request.url.path)
            if len(calls) == 1:
                return httpx.Response(503)
            return httpx.Response(200, json=["a"])

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        source = PagesListSource({"base_url": BASE}, retry_attempts=3, client=client)
        assert await source.get_ordered_keys("main") == ["a"]
        assert len(calls) == 2
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unencodable_key_degrades_to_key(self):
        def handler(request):
            if request.url.path == "/data/main/_list.json":
                return httpx.Response(200, text='["bloodbath", "bad\\ud800"]')
            return site_handler(request)

        async with make_pages_source(handler) as source:
            with pytest.raises(MetadataUnavailable):
                await source.get_entity_metadata("main", "bad\ud800")
            snapshot = await build_snapshot(source, "main")

        assert snapshot.keys() == ["bloodbath", "bad\ud800"]
        assert snapshot.get("bloodbath").display_name == "Bloodbath"
        assert snapshot.get("bad\ud800").display_name == "bad\ud800"

    def test_urls_quote_keys(self):
        source = PagesListSource({"base_url": BASE + "/"})
        assert source.list_url("main") == f"{BASE}/main/_list.json"
        assert source.entity_url("main", "the golden") == f"{BASE}/main/the%20golden.json"


@pytest.fixture
def data_dir(tmp_path):
    main = tmp_path / "main"
    main.mkdir()
    (main / "_list.json").write_text(json.dumps(["tartarus", "abyss"]), encoding="utf-8")
    (main / "tartarus.json").write_text(json.dumps({"game": "Tartarus"}), encoding="utf-8")
    return tmp_path


class TestDirectoryListSource:
    @pytest.mark.asyncio
    async def test_reads_layout(self, data_dir):
        source = DirectoryListSource({"data_dir": str(data_dir)})
        assert await source.get_ordered_keys("main") == ["tartarus", "abyss"]
        assert (await source.get_entity_metadata("main", "tartarus")).display_name == "Tartarus"

    @pytest.mark.asyncio
    async def test_missing_entity_file(self, data_dir):
        source = DirectoryListSource({"data_dir": str(data_dir)})
        with pytest.raises(MetadataUnavailable):
            await source.get_entity_metadata("main", "abyss")

    @pytest.mark.asyncio
    async def test_missing_list(self, data_dir):
        source = DirectoryListSource({"data_dir": str(data_dir)})
        with pytest.raises(SourceUnavailable):
            await source.get_ordered_keys("bonus")

    @pytest.mark.asyncio
    async def test_key_cannot_escape_list_dir(self, data_dir):
        (data_dir / "secret.json").write_text(json.dumps({"game": "nope"}), encoding="utf-8")
        source = DirectoryListSource({"data_dir": str(data_dir)})
        with pytest.raises(MetadataUnavailable):
            await source.get_entity_metadata("main", "../secret")


class TestCreateSource:
    def test_known_sources(self):
        assert isinstance(create_source("pages"), PagesListSource)
        assert isinstance(create_source("directory"), DirectoryListSource)

    def test_passes_timeout(self):
        source = create_source("pages", timeout=5.0, retry_attempts=4)
        assert source.timeout == 5.0
        assert source.retry_attempts == 4

    def test_unknown_source(self):
        with pytest.raises(ConfigError):
            create_source("ftp")

    def test_missing_config(self, tmp_path):
        with pytest.raises(ConfigError):
            create_source("pages", configs_dir=str(tmp_path))


class TestPacer:
    @pytest.mark.asyncio
    async def test_no_delay_by_default(self):
        pacer = Pacer()
        await pacer.delay()
        assert pacer._request_count == 1

    @pytest.mark.asyncio
    async def test_paced_source_still_fetches(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(site_handler))
        source = PagesListSource(
            {"base_url": BASE, "rate_limit_seconds": 0.01}, retry_attempts=1, client=client,
        )
        assert (await source.get_entity_metadata("main", "acu")).display_name == "Acu"
        assert source.pacer.base_delay == 0.01
        await client.aclose()
