import json

import httpx
import pytest

from mobile_post_office.importer.loader import (
    MissingSourceError,
    SourceLoadError,
    extract_records,
    is_url,
    load_records,
)

FEED_URL = "https://data.example.org/mobile-posts.json"


def client_returning(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestExtractRecords:

    @pytest.mark.parametrize("payload", [
        [{"seq": 1}],
        {"data": [{"seq": 1}]},
        {"records": [{"seq": 1}]},
        {"meta": {"count": 1}, "items": [{"seq": 1}]},
    ])
    def test_known_shapes(self, payload):
        assert extract_records(payload) == [{"seq": 1}]

    def test_data_wins_over_other_arrays(self):
        assert extract_records({"links": ["x"], "data": [{"seq": 2}]}) == [{"seq": 2}]

    def test_empty_array_is_zero_records(self):
        assert extract_records({"data": []}) == []

    @pytest.mark.parametrize("payload", [{"count": 3}, "text", 42, None])
    def test_no_array(self, payload):
        with pytest.raises(SourceLoadError, match="Unable to find array of records"):
            extract_records(payload)


def test_is_url():
    assert is_url("https://x.org/a.json")
    assert is_url("http://x.org/a.json")
    assert not is_url("./data/https.json")


@pytest.mark.asyncio
class TestLoadFromFile:

    async def test_reads_json_file(self, tmp_path):
        path = tmp_path / "feed.json"
        path.write_text(json.dumps({"records": [{"nameEN": "A"}, {"nameEN": "B"}]}), encoding="utf-8")

        records = await load_records(str(path))

        assert [r["nameEN"] for r in records] == ["A", "B"]

    async def test_missing_file(self, tmp_path):
        with pytest.raises(SourceLoadError, match="Unable to read file"):
            await load_records(str(tmp_path / "nope.json"))

    async def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(SourceLoadError, match="Invalid JSON"):
            await load_records(str(path))

    async def test_not_utf8(self, tmp_path):
        path = tmp_path / "latin.json"
        path.write_bytes(b'[{"nameEN": "\xff\xfe"}]')

        with pytest.raises(SourceLoadError, match="not valid UTF-8"):
            await load_records(str(path))

    @pytest.mark.parametrize("source", [None, ""])
    async def test_no_source(self, source):
        with pytest.raises(MissingSourceError):
            await load_records(source)


@pytest.mark.asyncio
class TestLoadFromUrl:

    async def test_fetches_and_extracts(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == FEED_URL
            return httpx.Response(200, json={"data": [{"seq": 1}, {"seq": 2}]})

        async with client_returning(handler) as client:
            records = await load_records(FEED_URL, client=client)

        assert len(records) == 2

    async def test_http_error_status(self):
        async with client_returning(lambda request: httpx.Response(503)) as client:
            with pytest.raises(SourceLoadError, match="HTTP 503"):
                await load_records(FEED_URL, client=client)

    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with client_returning(handler) as client:
            with pytest.raises(SourceLoadError, match="Timed out"):
                await load_records(FEED_URL, client=client)

    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with client_returning(handler) as client:
            with pytest.raises(SourceLoadError, match="Unable to fetch"):
                await load_records(FEED_URL, client=client)

    async def test_body_is_not_json(self):
        async with client_returning(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(SourceLoadError, match="did not return valid JSON"):
                await load_records(FEED_URL, client=client)
