"""Tests for the Giphy catalog client."""

import httpx
import pytest

from gymsync.errors import CatalogError
from gymsync.gifs import GiphyCatalog, parse_gifs


def _payload(*ids: str) -> dict:
    return {
        "data": [
            {
                "id": gif_id,
                "title": f"gif {gif_id}" if gif_id != "untitled" else "",
                "images": {"fixed_height": {"url": f"https://media.example/{gif_id}.gif"}},
            }
            for gif_id in ids
        ]
    }


def _catalog(handler) -> GiphyCatalog:
    return GiphyCatalog("test-key", base_url="https://giphy.test/v1/gifs", transport=httpx.MockTransport(handler))


class TestParseGifs:
    def test_fixed_height_url_and_title_default(self):
        gifs = parse_gifs(_payload("a1", "untitled"))
        assert gifs[0].url == "https://media.example/a1.gif"
        assert gifs[0].title == "gif a1"
        assert gifs[1].title == "GIF"

    def test_malformed_payload(self):
        with pytest.raises(CatalogError):
            parse_gifs({"data": [{"id": "x"}]})


class TestGiphyCatalog:
    async def test_search_sends_rating_and_limit(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_payload("a1", "a2"))

        async with _catalog(handler) as catalog:
            gifs = await catalog.search("  beast mode ", limit=2)

        assert [g.id for g in gifs] == ["a1", "a2"]
        [request] = seen
        assert request.url.path == "/v1/gifs/search"
        assert request.url.params["q"] == "beast mode"
        assert request.url.params["rating"] == "g"
        assert request.url.params["limit"] == "2"
        assert request.url.params["api_key"] == "test-key"

    async def test_empty_query_skips_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        async with _catalog(handler) as catalog:
            assert await catalog.search("   ") == []

    async def test_trending(self):
        def handler(request):
            assert request.url.path == "/v1/gifs/trending"
            assert request.url.params["rating"] == "g"
            return httpx.Response(200, json=_payload("t1"))

        async with _catalog(handler) as catalog:
            assert [g.id for g in await catalog.trending()] == ["t1"]

    @pytest.mark.parametrize(
        "status,kwargs",
        [
            (500, {"text": "boom"}),
            (200, {"text": "not json"}),
            (200, {"json": {"unexpected": True}}),
        ],
    )
    async def test_failures_return_empty(self, status, kwargs):
        async with _catalog(lambda request: httpx.Response(status, **kwargs)) as catalog:
            assert await catalog.search("fire") == []
            assert await catalog.trending() == []

    async def test_network_error_returns_empty(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        async with _catalog(handler) as catalog:
            assert await catalog.search("fire") == []
