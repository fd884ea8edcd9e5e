"""Giphy client for reaction GIFs.

Search and trending fail soft: any HTTP, network or payload problem is
logged and an empty list is returned, so a broken catalog never blocks
logging or reacting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from .config import GIPHY_API_URL
from .errors import CatalogError

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 12
# Family-friendly content only.
CONTENT_RATING = "g"


@dataclass(frozen=True)
class Gif:
    id: str
    url: str
    title: str


def parse_gifs(payload: Any) -> list[Gif]:
    """Convert a Giphy response body into Gif records."""
    try:
        items = payload["data"]
        return [
            Gif(
                id=str(item["id"]),
                url=item["images"]["fixed_height"]["url"],
                title=item.get("title") or "GIF",
            )
            for item in items
        ]
    except (KeyError, TypeError) as exc:
        raise CatalogError(f"unexpected catalog payload: {exc}") from exc


class GiphyCatalog:
    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = GIPHY_API_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GiphyCatalog":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def _get(self, path: str, params: dict[str, str]) -> list[Gif]:
        try:
            resp = await self._client.get(path, params={"api_key": self.api_key, **params})
            resp.raise_for_status()
            return parse_gifs(resp.json())
        except httpx.HTTPError as exc:
            raise CatalogError(f"{path}: {exc}") from exc
        except ValueError as exc:
            raise CatalogError(f"{path}: invalid JSON ({exc})") from exc

    async def search(self, query: str, limit: int = DEFAULT_LIMIT) -> list[Gif]:
        if not query or not query.strip():
            return []
        try:
            return await self._get(
                "/search",
                {"q": query.strip(), "limit": str(limit), "rating": CONTENT_RATING, "lang": "en"},
            )
        except CatalogError as exc:
            logger.warning("GIF search for %r failed: %s", query, exc)
            return []

    async def trending(self, limit: int = DEFAULT_LIMIT) -> list[Gif]:
        try:
            return await self._get("/trending", {"limit": str(limit), "rating": CONTENT_RATING})
        except CatalogError as exc:
            logger.warning("Trending GIFs failed: %s", exc)
            return []
