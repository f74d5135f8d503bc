from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Optional
from urllib.parse import urlencode

import httpx

from ..extract import extract_coords
from ..types import Coordinate, SearchSuggestion, in_range
from .proxies import ProxyChain

logger = logging.getLogger("libs.geo.providers.geocoders")

def _row_coordinate(row: dict) -> Optional[Coordinate]:
    try:
        lat = float(row["lat"]); lon = float(row["lon"])
    except (KeyError, TypeError, ValueError):
        return None
    if not in_range(lat, lon):
        return None
    return Coordinate(lat, lon)


def _row_label(row: dict) -> str:
    label = row.get("display_name") or row.get("name")
    if not label and row.get("lat") is not None and row.get("lon") is not None:
        label = f"{row['lat']}, {row['lon']}"
    return str(label or "").strip()


class NominatimGeocoder:
    """Nominatim place search and city lookup, reached through a ProxyChain."""

    def __init__(
        self,
        chain: ProxyChain,
        base_url: str = "https://nominatim.openstreetmap.org/search",
        search_region: str = "India",
        city_region: str = "Haryana, India",
        search_limit: int = 5,
        search_timeout: Optional[float] = None,
        city_timeout: float = 8.0,
        min_query_length: int = 2,
    ):
        self.chain = chain
        self.base_url = base_url.rstrip('/')
        self.search_region = search_region
        self.city_region = city_region
        self.search_limit = search_limit
        self.search_timeout = search_timeout
        self.city_timeout = city_timeout
        self.min_query_length = min_query_length

    def _url(self, params: dict) -> str:
        return f"{self.base_url}?{urlencode(params)}"

    def search_url(self, query: str) -> str:
        q = f"{query}, {self.search_region}" if self.search_region else query
        return self._url({"format": "json", "q": q, "limit": self.search_limit, "addressdetails": 1})

    def city_url(self, name: str) -> str:
        q = f"{name}, {self.city_region}" if self.city_region else name
        return self._url({"format": "json", "q": q, "limit": 1})

    def _parse_suggestions(self, payload: Any) -> Optional[List[SearchSuggestion]]:
        if not isinstance(payload, list):
            return None
        out = []
        for row in payload:
            if not isinstance(row, dict):
                continue
            coord = _row_coordinate(row)
            label = _row_label(row)
            if coord is None or not label:
                continue
            out.append(SearchSuggestion(label=label, coordinate=coord))
            if len(out) >= self.search_limit:
                break
        return out or None

    @staticmethod
    def _parse_city(payload: Any) -> Optional[Coordinate]:
        if isinstance(payload, list) and payload and isinstance(payload[0], dict):
            return _row_coordinate(payload[0])
        return None

    async def search(self, query: str) -> List[SearchSuggestion]:
        """Up to ``search_limit`` labelled places for free text; [] on failure."""
        query = (query or "").strip()
        if len(query) < self.min_query_length:
            return []
        results = await self.chain.fetch(self.search_url(query), self._parse_suggestions, kind="search", timeout=self.search_timeout)
        return results or []

    async def geocode_city(self, name: str) -> Optional[Coordinate]:
        name = (name or "").strip()
        if not name:
            return None
        return await self.chain.fetch(self.city_url(name), self._parse_city, kind="city", timeout=self.city_timeout)


@dataclass(frozen=True)
class Expansion:
    coordinate: Coordinate
    final_url: str


class ShortUrlExpander:
    """Follow a short map link's redirects and pull coordinates out of it.

    The landing URL is checked first, then the landing page body. A body that
    cannot be read just means no result.
    """

    def __init__(self, chain: ProxyChain, timeout: float = 10.0):
        self.chain = chain
        self.timeout = timeout

    async def expand(self, short_url: str) -> Optional[Expansion]:
        coord = extract_coords(short_url)
        if coord is not None:
            return Expansion(coord, short_url)
        try:
            resp = await self.chain.get_direct(short_url, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.info("Short URL expansion timed out: %s", short_url)
            return None
        except httpx.HTTPError as e:
            logger.info("Could not resolve short URL %s: %s", short_url, e)
            return None

        final_url = str(resp.url) or short_url
        coord = extract_coords(final_url)
        if coord is not None:
            return Expansion(coord, final_url)

        try:
            body = resp.text
        except (UnicodeDecodeError, httpx.HTTPError) as e:
            logger.info("Could not read landing page for %s: %s", short_url, e)
            return None
        coord = extract_coords(body)
        if coord is not None:
            return Expansion(coord, final_url)
        logger.info("No coordinates found behind %s", short_url)
        return None
