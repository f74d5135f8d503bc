from __future__ import annotations
import logging
from typing import Iterable, List, Optional

from .classify import DEFAULT_MAP_LINK_HOSTS, Classification, InputKind, classify
from .providers.geocoders import NominatimGeocoder, ShortUrlExpander
from .types import Coordinate, Resolution, SearchSuggestion

logger = logging.getLogger("libs.geo.resolver")


class LocationResolver:
    """Turns whatever the user typed or pasted into a single point.

    Coordinates and long map URLs resolve without touching the network.
    Short map links are expanded; anything else is a place search whose
    first hit wins. Failures end in ``None``, never an exception.
    """

    def __init__(
        self,
        geocoder: NominatimGeocoder,
        expander: ShortUrlExpander,
        map_link_hosts: Iterable[str] = DEFAULT_MAP_LINK_HOSTS,
    ):
        self.geocoder = geocoder
        self.expander = expander
        self.map_link_hosts = tuple(map_link_hosts)

    def classify(self, raw: Optional[str]) -> Classification:
        return classify(raw, self.map_link_hosts)

    async def resolve(self, raw: Optional[str]) -> Optional[Resolution]:
        c = self.classify(raw)
        return await self.resolve_classified(c)

    async def resolve_classified(self, c: Classification) -> Optional[Resolution]:
        if c.kind is InputKind.INVALID:
            return None
        if c.coordinate is not None:
            return Resolution(c.coordinate, c.coordinate.to_string(), source=c.kind.value)
        if c.kind is InputKind.URL_NEEDS_EXPANSION:
            expansion = await self.expander.expand(c.text)
            if expansion is None:
                return None
            return Resolution(expansion.coordinate, expansion.coordinate.to_string(), source=c.kind.value)
        suggestions = await self.search(c.text)
        if not suggestions:
            return None
        first = suggestions[0]
        return Resolution(first.coordinate, first.label, source=c.kind.value)

    async def search(self, query: str) -> List[SearchSuggestion]:
        return await self.geocoder.search(query)

    async def geocode_city(self, name: str) -> Optional[Coordinate]:
        return await self.geocoder.geocode_city(name)

    async def expand_short_url(self, url: str) -> Optional[Coordinate]:
        expansion = await self.expander.expand(url)
        return expansion.coordinate if expansion else None
