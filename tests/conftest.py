import asyncio

import httpx
import pytest

from libs.geo.providers.proxies import ProxyChain, build_proxy_list


def _rows(*rows):
    return [{"display_name": label, "lat": str(lat), "lon": str(lon)} for label, lat, lon in rows]


class FakeGeocoder:
    """Stand-in for NominatimGeocoder that records queries."""

    def __init__(self, results=None, delay=0.0, city=None):
        self.results = results or {}
        self.delay = delay
        self.city = city
        self.calls = []
        self.city_calls = []

    async def search(self, query):
        self.calls.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        return list(self.results.get(query.strip(), []))

    async def geocode_city(self, name):
        self.city_calls.append(name)
        return self.city


class FakeExpander:
    def __init__(self, expansion=None):
        self.expansion = expansion
        self.calls = []

    async def expand(self, url):
        self.calls.append(url)
        return self.expansion


@pytest.fixture
def make_chain():
    """Build a ProxyChain whose HTTP traffic goes to ``handler``."""
    def _make(handler, names=("allorigins", "corsproxy", "cors_anywhere"), timeout=1.0):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return ProxyChain(build_proxy_list(names), client=client, timeout=timeout)
    return _make


@pytest.fixture
def nominatim_rows():
    return _rows


@pytest.fixture
def fake_geocoder():
    return FakeGeocoder


@pytest.fixture
def fake_expander():
    return FakeExpander
