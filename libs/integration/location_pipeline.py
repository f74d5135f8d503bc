from __future__ import annotations
import os
import random
from typing import Any, Callable, List, Optional

import httpx
import yaml

from libs.common.config import CFG
from libs.common.settings_store import JsonFileSettingsStore
from libs.geo.editor import LocationEditor
from libs.geo.providers.geocoders import NominatimGeocoder, ShortUrlExpander
from libs.geo.providers.proxies import ProxyChain, build_proxy_list
from libs.geo.resolver import LocationResolver
from libs.geo.search_controller import DebouncedSearchController
from libs.geo.types import Resolution, SearchSuggestion

def load_config(path: str = "config/locator.yml") -> dict:
    """Read the YAML deployment config; a missing file means defaults only."""
    if not path or not os.path.exists(path):
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}

def build_chain(cfg: dict, client: Optional[httpx.AsyncClient] = None) -> ProxyChain:
    p = cfg.get("proxies", {})
    g = cfg.get("geocoder", {})
    return ProxyChain(
        build_proxy_list(p.get("order", CFG.PROXY_ORDER)),
        client=client,
        timeout=float(p.get("timeout_sec", CFG.PROXY_TIMEOUT_SEC)),
        headers={"User-Agent": g.get("user_agent", CFG.GEOCODER_USER_AGENT)},
    )

def build_resolver(cfg: dict, chain: ProxyChain) -> LocationResolver:
    g = cfg.get("geocoder", {})
    e = cfg.get("expansion", {})
    geocoder = NominatimGeocoder(
        chain,
        base_url=g.get("base_url", CFG.GEOCODER_URL),
        search_region=g.get("search_region", CFG.SEARCH_REGION),
        city_region=g.get("city_region", CFG.CITY_REGION),
        search_limit=int(g.get("search_limit", CFG.SEARCH_LIMIT)),
        city_timeout=float(g.get("city_timeout_sec", CFG.CITY_TIMEOUT_SEC)),
        min_query_length=int(cfg.get("search", {}).get("min_query_length", CFG.MIN_QUERY_LENGTH)),
    )
    expander = ShortUrlExpander(chain, timeout=float(e.get("timeout_sec", CFG.EXPAND_TIMEOUT_SEC)))
    return LocationResolver(geocoder, expander, map_link_hosts=e.get("hosts", CFG.MAP_LINK_HOSTS))

class Locator:
    """Wires the engine together from config for one host application."""

    def __init__(self, cfg: Optional[dict] = None, client: Optional[httpx.AsyncClient] = None, settings=None, rng: Optional[random.Random] = None):
        self.cfg = cfg or {}
        self.chain = build_chain(self.cfg, client=client)
        self.resolver = build_resolver(self.cfg, self.chain)
        self.settings = settings
        self.rng = rng

    def _settings(self):
        if self.settings is None:
            path = self.cfg.get("settings", {}).get("path", CFG.SETTINGS_PATH)
            self.settings = JsonFileSettingsStore(path)
        return self.settings

    def editor(self, location: Optional[str] = None, location_accuracy: Optional[str] = None, landmark_location: Optional[str] = None) -> LocationEditor:
        m = self.cfg.get("map", {})
        return LocationEditor.open(
            location,
            location_accuracy,
            landmark_location,
            resolver=self.resolver,
            settings=self._settings(),
            rng=self.rng,
            default_city=m.get("default_city", CFG.DEFAULT_CITY),
            default_center=tuple(m.get("default_center", CFG.DEFAULT_CENTER)),
        )

    def controller(
        self,
        on_resolved: Callable[[Resolution], Any],
        on_not_found: Callable[[], Any],
        on_suggestions: Optional[Callable[[List[SearchSuggestion]], Any]] = None,
    ) -> DebouncedSearchController:
        s = self.cfg.get("search", {})
        return DebouncedSearchController(
            self.resolver,
            on_resolved=on_resolved,
            on_not_found=on_not_found,
            on_suggestions=on_suggestions,
            quiet_period=float(s.get("debounce_ms", CFG.DEBOUNCE_MS)) / 1000.0,
            min_query_length=int(s.get("min_query_length", CFG.MIN_QUERY_LENGTH)),
        )

    async def aclose(self):
        await self.chain.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
