"""Ordered relay chain for third-party geocoding requests.

Each logical request walks the configured relays strictly in sequence. An
attempt that times out, errors, returns a non-2xx status, or yields an
unusable payload is logged and the next relay is tried. Only when every
relay misses does the caller get ``None``.
"""
from __future__ import annotations
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional
from urllib.parse import quote

import httpx
from prometheus_client import Counter

from libs.common.exceptions import ExhaustedProvidersError, ProviderError
from libs.common.fallback import run_with_fallbacks

logger = logging.getLogger("libs.geo.providers.proxies")

PROXY_ATTEMPTS = Counter("locator_proxy_attempts_total", "Relay attempts", ["provider", "kind"])
PROXY_FAILURES = Counter("locator_proxy_failures_total", "Failed relay attempts", ["provider", "kind", "reason"])
CHAIN_EXHAUSTED = Counter("locator_proxy_chain_exhausted_total", "Requests where every relay missed", ["kind"])


def log_event(event: str, **kwargs):
    """Emit a JSON log event."""
    record = {"event": event, **kwargs}
    try:
        logger.info(json.dumps(record, ensure_ascii=False))
    except (TypeError, ValueError):
        logger.info(f"[log-failed] {event} {kwargs}")


@dataclass(frozen=True)
class ProxyService:
    name: str
    template: Callable[[str], str]

    def build(self, target_url: str) -> str:
        return self.template(target_url)


PROXY_SERVICES: Dict[str, ProxyService] = {
    "allorigins": ProxyService("allorigins", lambda u: f"https://api.allorigins.win/raw?url={quote(u, safe='')}"),
    "corsproxy": ProxyService("corsproxy", lambda u: f"https://corsproxy.io/?{quote(u, safe='')}"),
    "cors_anywhere": ProxyService("cors_anywhere", lambda u: f"https://cors-anywhere.herokuapp.com/{u}"),
    "direct": ProxyService("direct", lambda u: u),
}


def build_proxy_list(names: Iterable[str]) -> List[ProxyService]:
    out = []
    for name in names:
        try:
            out.append(PROXY_SERVICES[name])
        except KeyError:
            raise ValueError(f"Unknown proxy service {name!r}; expected one of {sorted(PROXY_SERVICES)}")
    return out


def decode_payload(text: str) -> Any:
    """JSON-decode a relay body; some relays wrap the JSON in a JSON string."""
    data = json.loads(text)
    if isinstance(data, str):
        data = json.loads(data)
    return data


class ProxyChain:
    def __init__(
        self,
        proxies: List[ProxyService],
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
    ):
        if not proxies:
            raise ValueError("ProxyChain needs at least one proxy service")
        self.proxies = list(proxies)
        self.timeout = timeout
        self.headers = {"Accept": "application/json", **(headers or {})}
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self):
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def _get(self, url: str, timeout: float, headers: Optional[Dict[str, str]] = None, follow_redirects: bool = False) -> httpx.Response:
        # wait_for makes the timeout a deadline for the whole attempt
        return await asyncio.wait_for(
            self.client.get(url, headers=headers, follow_redirects=follow_redirects, timeout=timeout),
            timeout,
        )

    async def _attempt(self, proxy: ProxyService, target_url: str, parse: Callable[[Any], Any], kind: str, timeout: float):
        url = proxy.build(target_url)
        PROXY_ATTEMPTS.labels(provider=proxy.name, kind=kind).inc()
        log_event("proxy_attempt", provider=proxy.name, kind=kind, url=url[:80])
        try:
            resp = await self._get(url, timeout, headers=self.headers)
        except asyncio.TimeoutError:
            PROXY_FAILURES.labels(provider=proxy.name, kind=kind, reason="timeout").inc()
            logger.info("%s timed out after %.1fs, trying next proxy", proxy.name, timeout)
            raise ProviderError(proxy.name, f"timed out after {timeout}s", reason="timeout")
        except httpx.TimeoutException as e:
            PROXY_FAILURES.labels(provider=proxy.name, kind=kind, reason="timeout").inc()
            logger.info("%s timed out: %s", proxy.name, e)
            raise ProviderError(proxy.name, f"timeout: {e}", reason="timeout")
        except httpx.HTTPError as e:
            PROXY_FAILURES.labels(provider=proxy.name, kind=kind, reason="network").inc()
            logger.warning("%s failed: %s", proxy.name, e)
            raise ProviderError(proxy.name, str(e), reason="network")

        if not resp.is_success:
            PROXY_FAILURES.labels(provider=proxy.name, kind=kind, reason="status").inc()
            logger.info("%s returned %s", proxy.name, resp.status_code)
            raise ProviderError(proxy.name, f"HTTP {resp.status_code}", reason="status")

        try:
            payload = decode_payload(resp.text)
        except ValueError as e:
            PROXY_FAILURES.labels(provider=proxy.name, kind=kind, reason="payload").inc()
            logger.info("%s returned an unparsable payload: %s", proxy.name, e)
            raise ProviderError(proxy.name, "unparsable payload", reason="payload")

        result = parse(payload)
        if result is None:
            PROXY_FAILURES.labels(provider=proxy.name, kind=kind, reason="empty").inc()
            log_event("proxy_empty", provider=proxy.name, kind=kind)
            return None
        log_event("proxy_success", provider=proxy.name, kind=kind)
        return result

    async def fetch(self, target_url: str, parse: Callable[[Any], Any], kind: str = "request", timeout: Optional[float] = None):
        """Run ``target_url`` through each relay in turn.

        ``parse`` turns a decoded JSON payload into a result, or None when the
        payload holds nothing usable. Returns the first result, or None.
        """
        timeout = self.timeout if timeout is None else timeout
        steps = [
            (proxy.name, lambda proxy=proxy: self._attempt(proxy, target_url, parse, kind, timeout))
            for proxy in self.proxies
        ]
        out = await run_with_fallbacks(steps)
        if out["data"] is None:
            CHAIN_EXHAUSTED.labels(kind=kind).inc()
            logger.warning("All proxy services failed for %s: %s", kind, "; ".join(out["errors"]))
            return None
        return out["data"]

    async def fetch_or_raise(self, target_url: str, parse: Callable[[Any], Any], kind: str = "request", timeout: Optional[float] = None):
        result = await self.fetch(target_url, parse, kind=kind, timeout=timeout)
        if result is None:
            raise ExhaustedProvidersError(kind, [p.name for p in self.proxies])
        return result

    async def get_direct(self, url: str, timeout: Optional[float] = None) -> httpx.Response:
        """Fetch ``url`` without a relay, following redirects."""
        timeout = self.timeout if timeout is None else timeout
        return await self._get(url, timeout, headers=self.headers, follow_redirects=True)
