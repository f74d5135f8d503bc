from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional
from urllib.parse import urlsplit

from .extract import extract_coords, match_coordinate_pair
from .types import Coordinate

DEFAULT_MAP_LINK_HOSTS = ("google.com", "maps.app.goo.gl", "goo.gl")


class InputKind(str, Enum):
    INVALID = "invalid"
    COORDINATES = "coordinates"
    URL_WITH_COORDS = "url_with_embedded_coords"
    URL_NEEDS_EXPANSION = "url_needing_expansion"
    FREE_TEXT = "free_text"

    @property
    def needs_network(self) -> bool:
        return self in (InputKind.URL_NEEDS_EXPANSION, InputKind.FREE_TEXT)


@dataclass(frozen=True)
class Classification:
    kind: InputKind
    text: str
    coordinate: Optional[Coordinate] = None


def parse_url_host(text: str) -> Optional[str]:
    """Hostname of a well-formed absolute URL, else None."""
    if any(ch.isspace() for ch in text):
        return None
    try:
        parts = urlsplit(text)
        host = parts.hostname
    except ValueError:
        return None
    if not parts.scheme or not host:
        return None
    return host.lower()


def is_map_link_host(host: str, hosts: Iterable[str] = DEFAULT_MAP_LINK_HOSTS) -> bool:
    return any(h in host for h in hosts)


def classify(raw: Optional[str], map_link_hosts: Iterable[str] = DEFAULT_MAP_LINK_HOSTS) -> Classification:
    """Decide how a piece of user input should be resolved.

    Cheap checks run first: a plain coordinate pair, then coordinates
    embedded in a URL. Only short map links and prose need the network.
    """
    text = (raw or "").strip()
    if not text:
        return Classification(InputKind.INVALID, text)

    coord = match_coordinate_pair(text)
    if coord is not None:
        return Classification(InputKind.COORDINATES, text, coord)

    coord = extract_coords(text)
    if coord is not None:
        return Classification(InputKind.URL_WITH_COORDS, text, coord)

    host = parse_url_host(text)
    if host and is_map_link_host(host, map_link_hosts):
        return Classification(InputKind.URL_NEEDS_EXPANSION, text)
    return Classification(InputKind.FREE_TEXT, text)
