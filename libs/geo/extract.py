from __future__ import annotations
import re
from typing import List, Optional, Tuple

from .types import Coordinate, in_range

_NUM = r"(-?\d+\.?\d*)"

# Plain "lat,lng" typed or pasted by a user; the full-width comma is accepted too.
COORD_PAIR_RE = re.compile(r"^\s*" + _NUM + r"\s*[,，]\s*" + _NUM + r"\s*$")

# Tried in order; the first in-range pair wins.
URL_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("at", re.compile(r"@" + _NUM + r"," + _NUM)),
    ("q", re.compile(r"[?&]q=" + _NUM + r"[,+]" + _NUM)),
    ("ll", re.compile(r"[?&]ll=" + _NUM + r"," + _NUM)),
    ("center", re.compile(r"[?&]center=" + _NUM + r"," + _NUM)),
    ("place", re.compile(r"/place/[^/]+/@" + _NUM + r"," + _NUM)),
    ("slash", re.compile(r"/" + _NUM + r"," + _NUM)),
    ("data", re.compile(r"data=" + _NUM + r"," + _NUM)),
]

def _to_coordinate(lat_s: str, lng_s: str) -> Optional[Coordinate]:
    try:
        lat = float(lat_s); lng = float(lng_s)
    except ValueError:
        return None
    if not in_range(lat, lng):
        return None
    return Coordinate(lat, lng)

def match_coordinate_pair(text: str) -> Optional[Coordinate]:
    """Strict "lat,lng" match with range validation."""
    m = COORD_PAIR_RE.match(text or "")
    if not m:
        return None
    return _to_coordinate(m.group(1), m.group(2))

def looks_like_coordinate_pair(text: str) -> bool:
    return COORD_PAIR_RE.match(text or "") is not None

def extract_coords(text: str) -> Optional[Coordinate]:
    """Find an embedded coordinate pair in a map URL or a fetched page body.

    Out-of-range pairs are skipped and the search goes on, first through the
    remaining occurrences of the same form, then through the next form.
    """
    if not text:
        return None
    for _name, pattern in URL_PATTERNS:
        for m in pattern.finditer(text):
            coord = _to_coordinate(m.group(1), m.group(2))
            if coord is not None:
                return coord
    return None
