"""Content locator matching for the stations table.

Locators have the shape ``content://<authority>/<table>`` for the whole
collection and ``content://<authority>/<table>/<id>`` for a single row.
"""
from __future__ import annotations

from urllib.parse import urlsplit

SCHEME = "content"

NO_MATCH = -1
STATIONS = 1
STATION_ID = 2


def path_segments(uri: str) -> list[str]:
    parts = urlsplit(uri)
    return [s for s in parts.path.split("/") if s]


def with_appended_id(base_uri: str, row_id: int) -> str:
    return f"{base_uri.rstrip('/')}/{int(row_id)}"


def parse_id(uri: str) -> int:
    segs = path_segments(uri)
    if not segs or not segs[-1].isdigit():
        raise ValueError(f"no numeric id in {uri}")
    return int(segs[-1])


class UriMatcher:
    """Classifies locators as collection, single item, or no match."""

    def __init__(self, authority: str, table: str):
        self.authority = authority
        self.table = table

    def match(self, uri: str | None) -> int:
        if not uri:
            return NO_MATCH
        try:
            parts = urlsplit(uri)
        except ValueError:
            return NO_MATCH
        if parts.scheme != SCHEME or parts.netloc != self.authority:
            return NO_MATCH
        segs = [s for s in parts.path.split("/") if s]
        if segs == [self.table]:
            return STATIONS
        if len(segs) == 2 and segs[0] == self.table and segs[1].isdigit() and segs[1].isascii():
            return STATION_ID
        return NO_MATCH
