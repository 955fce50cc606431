"""
Request parameters for item listing.

Malformed or out-of-range values never fail a request; they fall back to
defaults here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields

DEFAULT_PER_PAGE = 50
MAX_PER_PAGE = 200

_INT64_MAX = 2**63 - 1

# Optional sign and ASCII digits only: no "_" separators or other Unicode digits.
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


def _parse_int(raw: str | None) -> int | None:
    raw = (raw or "").strip()
    if not _INT_PATTERN.fullmatch(raw):
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def parse_per_page(raw: str | None) -> int:
    per_page = _parse_int(raw)
    if per_page is None or per_page < 1:
        return DEFAULT_PER_PAGE
    return min(per_page, MAX_PER_PAGE)


def parse_after_id(raw: str | None) -> int | None:
    """
    Seek cursor. Absent, non-positive, or not a bigint -> None (first page).
    """
    after_id = _parse_int(raw)
    if after_id is None or after_id <= 0 or after_id > _INT64_MAX:
        return None
    return after_id


def _clean(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


@dataclass(frozen=True)
class ItemFilters:
    """
    Exact-match filters. Field names are the column names, and field order
    is the order predicates appear in the query.
    """

    category: str | None = None
    material: str | None = None

    @classmethod
    def from_raw(cls, **raw: str | None) -> "ItemFilters":
        return cls(**{name: _clean(raw.get(name)) for name in FILTER_COLUMNS})

    def active(self) -> list[tuple[str, str]]:
        pairs = []
        for name in FILTER_COLUMNS:
            value = getattr(self, name)
            if value is not None:
                pairs.append((name, value))
        return pairs


FILTER_COLUMNS: tuple[str, ...] = tuple(f.name for f in fields(ItemFilters))


@dataclass(frozen=True)
class PageRequest:
    per_page: int = DEFAULT_PER_PAGE
    after_id: int | None = None

    @classmethod
    def from_raw(cls, *, per_page: str | None = None, after_id: str | None = None) -> "PageRequest":
        return cls(per_page=parse_per_page(per_page), after_id=parse_after_id(after_id))
