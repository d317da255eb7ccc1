"""Pagination, sorting and filtering options parsed from list-endpoint query parameters."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field

DEFAULT_LIMIT = 20
MAX_LIMIT = 50000

_UNSIGNED_RANGE = 2**64
_LEADING_INTEGER = re.compile(r"\s*([+-]?)(\d+)")
_FILTER_PREFIX = "filter["


@dataclass
class ListParams:
    """Options for listing rows of a table."""

    limit: int = DEFAULT_LIMIT
    offset: int = 0
    sort_column: str = ""
    sort_direction: str = "ASC"
    filters: list[tuple[str, str]] = field(default_factory=list)


def _parse_unsigned(text: str) -> int | None:
    """Read a leading unsigned integer the way ``strtoul`` does; ``None`` if unreadable.

    A minus sign wraps the magnitude around the 64-bit range; a magnitude
    that does not fit in 64 bits is rejected.
    """
    match = _LEADING_INTEGER.match(text)
    if match is None:
        return None
    sign, digits = match.groups()
    magnitude = int(digits)
    if magnitude >= _UNSIGNED_RANGE:
        return None
    if sign == "-":
        return (-magnitude) % _UNSIGNED_RANGE
    return magnitude


def _parse_sort(text: str) -> tuple[str, str | None]:
    column, sep, direction = text.partition(":")
    if not sep:
        return text, None
    direction = direction.upper()
    return column, direction if direction in ("ASC", "DESC") else None


def _filter_column(key: str) -> str | None:
    if len(key) <= len(_FILTER_PREFIX) + 1 or not key.startswith(_FILTER_PREFIX):
        return None
    close = key.find("]", len(_FILTER_PREFIX))
    if close == -1:
        return None
    return key[len(_FILTER_PREFIX):close]


def parse_list_params(params: Mapping[str, str]) -> ListParams:
    """Build ``ListParams`` from ``limit``, ``offset``, ``sort`` and ``filter[col]`` parameters.

    ``limit`` is capped at 50000 and falls back to 20 when zero; unreadable
    numbers keep their defaults.  ``sort`` is ``column`` or ``column:asc|desc``.
    """
    result = ListParams()

    limit_text = params.get("limit", "")
    if limit_text:
        parsed = _parse_unsigned(limit_text)
        if parsed is not None:
            result.limit = parsed
        if result.limit > MAX_LIMIT:
            result.limit = MAX_LIMIT
        if result.limit == 0:
            result.limit = DEFAULT_LIMIT

    offset_text = params.get("offset", "")
    if offset_text:
        parsed = _parse_unsigned(offset_text)
        if parsed is not None:
            result.offset = parsed

    sort_text = params.get("sort", "")
    if sort_text:
        column, direction = _parse_sort(sort_text)
        result.sort_column = column
        if direction is not None:
            result.sort_direction = direction

    for key, value in params.items():
        column = _filter_column(key)
        if column is not None:
            result.filters.append((column, value))

    return result