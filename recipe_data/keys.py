"""Cache key derivation for collection queries."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, NamedTuple

import httpx

DEFAULT_CACHE_TTL = 60.0

# Reserved query field carrying a per-call freshness override, in seconds.
CACHE_TTL_FIELD = '__cache_ttl'


class NormalizedQuery(NamedTuple):
    key: str
    ttl: float
    params: dict[str, Any]


def normalize_query(
    params: Mapping[str, Any] | None,
    default_ttl: float = DEFAULT_CACHE_TTL,
) -> NormalizedQuery:
    """Derive the cache key, effective TTL and outgoing params for a query.

    The TTL override field never reaches the key or the remote source, and
    key order is irrelevant: ``{'a': 1, 'b': 2}`` and
    ``{'b': 2, 'a': 1, '__cache_ttl': 5}`` share a key.
    """
    raw = dict(params or {})
    override = raw.pop(CACHE_TTL_FIELD, None)
    ttl = default_ttl if override is None else float(override)
    cleaned = clean_params(raw)
    return NormalizedQuery(cache_key(cleaned), ttl, cleaned)


def clean_params(params: Mapping[str, Any]) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, Enum):
            value = value.value
        if isinstance(value, bool):
            value = 'true' if value else 'false'
        normalized[key] = value
    return normalized


def cache_key(params: Mapping[str, Any]) -> str:
    # Sort by name only so repeated values keep their order.
    items = sorted(httpx.QueryParams(params).multi_items(), key=lambda item: item[0])
    return str(httpx.QueryParams(items))
