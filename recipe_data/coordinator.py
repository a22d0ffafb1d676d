"""Cache-aware fetch coordination for recipe collections and single recipes."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

from recipe_data.cache import TTLCacheStore
from recipe_data.keys import DEFAULT_CACHE_TTL, normalize_query
from recipe_data.results import WrappedFailure, WrappedSuccess, classify
from recipe_data.state import RequestState

logger = logging.getLogger(__name__)

LIST_FAILURE_MESSAGE = 'Failed to fetch recipes'
LIST_TRANSPORT_MESSAGE = 'An error occurred while fetching recipes'
ITEM_FAILURE_MESSAGE = 'Failed to fetch recipe'
ITEM_TRANSPORT_MESSAGE = 'An error occurred while fetching recipe'


class DataSource(Protocol):
    async def get_collection(self, params: Mapping[str, Any]) -> Any: ...

    async def get_by_id(self, recipe_id: str) -> Any: ...


class FetchCoordinator:
    """Serves recipe queries from the TTL stores, falling back to the data source.

    Collection results are keyed by the normalized query and honour the
    per-call ``__cache_ttl`` override; single recipes are keyed by their id
    and always use ``entity_ttl``. Every outcome is reported as a
    :class:`~recipe_data.state.RequestState`; nothing raised by the data
    source escapes, and only successful responses are written to a store.

    Each public ``fetch_*`` method has two halves so that bindings can skip
    the loading state on a cache hit: ``peek_*`` answers synchronously from
    the store (or returns ``None``) and ``load_*`` always goes remote.

    Example:
        >>> coordinator = FetchCoordinator(RecipeClient(config))
        >>> state = await coordinator.fetch_list({'category': 'soup'})
        >>> state.data, state.pagination
    """

    def __init__(
        self,
        source: DataSource,
        *,
        collections: TTLCacheStore[Any] | None = None,
        entities: TTLCacheStore[Any] | None = None,
        default_ttl: float = DEFAULT_CACHE_TTL,
        entity_ttl: float = DEFAULT_CACHE_TTL,
    ) -> None:
        self._source = source
        self._collections = collections if collections is not None else TTLCacheStore()
        self._entities = entities if entities is not None else TTLCacheStore()
        self._default_ttl = default_ttl
        self._entity_ttl = entity_ttl

    @property
    def collections(self) -> TTLCacheStore[Any]:
        return self._collections

    @property
    def entities(self) -> TTLCacheStore[Any]:
        return self._entities

    def list_key(self, params: Mapping[str, Any] | None) -> str:
        return normalize_query(params, self._default_ttl).key

    async def fetch_list(
        self, params: Mapping[str, Any] | None = None, *, force: bool = False
    ) -> RequestState[Any]:
        cached = self.peek_list(params, force=force)
        if cached is not None:
            return cached
        return await self.load_list(params)

    def peek_list(
        self, params: Mapping[str, Any] | None = None, *, force: bool = False
    ) -> RequestState[Any] | None:
        if force:
            return None
        query = normalize_query(params, self._default_ttl)
        entry = self._collections.get_fresh(query.key, query.ttl)
        if entry is None:
            return None
        logger.debug('Collection cache hit for %r', query.key)
        return RequestState.success(entry.payload, entry.pagination, from_cache=True)

    async def load_list(self, params: Mapping[str, Any] | None = None) -> RequestState[Any]:
        query = normalize_query(params, self._default_ttl)
        logger.debug('Fetching collection %r', query.key)
        try:
            response = await self._source.get_collection(query.params)
        except Exception as exc:
            logger.warning('Collection fetch for %r failed: %s', query.key, exc)
            return RequestState.failure(str(exc) or LIST_TRANSPORT_MESSAGE)

        result = classify(response)
        if isinstance(result, WrappedFailure):
            logger.warning('Collection fetch for %r rejected: %s', query.key, result.message)
            return RequestState.failure(result.message or LIST_FAILURE_MESSAGE)

        data = result.data if result.data is not None else []
        pagination = result.pagination if isinstance(result, WrappedSuccess) else None
        self._collections.set(query.key, data, pagination)
        return RequestState.success(data, pagination)

    async def fetch_one(self, recipe_id: Any, *, force: bool = False) -> RequestState[Any]:
        cached = self.peek_one(recipe_id, force=force)
        if cached is not None:
            return cached
        return await self.load_one(recipe_id)

    def peek_one(self, recipe_id: Any, *, force: bool = False) -> RequestState[Any] | None:
        if not _has_id(recipe_id):
            return RequestState()
        if force:
            return None
        entry = self._entities.get_fresh(str(recipe_id), self._entity_ttl)
        if entry is None:
            return None
        logger.debug('Recipe cache hit for %r', recipe_id)
        return RequestState.success(entry.payload, from_cache=True)

    async def load_one(self, recipe_id: Any) -> RequestState[Any]:
        if not _has_id(recipe_id):
            return RequestState()
        key = str(recipe_id)
        logger.debug('Fetching recipe %r', key)
        try:
            response = await self._source.get_by_id(key)
        except Exception as exc:
            logger.warning('Recipe fetch for %r failed: %s', key, exc)
            return RequestState.failure(str(exc) or ITEM_TRANSPORT_MESSAGE)

        result = classify(response)
        if isinstance(result, WrappedFailure):
            logger.warning('Recipe fetch for %r rejected: %s', key, result.message)
            return RequestState.failure(result.message or ITEM_FAILURE_MESSAGE)

        data = result.data
        self._entities.set(key, data)
        return RequestState.success(data)


def _has_id(recipe_id: Any) -> bool:
    return recipe_id is not None and str(recipe_id) != ''
