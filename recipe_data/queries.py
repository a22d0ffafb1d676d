"""Reactive query bindings consumed by presentation layers.

A binding owns one :class:`~recipe_data.state.RequestStateMachine` and
re-runs its fetch cycle whenever its input changes identity (the normalized
cache key for collections, the id for single recipes). Calling ``update``
again with equivalent input is a no-op.

Example:
    >>> recipes = await use_collection(coordinator, {'category': 'soup'})
    >>> recipes.items, recipes.pagination
    >>> await recipes.update({'category': 'salad', 'page': 2})
    >>> await recipes.refetch(force=True)
    >>> recipes.close()
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Callable, Mapping

from recipe_data.coordinator import FetchCoordinator
from recipe_data.state import Listener, RequestState, RequestStateMachine

if TYPE_CHECKING:
    from recipe_data.favorites import FavoritesService

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class _Query:
    def __init__(self) -> None:
        self._machine: RequestStateMachine[Any] = RequestStateMachine()

    @property
    def state(self) -> RequestState[Any]:
        return self._machine.state

    @property
    def loading(self) -> bool:
        return self._machine.state.loading

    @property
    def error(self) -> str | None:
        return self._machine.state.error

    @property
    def closed(self) -> bool:
        return not self._machine.alive

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self._machine.subscribe(listener)

    def close(self) -> None:
        """Stop applying results; in-flight fetches still finish and fill the cache."""
        self._machine.close()


class CollectionQuery(_Query):
    def __init__(
        self, coordinator: FetchCoordinator, params: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__()
        self._coordinator = coordinator
        self._params: dict[str, Any] = dict(params or {})
        self._key: str | None = None

    @property
    def params(self) -> dict[str, Any]:
        return dict(self._params)

    @property
    def items(self) -> list[Any]:
        return _as_items(self._machine.state.data)

    @property
    def pagination(self) -> Mapping[str, Any] | None:
        return self._machine.state.pagination

    async def update(self, params: Mapping[str, Any] | None = _UNSET) -> RequestState[Any]:
        if params is not _UNSET:
            self._params = dict(params or {})
        key = self._coordinator.list_key(self._params)
        if key == self._key:
            return self.state
        logger.debug('Collection query key changed from %r to %r', self._key, key)
        self._key = key
        return await self.refetch()

    async def refetch(self, force: bool = False) -> RequestState[Any]:
        params = dict(self._params)
        self._key = self._coordinator.list_key(params)
        cached = self._coordinator.peek_list(params, force=force)
        if cached is not None:
            self._machine.settle(cached)
            return self.state
        token = self._machine.begin()
        result = await self._coordinator.load_list(params)
        self._machine.resolve(token, result)
        return self.state


class EntityQuery(_Query):
    def __init__(self, coordinator: FetchCoordinator, recipe_id: Any = None) -> None:
        super().__init__()
        self._coordinator = coordinator
        self._recipe_id = recipe_id
        self._started = False

    @property
    def recipe_id(self) -> Any:
        return self._recipe_id

    @property
    def item(self) -> Any:
        return self._machine.state.data

    async def update(self, recipe_id: Any = _UNSET) -> RequestState[Any]:
        if recipe_id is not _UNSET:
            if self._started and recipe_id == self._recipe_id:
                return self.state
            self._recipe_id = recipe_id
        elif self._started:
            return self.state
        return await self.refetch()

    async def refetch(self, force: bool = False) -> RequestState[Any]:
        self._started = True
        recipe_id = self._recipe_id
        cached = self._coordinator.peek_one(recipe_id, force=force)
        if cached is not None:
            self._machine.settle(cached)
            return self.state
        token = self._machine.begin()
        result = await self._coordinator.load_one(recipe_id)
        self._machine.resolve(token, result)
        return self.state


class FavoritesQuery(_Query):
    """Favorite recipes of the current user, loaded through the entity cache."""

    def __init__(self, favorites: FavoritesService) -> None:
        super().__init__()
        self._favorites = favorites
        self._removed: set[str] = set()

    @property
    def items(self) -> list[Any]:
        return _as_items(self._machine.state.data)

    async def refetch(self, force: bool = False) -> RequestState[Any]:
        token = self._machine.begin()
        self._removed.clear()
        result = await self._favorites.load(force=force)
        if self._removed and result.data is not None:
            # Un-favorited while the load was in flight.
            result = replace(result, data=_without(result.data, self._removed))
        self._machine.resolve(token, result)
        return self.state

    def toggle(self, recipe_id: Any) -> bool:
        """Flip a favorite; an un-favorited recipe leaves the visible list at once.

        A load still in flight is not superseded: the removal is applied to
        the visible data now and to the load's result when it resolves.
        """
        favorite = self._favorites.toggle(recipe_id)
        key = str(recipe_id)
        state = self._machine.state
        if favorite:
            self._removed.discard(key)
        elif state.loading:
            self._removed.add(key)
            if state.data is not None:
                self._machine.amend(data=_without(state.data, {key}))
        elif state.data is not None:
            self._machine.settle(replace(state, data=_without(state.data, {key})))
        return favorite


async def use_collection(
    coordinator: FetchCoordinator, params: Mapping[str, Any] | None = None
) -> CollectionQuery:
    query = CollectionQuery(coordinator, params)
    await query.update()
    return query


async def use_entity(coordinator: FetchCoordinator, recipe_id: Any) -> EntityQuery:
    query = EntityQuery(coordinator, recipe_id)
    await query.update()
    return query


async def use_favorites(favorites: FavoritesService) -> FavoritesQuery:
    query = FavoritesQuery(favorites)
    await query.refetch()
    return query


def _item_id(item: Any) -> str | None:
    if isinstance(item, Mapping) and item.get('id') is not None:
        return str(item['id'])
    return None


def _as_items(data: Any) -> list[Any]:
    if data is None:
        return []
    if isinstance(data, (list, tuple)):
        return list(data)
    return [data]


def _without(data: Any, removed: set[str]) -> list[Any]:
    return [item for item in _as_items(data) if _item_id(item) not in removed]
