"""Favorite recipes stored as a list of ids in the preference store."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from recipe_data.coordinator import FetchCoordinator
from recipe_data.preferences import PreferenceStore
from recipe_data.state import RequestState

logger = logging.getLogger(__name__)

FAVORITES_KEY = 'favorites'
FAVORITES_FAILURE_MESSAGE = 'Failed to load favorites'


class FavoritesService:
    def __init__(self, preferences: PreferenceStore, coordinator: FetchCoordinator) -> None:
        self._preferences = preferences
        self._coordinator = coordinator

    def ids(self) -> list[str]:
        raw = self._preferences.get(FAVORITES_KEY, [])
        if not isinstance(raw, list):
            logger.warning('Ignoring malformed favorites value of type %s', type(raw).__name__)
            return []
        return [str(recipe_id) for recipe_id in raw if recipe_id is not None and recipe_id != '']

    def is_favorite(self, recipe_id: Any) -> bool:
        return str(recipe_id) in self.ids()

    def toggle(self, recipe_id: Any) -> bool:
        """Add or remove a favorite and return whether it is now a favorite."""
        ids = self.ids()
        key = str(recipe_id)
        if key in ids:
            ids.remove(key)
            favorite = False
        else:
            ids.append(key)
            favorite = True
        self._preferences.set(FAVORITES_KEY, ids)
        return favorite

    def remove(self, recipe_id: Any) -> None:
        if self.is_favorite(recipe_id):
            self.toggle(recipe_id)

    async def load(self, *, force: bool = False) -> RequestState[list[Any]]:
        """Fetch every favorite recipe concurrently.

        Recipes that fail to load or come back empty are left out rather
        than failing the whole list.
        """
        try:
            ids = self.ids()
        except Exception as exc:
            logger.warning('Reading favorites failed: %s', exc)
            return RequestState.failure(str(exc) or FAVORITES_FAILURE_MESSAGE)
        if not ids:
            return RequestState.success([])

        states = await asyncio.gather(
            *(self._coordinator.fetch_one(recipe_id, force=force) for recipe_id in ids)
        )
        recipes = []
        for recipe_id, state in zip(ids, states):
            if state.error is not None:
                logger.warning('Skipping favorite %r: %s', recipe_id, state.error)
                continue
            if state.data:
                recipes.append(state.data)
        return RequestState.success(recipes)
