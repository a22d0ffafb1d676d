"""FastMCP server exposing cached recipe queries as tools."""

from __future__ import annotations

from typing import Annotated, Any, Awaitable, Callable

import httpx
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from recipe_data.cache import TTLCacheStore
from recipe_data.client import RecipeClient
from recipe_data.config import Config
from recipe_data.coordinator import FetchCoordinator
from recipe_data.errors import ProfileError, RecipeDataError
from recipe_data.favorites import FavoritesService
from recipe_data.keys import CACHE_TTL_FIELD
from recipe_data.preferences import JsonFilePreferenceStore, MemoryPreferenceStore, PreferenceStore
from recipe_data.profile import ProfileService
from recipe_data.queries import CollectionQuery, EntityQuery, FavoritesQuery

ForceParam = Annotated[
    bool,
    Field(description='Bypass the response cache even when a fresh entry exists.'),
]
RecipeIdParam = Annotated[str, Field(description='Identifier of the recipe.')]


def create_server(
    config: Config | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    preferences: PreferenceStore | None = None,
) -> FastMCP:
    """Create the FastMCP server and wire up the recipe data layer.

    This is the composition root: it owns the two response stores shared by
    every tool call, the coordinator in front of them, and the preference
    store used for favorites and the profile.

    Args:
        config: Configuration instance. If None, will be created from environment.
        transport: Custom HTTP transport for testing. Uses default if None.
        preferences: Preference store. Defaults to a JSON file when
            ``config.preferences_path`` is set, otherwise process memory.

    Returns:
        Configured FastMCP server instance.

    Example:
        >>> server = create_server(Config(base_url="https://recipes.example.com"))
        >>> server.run()
    """

    config = config or Config.from_env()
    if preferences is None:
        if config.preferences_path:
            preferences = JsonFilePreferenceStore(config.preferences_path)
        else:
            preferences = MemoryPreferenceStore()

    client = RecipeClient(config, transport=transport)
    coordinator = FetchCoordinator(
        client,
        collections=TTLCacheStore(),
        entities=TTLCacheStore(),
        default_ttl=config.cache_ttl,
        entity_ttl=config.entity_cache_ttl,
    )
    favorites = FavoritesService(preferences, coordinator)
    profiles = ProfileService(preferences)

    mcp = FastMCP(name='recipes')

    def register_tool(
        *,
        name: str,
        description: str,
        read_only: bool = True,
    ) -> Callable[
        [Callable[..., Awaitable[dict[str, Any]]]], Callable[..., Awaitable[dict[str, Any]]]
    ]:
        def decorator(
            func: Callable[..., Awaitable[dict[str, Any]]],
        ) -> Callable[..., Awaitable[dict[str, Any]]]:
            return mcp.tool(
                name=name,
                description=description,
                annotations={'readOnlyHint': read_only, 'idempotentHint': read_only},
            )(func)

        return decorator

    @register_tool(
        name='recipes_list',
        description=(
            'List recipes, optionally filtered by category or search text. Results are '
            'cached in memory for the configured TTL; pass cache_ttl to override it for '
            'this call or force to bypass the cache.'
        ),
    )
    async def recipes_list(
        category: str | None = None,
        search: str | None = None,
        page: int | None = None,
        limit: int | None = None,
        cache_ttl: Annotated[
            float | None, Field(description='Freshness override in seconds for this query.')
        ] = None,
        force: ForceParam = False,
        extra_params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = dict(extra_params or {})
        named = {'category': category, 'search': search, 'page': page, 'limit': limit}
        params.update({key: value for key, value in named.items() if value is not None})
        if cache_ttl is not None:
            params[CACHE_TTL_FIELD] = cache_ttl
        query = CollectionQuery(coordinator, params)
        await query.refetch(force=force)
        return {
            'items': query.items,
            'loading': query.loading,
            'error': query.error,
            'pagination': dict(query.pagination) if query.pagination is not None else None,
        }

    @register_tool(
        name='recipe_detail',
        description='Fetch a single recipe by id, served from the cache while fresh.',
    )
    async def recipe_detail(recipe_id: RecipeIdParam, force: ForceParam = False) -> dict[str, Any]:
        query = EntityQuery(coordinator, recipe_id)
        await query.refetch(force=force)
        return {'item': query.item, 'loading': query.loading, 'error': query.error}

    @register_tool(
        name='favorites_list',
        description='List the recipes marked as favorites. Recipes that fail to load are skipped.',
    )
    async def favorites_list(force: ForceParam = False) -> dict[str, Any]:
        try:
            ids = favorites.ids()
        except RecipeDataError as exc:
            raise ToolError(str(exc)) from exc
        query = FavoritesQuery(favorites)
        await query.refetch(force=force)
        return {'ids': ids, 'items': query.items, 'error': query.error}

    @register_tool(
        name='favorite_toggle',
        description='Add a recipe to the favorites, or remove it if it already is one.',
        read_only=False,
    )
    async def favorite_toggle(recipe_id: RecipeIdParam) -> dict[str, Any]:
        return {'recipe_id': recipe_id, 'favorite': favorites.toggle(recipe_id)}

    @register_tool(name='profile_get', description='Return the local user profile.')
    async def profile_get() -> dict[str, Any]:
        return profiles.get().model_dump(by_alias=True)

    @register_tool(
        name='profile_update_username',
        description='Change the display name of the local user profile.',
        read_only=False,
    )
    async def profile_update_username(
        username: Annotated[str, Field(description='New display name; surrounding spaces are trimmed.')],
    ) -> dict[str, Any]:
        try:
            return profiles.update_username(username).model_dump(by_alias=True)
        except ProfileError as exc:
            raise ToolError(str(exc)) from exc

    @register_tool(
        name='profile_update_avatar',
        description='Replace the avatar of the local user profile with a base64 data:image/ URL.',
        read_only=False,
    )
    async def profile_update_avatar(
        avatar: Annotated[str, Field(description='Avatar image as a base64 data URL, at most 2 MiB.')],
    ) -> dict[str, Any]:
        try:
            return profiles.update_avatar(avatar).model_dump(by_alias=True)
        except ProfileError as exc:
            raise ToolError(str(exc)) from exc

    return mcp
