import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError

import recipe_data
from recipe_data.favorites import FAVORITES_KEY
from recipe_data.preferences import JsonFilePreferenceStore
from recipe_data.server import create_server

pytestmark = pytest.mark.asyncio

RECIPES = [{'id': '1', 'title': 'Soto Ayam'}, {'id': '2', 'title': 'Rawon'}]


async def test_recipes_list_returns_state(recipe_server, mock_api) -> None:
    api, _ = mock_api
    api.add_json('/api/v1/recipes', {'success': True, 'data': RECIPES, 'pagination': {'page': 1}})

    async with Client(recipe_server) as client:
        result = await client.call_tool('recipes_list', {'category': 'soup'})

    assert result.data['items'] == RECIPES
    assert result.data['pagination'] == {'page': 1}
    assert result.data['loading'] is False
    assert result.data['error'] is None
    assert dict(api.calls[0].url.params) == {'category': 'soup'}


async def test_recipes_list_respects_cache(recipe_server, mock_api) -> None:
    api, _ = mock_api
    api.add_json('/api/v1/recipes', RECIPES)

    async with Client(recipe_server) as client:
        await client.call_tool('recipes_list', {'category': 'soup', 'page': 1})
        await client.call_tool('recipes_list', {'page': 1, 'category': 'soup', 'cache_ttl': 30})
        assert len(api.calls) == 1

        await client.call_tool('recipes_list', {'category': 'soup', 'page': 1, 'force': True})
        assert len(api.calls) == 2


async def test_recipes_list_error_is_reported_not_raised(recipe_server, mock_api) -> None:
    api, _ = mock_api
    api.add_json('/api/v1/recipes', {'success': False, 'message': 'maintenance'}, status_code=503)

    async with Client(recipe_server) as client:
        result = await client.call_tool('recipes_list', {})

    assert result.data['error'] == 'maintenance'
    assert result.data['items'] == []


async def test_extra_params_are_forwarded(recipe_server, mock_api) -> None:
    api, _ = mock_api
    api.add_json('/api/v1/recipes', [])

    async with Client(recipe_server) as client:
        await client.call_tool(
            'recipes_list',
            {'search': 'ayam', 'extra_params': {'category': 'soup', 'region': 'jawa'}},
        )

    assert dict(api.calls[0].url.params) == {
        'category': 'soup',
        'region': 'jawa',
        'search': 'ayam',
    }


async def test_recipe_detail_not_found(recipe_server, mock_api) -> None:
    api, _ = mock_api
    api.add_json('/api/v1/recipes/9', {'success': False, 'message': 'not found'}, status_code=404)

    async with Client(recipe_server) as client:
        result = await client.call_tool('recipe_detail', {'recipe_id': '9'})

    assert result.data['error'] == 'not found'
    assert result.data['item'] is None


async def test_recipe_detail_uses_cache(recipe_server, mock_api) -> None:
    api, _ = mock_api
    api.add_json('/api/v1/recipes/1', {'success': True, 'data': RECIPES[0]})

    async with Client(recipe_server) as client:
        first = await client.call_tool('recipe_detail', {'recipe_id': '1'})
        second = await client.call_tool('recipe_detail', {'recipe_id': '1'})

    assert first.data['item'] == second.data['item'] == RECIPES[0]
    assert len(api.calls) == 1


async def test_favorites_flow(recipe_server, mock_api, preferences) -> None:
    api, _ = mock_api
    api.add_json('/api/v1/recipes/1', RECIPES[0])
    api.add_json('/api/v1/recipes/2', RECIPES[1])

    async with Client(recipe_server) as client:
        added = await client.call_tool('favorite_toggle', {'recipe_id': '1'})
        await client.call_tool('favorite_toggle', {'recipe_id': '2'})
        listed = await client.call_tool('favorites_list', {})
        removed = await client.call_tool('favorite_toggle', {'recipe_id': '1'})

    assert added.data == {'recipe_id': '1', 'favorite': True}
    assert listed.data['ids'] == ['1', '2']
    assert listed.data['items'] == RECIPES
    assert removed.data['favorite'] is False
    assert preferences.get(FAVORITES_KEY) == ['2']


async def test_profile_tools(recipe_server) -> None:
    async with Client(recipe_server) as client:
        profile = await client.call_tool('profile_get', {})
        renamed = await client.call_tool('profile_update_username', {'username': ' Budi '})

        with pytest.raises(ToolError, match='must not be empty'):
            await client.call_tool('profile_update_username', {'username': '  '})

        with pytest.raises(ToolError, match='data:image'):
            await client.call_tool('profile_update_avatar', {'avatar': 'not-a-data-url'})

    assert profile.data['username'] == 'Guest'
    assert renamed.data['username'] == 'Budi'
    assert renamed.data['userId'] == profile.data['userId']


async def test_favorites_list_reports_unreadable_preferences(config, mock_api, tmp_path) -> None:
    _, transport = mock_api
    path = tmp_path / 'prefs.json'
    path.write_text('{broken')
    server = create_server(
        config=config, transport=transport, preferences=JsonFilePreferenceStore(path)
    )

    async with Client(server) as client:
        with pytest.raises(ToolError, match='Corrupt preferences file'):
            await client.call_tool('favorites_list', {})


async def test_package_exports() -> None:
    assert recipe_data.create_server is create_server
    assert sorted(recipe_data.__all__) == [
        'FetchCoordinator',
        'RecipeClient',
        '__version__',
        'create_server',
        'use_collection',
        'use_entity',
        'use_favorites',
    ]
