"""Cached recipe data access layer."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:  # pragma: no cover - fallback only triggers when metadata missing
    __version__: str = version('recipe-data')
except PackageNotFoundError:  # pragma: no cover
    __version__ = '0.1.0'

from .client import RecipeClient  # noqa: E402
from .coordinator import FetchCoordinator  # noqa: E402
from .queries import use_collection, use_entity, use_favorites  # noqa: E402
from .server import create_server  # noqa: E402

__all__ = [
    'FetchCoordinator',
    'RecipeClient',
    'create_server',
    'use_collection',
    'use_entity',
    'use_favorites',
    '__version__',
]
