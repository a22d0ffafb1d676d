"""Configuration handling for the recipe data layer."""

from __future__ import annotations

import logging
from os import environ
from dataclasses import dataclass
from typing import TypeVar
from urllib.parse import urlparse

from recipe_data import __version__

DEFAULT_BASE_URL = 'http://localhost:3000'
DEFAULT_API_PREFIX = '/api/v1'
DEFAULT_TIMEOUT_SECONDS = 20.0
DEFAULT_CACHE_TTL_SECONDS = 60.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 1.0
DEFAULT_RETRY_MAX_DELAY = 60.0
DEFAULT_CONNECTION_POOL_MAXSIZE = 10
DEFAULT_CONNECTION_POOL_MAX_KEEPALIVE = 5
DEFAULT_LOG_LEVEL = 'WARNING'


@dataclass(slots=True)
class Config:
    """Configuration settings for the recipe data layer.

    Values can be customized via environment variables or direct instantiation.

    Environment Variables:
        RECIPES_BASE_URL: Base URL of the recipe API (default: http://localhost:3000)
        RECIPES_API_PREFIX: Path prefix of the API routes (default: /api/v1)
        RECIPES_API_TOKEN: Optional bearer token sent with every request
        RECIPES_USER_AGENT: Custom User-Agent header
        RECIPES_TIMEOUT: Request timeout in seconds (default: 20.0)
        RECIPES_CACHE_TTL: Default freshness of cached collections in seconds (default: 60.0)
        RECIPES_ENTITY_CACHE_TTL: Freshness of cached single recipes in seconds (default: 60.0)
        RECIPES_MAX_RETRIES: Maximum retry attempts (default: 3)
        RECIPES_RETRY_BASE_DELAY: Base retry delay in seconds (default: 1.0)
        RECIPES_RETRY_MAX_DELAY: Maximum retry delay in seconds (default: 60.0)
        RECIPES_CONNECTION_POOL_MAXSIZE: Max concurrent connections (default: 10)
        RECIPES_CONNECTION_POOL_MAX_KEEPALIVE: Max persistent connections (default: 5)
        RECIPES_PREFERENCES_PATH: JSON file for favorites and profile (in-memory when unset)
        RECIPES_LOG_LEVEL: Logging level name for ``python -m recipe_data`` (default: WARNING)

    Example:
        >>> config = Config.from_env()
        >>>
        >>> config = Config(
        >>>     base_url="https://recipes.example.com",
        >>>     cache_ttl=120.0,
        >>> )
    """

    base_url: str = DEFAULT_BASE_URL
    api_prefix: str = DEFAULT_API_PREFIX
    api_token: str | None = None
    user_agent: str = f'recipe-data/{__version__}'
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS
    entity_cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY
    retry_max_delay: float = DEFAULT_RETRY_MAX_DELAY
    connection_pool_maxsize: int = DEFAULT_CONNECTION_POOL_MAXSIZE
    connection_pool_max_keepalive: int = DEFAULT_CONNECTION_POOL_MAX_KEEPALIVE
    preferences_path: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> Config:
        """Create a configuration instance from environment variables.

        Unparseable or out-of-range numbers fall back to their defaults.

        Raises:
            ValueError: If the resulting configuration is inconsistent.
        """

        base_url = environ.get('RECIPES_BASE_URL', DEFAULT_BASE_URL).rstrip('/')
        api_prefix = environ.get('RECIPES_API_PREFIX', DEFAULT_API_PREFIX)
        api_token = environ.get('RECIPES_API_TOKEN') or None
        user_agent = environ.get('RECIPES_USER_AGENT') or f'recipe-data/{__version__}'

        timeout = _read_number('RECIPES_TIMEOUT', float, DEFAULT_TIMEOUT_SECONDS)
        cache_ttl = _read_number(
            'RECIPES_CACHE_TTL', float, DEFAULT_CACHE_TTL_SECONDS, minimum=0.0
        )
        entity_cache_ttl = _read_number(
            'RECIPES_ENTITY_CACHE_TTL', float, DEFAULT_CACHE_TTL_SECONDS, minimum=0.0
        )
        max_retries = int(_read_number('RECIPES_MAX_RETRIES', int, DEFAULT_MAX_RETRIES, minimum=0))
        retry_base_delay = _read_number(
            'RECIPES_RETRY_BASE_DELAY', float, DEFAULT_RETRY_BASE_DELAY, minimum=0.1
        )
        retry_max_delay = _read_number(
            'RECIPES_RETRY_MAX_DELAY', float, DEFAULT_RETRY_MAX_DELAY, minimum=1.0
        )
        connection_pool_maxsize = int(
            _read_number(
                'RECIPES_CONNECTION_POOL_MAXSIZE', int, DEFAULT_CONNECTION_POOL_MAXSIZE, minimum=1
            )
        )
        connection_pool_max_keepalive = int(
            _read_number(
                'RECIPES_CONNECTION_POOL_MAX_KEEPALIVE',
                int,
                DEFAULT_CONNECTION_POOL_MAX_KEEPALIVE,
                minimum=1,
            )
        )
        preferences_path = environ.get('RECIPES_PREFERENCES_PATH') or None
        log_level = (environ.get('RECIPES_LOG_LEVEL') or DEFAULT_LOG_LEVEL).upper()

        return cls(
            base_url=base_url,
            api_prefix=api_prefix,
            api_token=api_token,
            user_agent=user_agent,
            timeout=timeout,
            cache_ttl=cache_ttl,
            entity_cache_ttl=entity_cache_ttl,
            max_retries=max_retries,
            retry_base_delay=retry_base_delay,
            retry_max_delay=retry_max_delay,
            connection_pool_maxsize=connection_pool_maxsize,
            connection_pool_max_keepalive=connection_pool_max_keepalive,
            preferences_path=preferences_path,
            log_level=log_level,
        )._validate()

    def _validate(self) -> Config:
        """Validate all configuration values for correctness.

        Returns:
            Self for method chaining.

        Raises:
            ValueError: If any configuration value is invalid with descriptive message.
        """
        parsed = urlparse(self.base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f'Invalid base_url: {self.base_url}')
        if parsed.scheme not in ('http', 'https'):
            raise ValueError(f'base_url must use http or https scheme: {self.base_url}')
        if not self.api_prefix.startswith('/'):
            raise ValueError(f'api_prefix must start with "/": {self.api_prefix}')

        if self.timeout <= 0:
            raise ValueError(f'timeout must be positive: {self.timeout}')
        if self.cache_ttl < 0:
            raise ValueError(f'cache_ttl must be non-negative: {self.cache_ttl}')
        if self.entity_cache_ttl < 0:
            raise ValueError(f'entity_cache_ttl must be non-negative: {self.entity_cache_ttl}')
        if self.max_retries < 0:
            raise ValueError(f'max_retries must be non-negative: {self.max_retries}')
        if self.retry_base_delay <= 0:
            raise ValueError(f'retry_base_delay must be positive: {self.retry_base_delay}')
        if self.retry_max_delay <= 0:
            raise ValueError(f'retry_max_delay must be positive: {self.retry_max_delay}')
        if self.retry_base_delay > self.retry_max_delay:
            raise ValueError(
                f'retry_base_delay ({self.retry_base_delay}) must not exceed '
                f'retry_max_delay ({self.retry_max_delay})'
            )
        if self.connection_pool_maxsize < 1:
            raise ValueError(
                f'connection_pool_maxsize must be at least 1: {self.connection_pool_maxsize}'
            )
        if self.connection_pool_max_keepalive < 1:
            raise ValueError(
                f'connection_pool_max_keepalive must be at least 1: {self.connection_pool_max_keepalive}'
            )
        if self.connection_pool_max_keepalive > self.connection_pool_maxsize:
            raise ValueError(
                f'connection_pool_max_keepalive ({self.connection_pool_max_keepalive}) must not exceed '
                f'connection_pool_maxsize ({self.connection_pool_maxsize})'
            )
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f'Unknown log_level: {self.log_level}')

        return self


T = TypeVar('T', bound=float | int)


def _read_number(
    name: str,
    cast: type[T],
    default: T,
    *,
    minimum: T | None = None,
) -> T:
    raw = environ.get(name)
    if not raw:
        return default
    try:
        value = cast(raw)
    except (TypeError, ValueError):
        return default
    if minimum is not None and value < minimum:
        return default
    return value
