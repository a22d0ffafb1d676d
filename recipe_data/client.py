"""Async HTTP data source for the recipe API."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Mapping
from urllib.parse import quote

import httpx

from recipe_data.config import Config
from recipe_data.errors import (
    RecipeAPIError,
    RecipeDataError,
    RecipeRateLimitError,
    RecipeTransportError,
)
from recipe_data.keys import clean_params
from recipe_data.results import SUCCESS_FIELD, FetchResult, classify

logger = logging.getLogger(__name__)


class RecipeClient:
    """Async HTTP client for the recipe REST API.

    Implements the data source consumed by
    :class:`~recipe_data.coordinator.FetchCoordinator`; it does no caching
    of its own. Responses are returned already classified as a
    :data:`~recipe_data.results.FetchResult`, including error responses
    whose JSON body reports ``success: false``.

    Features:
    - Exponential backoff retry for rate-limited and network errors
    - Connection pooling limits taken from the configuration
    - Optional bearer token authentication

    Example:
        >>> client = RecipeClient(Config.from_env())
        >>> result = await client.get_collection({'category': 'soup', 'page': 1})
        >>> recipe = await client.get_by_id('42')
    """

    def __init__(
        self,
        config: Config,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    async def get_collection(self, params: Mapping[str, Any]) -> FetchResult:
        """List recipes matching ``params`` (``GET {prefix}/recipes``).

        Raises:
            RecipeRateLimitError: Still rate limited after all retries
            RecipeAPIError: HTTP error without a shaped JSON body
            RecipeTransportError: Network, protocol or JSON decoding errors
        """
        return await self._request('recipes', clean_params(params))

    async def get_by_id(self, recipe_id: str) -> FetchResult:
        """Fetch one recipe (``GET {prefix}/recipes/{id}``).

        Raises the same exceptions as :meth:`get_collection`.
        """
        return await self._request(f'recipes/{quote(str(recipe_id), safe="")}', None)

    async def _request(self, path: str, params: Mapping[str, Any] | None) -> FetchResult:
        """Make HTTP request with exponential backoff retry logic."""
        url_path = f'{self._config.api_prefix.rstrip("/")}/{path}'
        headers = {
            'User-Agent': self._config.user_agent,
            'Accept': 'application/json',
        }
        if self._config.api_token:
            headers['Authorization'] = f'Bearer {self._config.api_token}'

        last_exception: RecipeDataError | None = None

        limits = httpx.Limits(
            max_connections=self._config.connection_pool_maxsize,
            max_keepalive_connections=self._config.connection_pool_max_keepalive,
        )

        for attempt in range(self._config.max_retries + 1):
            try:
                async with httpx.AsyncClient(
                    base_url=self._config.base_url,
                    headers=headers,
                    timeout=self._config.timeout,
                    transport=self._transport,
                    limits=limits,
                ) as client:
                    response = await client.get(url_path, params=params)
                    if response.is_error:
                        return self._handle_error_response(response)
                    return classify(self._decode(response))

            except _RetryableStatus as exc:
                last_exception = RecipeRateLimitError('Rate limited by the recipe API')
                if attempt < self._config.max_retries:
                    delay = self._calculate_backoff_delay(attempt)
                    logger.warning('Rate limited on %s, retrying in %.2fs', url_path, delay)
                    await asyncio.sleep(delay)
                    continue
                raise last_exception from exc

            except (httpx.ConnectError, httpx.TimeoutException) as exc:
                last_exception = RecipeTransportError(exc)
                if attempt < self._config.max_retries:
                    delay = self._calculate_backoff_delay(attempt)
                    logger.warning('%s on %s, retrying in %.2fs', type(exc).__name__, url_path, delay)
                    await asyncio.sleep(delay)
                    continue
                raise last_exception from exc

            except httpx.HTTPError as exc:
                raise RecipeTransportError(exc) from exc

        if last_exception:
            raise last_exception
        raise RecipeDataError('Unexpected error in retry loop')

    def _handle_error_response(self, response: httpx.Response) -> FetchResult:
        if response.status_code == 429:
            raise _RetryableStatus(response.status_code)
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, Mapping):
            if SUCCESS_FIELD in body:
                return classify(body)
            message = body.get('message') or body.get('error') or body.get('detail')
        else:
            message = response.reason_phrase or None
        raise RecipeAPIError(response.status_code, message)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RecipeTransportError(exc) from exc

    def _calculate_backoff_delay(self, attempt: int) -> float:
        """Calculate exponential backoff delay with jitter."""
        delay = self._config.retry_base_delay * (2**attempt)
        delay = min(delay, self._config.retry_max_delay)

        # ±25% jitter
        jitter = delay * 0.25 * (2 * random.random() - 1)
        delay += jitter

        return max(0.1, delay)


class _RetryableStatus(Exception):
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f'HTTP {status_code}')
