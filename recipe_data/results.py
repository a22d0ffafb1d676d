"""Response shapes returned by recipe data sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union

from recipe_data.cache import Pagination

SUCCESS_FIELD = 'success'


@dataclass(frozen=True, slots=True)
class WrappedSuccess:
    data: Any
    pagination: Pagination | None = None


@dataclass(frozen=True, slots=True)
class WrappedFailure:
    message: str | None = None


@dataclass(frozen=True, slots=True)
class RawPayload:
    data: Any


FetchResult = Union[WrappedSuccess, WrappedFailure, RawPayload]


def classify(response: Any) -> FetchResult:
    """Tag a data source response with its shape.

    A mapping with a ``success`` field is a wrapped response; anything else,
    ``None`` included, is taken as the payload itself. Responses that are
    already tagged pass through unchanged.

    Example:
        >>> classify({'success': True, 'data': [1], 'pagination': {'page': 1}})
        WrappedSuccess(data=[1], pagination={'page': 1})
        >>> classify({'success': False, 'message': 'not found'})
        WrappedFailure(message='not found')
        >>> classify([1, 2])
        RawPayload(data=[1, 2])
    """
    if isinstance(response, (WrappedSuccess, WrappedFailure, RawPayload)):
        return response
    if isinstance(response, Mapping) and SUCCESS_FIELD in response:
        if response[SUCCESS_FIELD]:
            return WrappedSuccess(
                data=response.get('data'),
                pagination=response.get('pagination'),
            )
        return WrappedFailure(message=response.get('message') or None)
    return RawPayload(data=response)
