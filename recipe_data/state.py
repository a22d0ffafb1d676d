"""Observable request lifecycle shared by every recipe query."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from recipe_data.cache import Pagination

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Status(str, Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    SUCCESS = 'success'
    ERROR = 'error'


@dataclass(frozen=True, slots=True)
class RequestState(Generic[T]):
    """Snapshot of one query: never carries data and an error at the same time."""

    status: Status = Status.IDLE
    data: T | None = None
    error: str | None = None
    pagination: Pagination | None = None
    from_cache: bool = False

    @property
    def loading(self) -> bool:
        return self.status is Status.LOADING

    @classmethod
    def success(
        cls,
        data: T | None,
        pagination: Pagination | None = None,
        *,
        from_cache: bool = False,
    ) -> RequestState[T]:
        return cls(Status.SUCCESS, data=data, pagination=pagination, from_cache=from_cache)

    @classmethod
    def failure(cls, message: str) -> RequestState[T]:
        return cls(Status.ERROR, error=message)

    def to_loading(self) -> RequestState[T]:
        # Previous data stays visible while the refetch is in flight.
        return replace(self, status=Status.LOADING, error=None, from_cache=False)


Listener = Callable[[RequestState[Any]], None]


class RequestStateMachine(Generic[T]):
    """Holds the current :class:`RequestState` of one consumer.

    Every fetch cycle gets a generation token from :meth:`begin`; a
    resolution is applied only when its token is still the latest one and
    the machine has not been closed. Late responses from superseded cycles,
    or arriving after the owner went away, are dropped.
    """

    def __init__(self) -> None:
        self._state: RequestState[T] = RequestState()
        self._generation = 0
        self._alive = True
        self._listeners: list[Listener] = []

    @property
    def state(self) -> RequestState[T]:
        return self._state

    @property
    def alive(self) -> bool:
        return self._alive

    def begin(self) -> int:
        self._generation += 1
        self._apply(self._state.to_loading())
        return self._generation

    def resolve(self, token: int, state: RequestState[T]) -> bool:
        if state.loading:
            raise ValueError('resolve() needs a settled state')
        if not self._alive:
            logger.debug('Dropping resolution for closed query')
            return False
        if token != self._generation:
            logger.debug('Dropping stale resolution (generation %d, current %d)', token, self._generation)
            return False
        self._apply(state)
        return True

    def settle(self, state: RequestState[T]) -> bool:
        """Resolve immediately, superseding any cycle still in flight."""
        self._generation += 1
        return self.resolve(self._generation, state)

    def amend(self, **changes: Any) -> None:
        """Change fields of the current state without touching the cycle in flight."""
        self._apply(replace(self._state, **changes))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        self._alive = False
        self._listeners.clear()

    def _apply(self, state: RequestState[T]) -> None:
        if not self._alive:
            return
        self._state = state
        for listener in list(self._listeners):
            listener(state)
