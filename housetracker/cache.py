"""Process-wide query cache shared by every view.

Entries are keyed by tuples (see ``COLLECTION_KEY``, ``item_key`` and
``discovery_key``). A view reads through ``QueryCache.fetch``; a successful
mutation calls ``refetch`` or ``invalidate`` on the entries it affects.
Nothing here retries: a failed fetch is stored as a ``LoadError`` and a failed
mutation as a ``MutationError`` until the next explicit trigger.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Hashable,
    List,
    Optional,
    Tuple,
    TypeVar,
)

from .errors import LoadError, MutationError, RemoteError

logger = logging.getLogger(__name__)

DEFAULT_STALE_TIME = 30.0

QueryKey = Tuple[Hashable, ...]
Listener = Callable[["QueryState"], None]

COLLECTION_KEY: QueryKey = ("houses",)


def item_key(listing_id: str) -> QueryKey:
    return ("houses", listing_id)


def discovery_key(link: str) -> QueryKey:
    return ("discover", link)


class Status(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class QueryState:
    """Immutable snapshot of one cache entry."""

    status: Status = Status.IDLE
    data: Any = None
    error: Optional[Exception] = None
    updated_at: Optional[float] = None
    is_fetching: bool = False
    is_stale: bool = False

    @property
    def is_loading(self) -> bool:
        """True while the first fetch of an entry is in flight."""
        return self.status is Status.LOADING

    @property
    def is_success(self) -> bool:
        return self.status is Status.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status is Status.ERROR


class QueryCache:
    """Key to (data, freshness, in-flight flag) map with change listeners."""

    def __init__(self,
                 stale_time: float = DEFAULT_STALE_TIME,
                 clock: Callable[[], float] = time.monotonic):
        self.stale_time = stale_time
        self._clock = clock
        self._entries: Dict[QueryKey, QueryState] = {}
        self._listeners: Dict[QueryKey, List[Listener]] = {}
        self._lock = threading.RLock()

    def get(self, key: QueryKey) -> QueryState:
        with self._lock:
            return self._entries.get(key, QueryState())

    def fetch(self, key: QueryKey, fetcher: Callable[[], Any]) -> QueryState:
        """Return the cached entry when fresh, otherwise fetch it."""
        state = self.get(key)
        if state.is_success and not self._is_stale(state):
            logger.debug("Cache hit for %s", key)
            return state
        return self.refetch(key, fetcher)

    def refetch(self, key: QueryKey, fetcher: Callable[[], Any]) -> QueryState:
        """Run ``fetcher`` once and store its outcome under ``key``."""
        self._update(key, self._start)
        logger.debug("Fetching %s", key)
        try:
            data = fetcher()
        except LoadError as exc:
            logger.warning("Query %s failed: %s", key, exc)
            return self._update(key, lambda state: self._fail(state, exc))
        except RemoteError as exc:
            logger.warning("Query %s failed: %s", key, exc)
            error = LoadError(str(exc))
            error.__cause__ = exc
            return self._update(key, lambda state: self._fail(state, error))
        return self._update(key, lambda state: self._succeed(state, data))

    def invalidate(self, key: QueryKey) -> None:
        """Mark an entry stale so the next ``fetch`` goes to the network."""
        with self._lock:
            if key not in self._entries:
                return
        logger.debug("Invalidating %s", key)
        self._update(key, lambda state: replace(state, is_stale=True))

    def remove(self, key: QueryKey) -> None:
        with self._lock:
            if self._entries.pop(key, None) is None:
                return
        logger.debug("Removed %s from cache", key)
        self._notify(key, QueryState())

    def subscribe(self, key: QueryKey, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` on every change of ``key``; returns an unsubscribe."""
        with self._lock:
            self._listeners.setdefault(key, []).append(listener)
        return lambda: self.unsubscribe(key, listener)

    def unsubscribe(self, key: QueryKey, listener: Listener) -> None:
        with self._lock:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)

    def _is_stale(self, state: QueryState) -> bool:
        if state.is_stale or state.updated_at is None:
            return True
        return self._clock() - state.updated_at >= self.stale_time

    def _start(self, state: QueryState) -> QueryState:
        status = state.status if state.data is not None else Status.LOADING
        return replace(state, status=status, is_fetching=True)

    def _succeed(self, state: QueryState, data: Any) -> QueryState:
        return QueryState(
            status=Status.SUCCESS,
            data=data,
            updated_at=self._clock(),
        )

    def _fail(self, state: QueryState, error: Exception) -> QueryState:
        return replace(
            state,
            status=Status.ERROR,
            error=error,
            is_fetching=False,
        )

    def _update(self, key: QueryKey,
                change: Callable[[QueryState], QueryState]) -> QueryState:
        with self._lock:
            state = change(self._entries.get(key, QueryState()))
            self._entries[key] = state
        self._notify(key, state)
        return state

    def _notify(self, key: QueryKey, state: QueryState) -> None:
        with self._lock:
            listeners = list(self._listeners.get(key, []))
        for listener in listeners:
            listener(state)


TVars = TypeVar("TVars")
TResult = TypeVar("TResult")


class Mutation(Generic[TVars, TResult]):
    """A single remote write and its lifecycle.

    ``on_success`` runs after the response arrives and before the mutation
    reports success, so a refetch it triggers has completed by the time
    ``status`` leaves ``LOADING``.
    """

    def __init__(self,
                 mutation_fn: Callable[[TVars], TResult],
                 on_success: Optional[Callable[[TResult, TVars], Any]] = None):
        self.mutation_fn = mutation_fn
        self.on_success = on_success
        self.status = Status.IDLE
        self.data: Optional[TResult] = None
        self.error: Optional[MutationError] = None

    @property
    def is_loading(self) -> bool:
        return self.status is Status.LOADING

    @property
    def is_success(self) -> bool:
        return self.status is Status.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status is Status.ERROR

    def mutate(self, variables: TVars) -> Status:
        self.status = Status.LOADING
        self.error = None
        try:
            result = self.mutation_fn(variables)
        except RemoteError as exc:
            logger.warning("Mutation failed for %r: %s", variables, exc)
            self.error = MutationError(str(exc))
            self.error.__cause__ = exc
            self.status = Status.ERROR
            return self.status

        self.data = result
        if self.on_success is not None:
            self.on_success(result, variables)
        self.status = Status.SUCCESS
        return self.status

    def reset(self) -> None:
        self.status = Status.IDLE
        self.data = None
        self.error = None
