"""Memoizing caches that build each value at most once per key."""

import threading
from collections.abc import Callable
from concurrent.futures import Future
from typing import Generic
from typing import TypeVar

from proxyforge.logging import get_logger

K = TypeVar("K")
V = TypeVar("V")

logger = get_logger(__name__)


class _PendingEntry(Generic[V]):
    """One in-flight or completed cache entry."""

    future: "Future[V]"
    owner_thread_id: int

    def __init__(self, owner_thread_id: int) -> None:
        """Initialize a pending entry.

        :param owner_thread_id: Identifier of the thread running the builder.
        """
        self.future = Future()
        self.owner_thread_id = owner_thread_id


class SingleFlightCache(Generic[K, V]):
    """Map of keys to lazily built, immutable values.

    The map lock only guards insertion and removal of entries. Builders run
    outside of it, so distinct keys build in parallel while concurrent
    requests for one key wait on that key's future. Failed builds are
    removed again, leaving the key free for a later retry.
    """

    _name: str
    _lock: threading.Lock
    _entries: dict[K, _PendingEntry[V]]

    def __init__(self, name: str) -> None:
        """Initialize an empty cache.

        :param name: Cache name used in log events.
        """
        self._name = name
        self._lock = threading.Lock()
        self._entries = {}

    def get_or_create(self, key: K, builder: Callable[[K], V]) -> V:
        """Return the value for ``key``, building it on first use.

        :param key: Cache key.
        :param builder: Callable producing the value from the key.
        :returns: Cached value shared by every caller.
        :raises RuntimeError: If the builder re-enters the cache for its own key.
        """
        current_thread_id: int = threading.get_ident()
        is_owner: bool = False
        with self._lock:
            entry: _PendingEntry[V] | None = self._entries.get(key)
            if entry is None:
                entry = _PendingEntry(current_thread_id)
                self._entries[key] = entry
                is_owner = True

        if is_owner is False:
            is_done: bool = entry.future.done()
            if is_done is False and entry.owner_thread_id == current_thread_id:
                raise RuntimeError(f"{self._name} cache re-entered while building {key!r}")
            return entry.future.result()

        try:
            value: V = builder(key)
        except BaseException as exc:
            with self._lock:
                if self._entries.get(key) is entry:
                    self._entries.pop(key, None)
            logger.warning(
                "cache_build_failed",
                cache=self._name,
                key=repr(key),
                error_type=type(exc).__name__,
            )
            entry.future.set_exception(exc)
            raise

        entry.future.set_result(value)
        return value

    def get(self, key: K) -> V | None:
        """Return a completed value without building.

        :param key: Cache key.
        :returns: Cached value or ``None`` when absent or still building.
        """
        with self._lock:
            entry: _PendingEntry[V] | None = self._entries.get(key)
        if entry is None or entry.future.done() is False:
            return None
        return entry.future.result()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        """Forget every entry; values handed out earlier stay valid."""
        with self._lock:
            self._entries.clear()
