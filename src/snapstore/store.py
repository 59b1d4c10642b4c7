"""Store — a single guarded state value published as immutable snapshots.

update() merges a partial patch into the current snapshot, freezes the result
and publishes it to every subscriber before returning. Readers either take
the current snapshot synchronously or subscribe to a stream that replays it
and follows every later one. select() narrows that stream to one value and
only emits when the value actually changes.

If the patch sets `entities`, `ids` is recomputed from the merged mapping
(see snapstore.entities).

Thread safety: updates are serialized with a re-entrant lock, so the
published snapshots form a total order. Subscribers are notified after the
lock is released, so a callback may block on another thread (e.g. Textual's
call_from_thread) or call update() itself. A subscriber never sees a snapshot
older than one it has already received.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from snapstore.entities import to_entities
from snapstore.errors import StoreDisposedError
from snapstore.freeze import deep_freeze
from snapstore.selector import accessor_for, create_selector
from snapstore.stream import BehaviorStream, Stream

logger = logging.getLogger("snapstore.store")

T = TypeVar("T", bound=Mapping)


@dataclass(frozen=True)
class StoreOptions:
    """Construction-time configuration. Fixed for the life of the Store."""

    freeze: bool = True
    entity_id: str = "id"


class Store(Generic[T]):
    """Snapshot container with partial updates, entity sync and selectors.

    Usage:
        store = Store({"title": "Todo", "ids": [], "entities": {}})
        store.update(lambda state: {"entities": store.to_entities(items)})
        store.state["ids"]   # ids follow entities

        titles = []
        store.select("title").subscribe(titles.append)
    """

    create_selector = staticmethod(create_selector)

    def __init__(self, initial_state: T, options: StoreOptions | None = None) -> None:
        self._options = options if options is not None else StoreOptions()
        self._lock = threading.RLock()
        self._revision = 0
        self._disposed = False
        self._state: BehaviorStream[T] = BehaviorStream(
            deep_freeze(initial_state, self._options.freeze)
        )
        logger.debug(
            "Store created: %d keys, freeze=%s, entity_id=%r",
            len(initial_state), self._options.freeze, self._options.entity_id,
        )

    @property
    def options(self) -> StoreOptions:
        return self._options

    @property
    def state(self) -> T:
        """The current snapshot."""
        return self._state.value

    @property
    def revision(self) -> int:
        """Number of updates published since construction."""
        return self._revision

    @property
    def disposed(self) -> bool:
        return self._disposed

    def snapshot(self) -> T:
        """Return the most recently published snapshot."""
        return self._state.value

    def stream(self) -> Stream[T]:
        """Snapshots: the current one on subscribe, then every update."""
        return self._state.as_readonly()

    def update(self, fn: Callable[[T], Mapping[str, Any] | None]) -> T:
        """Merge fn(current snapshot) into the state and publish the result.

        The patch shallow-merges over the current snapshot (patch wins). When
        it carries `entities`, `ids` is rebuilt from the merged entities.
        Returns the new snapshot.
        """
        with self._lock:
            if self._disposed:
                raise StoreDisposedError("Cannot update a disposed Store")
            patch = fn(self._state.value)
            if patch is None:
                patch = {}
            elif not isinstance(patch, Mapping):
                raise TypeError(
                    f"update() function must return a mapping, got '{type(patch).__name__}'"
                )
            merged = {**self._state.value, **patch}
            if patch.get("entities") is not None:
                merged["ids"] = list(merged["entities"].keys())
            new_state = deep_freeze(merged, self._options.freeze)
            self._revision += 1
            version = self._state.set(new_state)
            logger.debug("Publishing revision %d: %s", self._revision, list(patch))
        # Subscribers run outside the lock; they may block on other threads.
        self._state.notify(version)
        return new_state

    def select(self, accessor: str | Callable[[T], Any]) -> Stream[Any]:
        """Stream of one projected value, emitted only when it changes.

        accessor is a top-level field name or a selector callable. Consecutive
        results are compared with `is` then `==`.
        """
        return self._state.map(accessor_for(accessor)).distinct()

    def to_entities(self, records: Iterable[Mapping]) -> dict[str, Any]:
        """Normalize records by this Store's entity_id field."""
        return to_entities(records, self._options.entity_id)

    def dispose(self) -> None:
        """Complete the snapshot stream. Further updates raise StoreDisposedError."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            logger.debug("Store disposed at revision %d", self._revision)
        self._state.dispose()

    def __enter__(self) -> Store[T]:
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    def __repr__(self) -> str:
        status = "disposed" if self.disposed else "active"
        return f"Store(revision={self._revision}, {status})"
