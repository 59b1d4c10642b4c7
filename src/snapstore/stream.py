"""Push-based streams — the publish/subscribe primitive under Store.

EventStream is a hot, multi-subscriber subject: emit() pushes synchronously
to every current subscriber, in subscription order. A subscriber that raises
does not stop delivery to the others; the error is re-raised once every
subscriber has had the value (an ExceptionGroup if several raised).

BehaviorStream also holds a current value and replays it to each new
subscriber. Every value it holds carries a version, and a subscriber never
receives a version older than one it has already seen. So when a subscriber
publishes again from inside its callback, later subscribers get the newer
value and skip the stale one the outer fan-out was still delivering.

Operators (map/filter/distinct) return lazy derived streams: subscribing to a
derived stream subscribes to its source at that moment, with fresh operator
state for that subscription. Replay therefore reaches every subscriber, and
one subscriber's distinct() history never leaks into another's.

dispose() is terminal. Subscribers get on_complete once and are dropped;
derived streams report disposed as soon as their source is.
"""

from __future__ import annotations

import itertools
import threading
from abc import ABC, abstractmethod
from typing import Callable, Generic, Iterable, TypeVar

T = TypeVar("T")
U = TypeVar("U")

Disposer = Callable[[], None]
Operator = Callable[[Callable[[U], None]], Callable[[T], None]]

_UNSET = object()


def _noop() -> None:
    pass


class _Observer(Generic[T]):
    __slots__ = ("on_next", "on_complete", "seen")

    def __init__(self, on_next: Callable[[T], None], on_complete: Callable[[], None] | None) -> None:
        self.on_next = on_next
        self.on_complete = on_complete
        self.seen = -1  # last BehaviorStream version delivered

    def complete(self) -> None:
        if self.on_complete is not None:
            self.on_complete()


def _fan_out(observers: Iterable[_Observer], deliver: Callable[[_Observer], None]) -> None:
    """Run deliver for every observer, then re-raise what they raised."""
    errors: list[Exception] = []
    for observer in observers:
        try:
            deliver(observer)
        except Exception as exc:
            errors.append(exc)
    if len(errors) == 1:
        raise errors[0]
    if errors:
        raise ExceptionGroup("Stream subscribers raised", errors)


class Stream(ABC, Generic[T]):
    """Subscribe-only view with operator chaining."""

    @property
    @abstractmethod
    def disposed(self) -> bool:
        """True once no further values can arrive."""

    @abstractmethod
    def subscribe(
        self,
        callback: Callable[[T], None],
        on_complete: Callable[[], None] | None = None,
    ) -> Disposer:
        """Register a callback. Returns a function that removes it."""

    def map(self, fn: Callable[[T], U]) -> Stream[U]:
        """Transform values through fn."""
        return _DerivedStream(self, lambda emit: lambda value: emit(fn(value)))

    def filter(self, fn: Callable[[T], bool]) -> Stream[T]:
        """Only pass values where fn returns True."""

        def _operator(emit):
            def _relay(value):
                if fn(value):
                    emit(value)

            return _relay

        return _DerivedStream(self, _operator)

    def distinct(self, equals: Callable[[T, T], bool] | None = None) -> Stream[T]:
        """Drop values equal to the previous one seen by the same subscription.

        Default comparison is `new is last or new == last`.
        """

        def _operator(emit):
            last = _UNSET

            def _relay(value):
                nonlocal last
                if last is not _UNSET:
                    if equals is not None:
                        if equals(last, value):
                            return
                    elif value is last or value == last:
                        return
                last = value
                emit(value)

            return _relay

        return _DerivedStream(self, _operator)

    def as_readonly(self) -> Stream[T]:
        """A view that can be subscribed to but not emitted into."""
        return _DerivedStream(self, lambda emit: emit)


class EventStream(Stream[T]):
    """Hot multi-subscriber stream."""

    def __init__(self) -> None:
        self._subscribers: list[_Observer[T]] = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def emit(self, value: T) -> None:
        """Push a value to all subscribers. No-op once disposed."""
        if self._disposed:
            return
        _fan_out(list(self._subscribers), lambda observer: observer.on_next(value))

    def subscribe(
        self,
        callback: Callable[[T], None],
        on_complete: Callable[[], None] | None = None,
    ) -> Disposer:
        observer = _Observer(callback, on_complete)
        if self._disposed:
            observer.complete()
            return _noop
        self._subscribers.append(observer)

        def _unsubscribe() -> None:
            try:
                self._subscribers.remove(observer)
            except ValueError:
                pass  # already removed

        self._on_subscribe(observer)
        return _unsubscribe

    def _on_subscribe(self, observer: _Observer[T]) -> None:
        """Hook run right after a subscriber is registered."""

    def dispose(self) -> None:
        """Complete the stream: notify and drop every subscriber."""
        if self._disposed:
            return
        self._disposed = True
        observers = list(self._subscribers)
        self._subscribers.clear()
        _fan_out(observers, _Observer.complete)

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else f"{len(self._subscribers)} subscribers"
        return f"{type(self).__name__}({state})"


class BehaviorStream(EventStream[T]):
    """EventStream with a current value, replayed to every new subscriber.

    emit() is set() followed by notify(). A publisher that must not call
    subscribers while holding its own lock can set() under the lock and
    notify() after releasing it.
    """

    def __init__(self, value: T) -> None:
        super().__init__()
        self._value = value
        self._version = 0
        self._guard = threading.Lock()

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> int:
        """Make value current without notifying. Returns its version."""
        with self._guard:
            if not self._disposed:
                self._value = value
                self._version += 1
            return self._version

    def notify(self, version: int) -> None:
        """Deliver the value stored as version, unless it was superseded."""
        if self._disposed:
            return
        with self._guard:
            if version != self._version:
                return  # whoever set the newer value delivers it
            value = self._value
        _fan_out(
            list(self._subscribers),
            lambda observer: self._deliver(observer, version, value),
        )

    def emit(self, value: T) -> None:
        self.notify(self.set(value))

    def _deliver(self, observer: _Observer[T], version: int, value: T) -> None:
        with self._guard:
            if version <= observer.seen:
                return
            observer.seen = version
        observer.on_next(value)

    def _on_subscribe(self, observer: _Observer[T]) -> None:
        with self._guard:
            version, value = self._version, self._value
        self._deliver(observer, version, value)


class _DerivedStream(Stream[U]):
    """Lazy operator stream: every subscription re-subscribes to the source."""

    def __init__(self, source: Stream[T], operator: Operator) -> None:
        self._source = source
        self._operator = operator
        self._upstream: dict[int, tuple[Disposer, _Observer[U]]] = {}
        self._keys = itertools.count()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed or self._source.disposed

    def subscribe(
        self,
        callback: Callable[[U], None],
        on_complete: Callable[[], None] | None = None,
    ) -> Disposer:
        observer = _Observer(callback, on_complete)
        if self.disposed:
            observer.complete()
            return _noop
        key = next(self._keys)

        def _completed() -> None:
            self._upstream.pop(key, None)
            observer.complete()

        unsubscribe_source = self._source.subscribe(self._operator(callback), _completed)
        self._upstream[key] = (unsubscribe_source, observer)

        def _unsubscribe() -> None:
            entry = self._upstream.pop(key, None)
            if entry is not None:
                entry[0]()

        return _unsubscribe

    def dispose(self) -> None:
        """Detach every subscriber of this view. The source is unaffected."""
        if self._disposed:
            return
        self._disposed = True
        entries = list(self._upstream.values())
        self._upstream.clear()
        for unsubscribe_source, _observer in entries:
            unsubscribe_source()
        _fan_out([observer for _, observer in entries], _Observer.complete)
