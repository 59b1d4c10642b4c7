"""Selectors — pure projections of a snapshot.

create_selector() composes selectors: every input selector runs against the
snapshot, left to right, and the projector receives their results. There is
no caching; change detection belongs to the stream returned by Store.select().

select() accepts either a field name or a callable. accessor_for() resolves
that into one of two accessor variants so the rest of the Store deals with a
single Selector shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, TypeVar

from snapstore.errors import InvalidSelectorError

S = TypeVar("S")
V = TypeVar("V")

Selector = Callable[[S], V]


def create_selector(*args: Callable) -> Selector:
    """Compose input selectors with a projector (the last argument).

    Usage:
        get_tasks = lambda state: state["tasks"]
        get_users = lambda state: state["users"]
        summary = create_selector(
            get_tasks, get_users, lambda tasks, users: (len(tasks), len(users))
        )
        summary(store.state)

    Composed selectors can feed further compositions.
    """
    if len(args) < 2:
        raise InvalidSelectorError(
            "create_selector() needs at least one input selector and a projector"
        )
    for arg in args:
        if not callable(arg):
            raise InvalidSelectorError(
                f"Argument must be callable, got '{type(arg).__name__}'"
            )
    *selectors, projector = args

    def selector(state):
        return projector(*[input_selector(state) for input_selector in selectors])

    return selector


@dataclass(frozen=True)
class FieldAccessor:
    """Reads one top-level field; a missing field reads as None."""

    name: str

    def __call__(self, state: Mapping[str, Any]) -> Any:
        return state.get(self.name)


@dataclass(frozen=True)
class FunctionAccessor:
    """Applies an arbitrary selector."""

    fn: Callable[[Any], Any]

    def __call__(self, state: Any) -> Any:
        return self.fn(state)


Accessor = FieldAccessor | FunctionAccessor


def accessor_for(accessor: object) -> Accessor:
    """Resolve a field name or callable into an Accessor.

    Raises InvalidSelectorError for anything else.
    """
    match accessor:
        case FieldAccessor() | FunctionAccessor():
            return accessor
        case str():
            return FieldAccessor(accessor)
        case _ if callable(accessor):
            return FunctionAccessor(accessor)
        case _:
            raise InvalidSelectorError(
                f"Argument must be 'str' or callable, got '{type(accessor).__name__}'"
            )
