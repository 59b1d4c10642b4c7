"""Deep freeze — lock a snapshot graph against in-place mutation.

Python has no Object.freeze, so freezing is a structural walk that rebuilds
mutable containers as read-only twins:

    dict      -> FrozenDict   (still a dict: compares, iterates, serializes)
    list      -> FrozenList   (still a list)
    set       -> frozenset
    tuple     -> tuple of frozen items

Any other value is left as-is. Already-frozen containers are returned
unchanged, so re-freezing a snapshot that shares frozen subtrees with the
previous one is cheap and keeps identity.

The caller's input is never modified; freezing returns a new graph. Every
mutating method on the frozen types raises FrozenMutationError.
Cyclic input is not supported.
"""

from __future__ import annotations

from typing import Any, TypeVar

from snapstore.errors import FrozenMutationError

T = TypeVar("T")

_SCALARS = (str, bytes, int, float, complex, bool, type(None))


def _reject(container: object, operation: str):
    raise FrozenMutationError(
        f"Cannot {operation} on a frozen {type(container).__name__}; "
        "return a new value from Store.update() instead"
    )


class FrozenDict(dict):
    """A read-only dict. Reads behave exactly like dict."""

    __slots__ = ("_sealed",)

    def __init__(self, *args, **kwargs):
        if getattr(self, "_sealed", False):
            _reject(self, "re-initialize")
        dict.__init__(self, *args, **kwargs)
        self._sealed = True

    def __setitem__(self, key, value):
        _reject(self, f"set key {key!r}")

    def __delitem__(self, key):
        _reject(self, f"delete key {key!r}")

    def __ior__(self, other):
        _reject(self, "update")

    def update(self, *args, **kwargs):
        _reject(self, "update")

    def pop(self, *args):
        _reject(self, "pop")

    def popitem(self):
        _reject(self, "popitem")

    def clear(self):
        _reject(self, "clear")

    def setdefault(self, *args):
        _reject(self, "setdefault")

    def __reduce__(self):
        return (type(self), (dict(self),))

    def __repr__(self) -> str:
        return f"FrozenDict({dict.__repr__(self)})"


class FrozenList(list):
    """A read-only list. Reads behave exactly like list."""

    __slots__ = ("_sealed",)

    def __init__(self, *args):
        if getattr(self, "_sealed", False):
            _reject(self, "re-initialize")
        list.__init__(self, *args)
        self._sealed = True

    def __setitem__(self, index, value):
        _reject(self, "assign an item")

    def __delitem__(self, index):
        _reject(self, "delete an item")

    def __iadd__(self, other):
        _reject(self, "extend")

    def __imul__(self, other):
        _reject(self, "repeat in place")

    def append(self, item):
        _reject(self, "append")

    def extend(self, items):
        _reject(self, "extend")

    def insert(self, index, item):
        _reject(self, "insert")

    def pop(self, index=-1):
        _reject(self, "pop")

    def remove(self, item):
        _reject(self, "remove")

    def clear(self):
        _reject(self, "clear")

    def sort(self, *args, **kwargs):
        _reject(self, "sort")

    def reverse(self):
        _reject(self, "reverse")

    def __reduce__(self):
        return (type(self), (list(self),))

    def __repr__(self) -> str:
        return f"FrozenList({list.__repr__(self)})"


def deep_freeze(value: T, enabled: bool = True) -> T:
    """Return a deeply read-only version of value.

    With enabled=False this is the identity function.
    """
    if not enabled:
        return value
    return _freeze(value)


def _freeze(value: Any) -> Any:
    if isinstance(value, (FrozenDict, FrozenList, frozenset) + _SCALARS):
        return value
    if isinstance(value, dict):
        return FrozenDict({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return FrozenList(_freeze(item) for item in value)
    if type(value) is tuple:
        return tuple(_freeze(item) for item in value)
    if isinstance(value, set):
        return frozenset(value)
    return value


def is_frozen(value: object) -> bool:
    """True if value itself rejects in-place mutation (top level only)."""
    return isinstance(value, (FrozenDict, FrozenList, tuple, frozenset) + _SCALARS)
