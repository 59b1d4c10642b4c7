"""snapstore: a reactive state container publishing immutable snapshots."""

from importlib.metadata import version as _version

__version__ = _version("snapstore")

from snapstore.errors import (
    StoreError,
    MissingIdentifierError,
    InvalidSelectorError,
    FrozenMutationError,
    StoreDisposedError,
)
from snapstore.freeze import FrozenDict, FrozenList, deep_freeze, is_frozen
from snapstore.entities import EntityState, to_entities
from snapstore.selector import create_selector, accessor_for, FieldAccessor, FunctionAccessor
from snapstore.stream import Stream, EventStream, BehaviorStream
from snapstore.store import Store, StoreOptions
# textual NOT auto-imported — opt-in only

__all__ = [
    "Store",
    "StoreOptions",
    "Stream",
    "EventStream",
    "BehaviorStream",
    "create_selector",
    "accessor_for",
    "FieldAccessor",
    "FunctionAccessor",
    "to_entities",
    "EntityState",
    "deep_freeze",
    "is_frozen",
    "FrozenDict",
    "FrozenList",
    "StoreError",
    "MissingIdentifierError",
    "InvalidSelectorError",
    "FrozenMutationError",
    "StoreDisposedError",
]
