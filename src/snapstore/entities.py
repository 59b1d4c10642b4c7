"""Entity normalization — arrays of records to an id-keyed mapping.

A Store whose state includes the EntityState fields gets the `ids` list kept
in sync automatically: whenever an update sets `entities`, the Store recomputes
`ids` from the merged mapping. Callers never edit `ids` themselves.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Generic, TypedDict, TypeVar

from snapstore.errors import MissingIdentifierError

E = TypeVar("E", bound=Mapping)


class EntityState(TypedDict, Generic[E]):
    """State fields for a normalized collection. Extend with your own fields."""

    ids: list[str]
    entities: dict[str, E]


def to_entities(records: Iterable[E], id_field: str = "id") -> dict[str, E]:
    """Index records by str(record[id_field]), preserving input order.

    Duplicate ids: the later record wins, keeping the position of the first.
    The input is not modified.

    Usage:
        to_entities([{"id": "a", "v": 1}, {"id": "b", "v": 2}])
        # {"a": {"id": "a", "v": 1}, "b": {"id": "b", "v": 2}}
    """
    entities: dict[str, E] = {}
    for record in records:
        if not isinstance(record, Mapping) or id_field not in record:
            raise MissingIdentifierError(id_field, record)
        entities[str(record[id_field])] = record
    return entities
