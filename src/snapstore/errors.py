"""Exception hierarchy for snapstore.

Every error is a caller-correctable usage error. Each one also inherits the
builtin that best describes it, so callers can catch either.
"""

from __future__ import annotations

import json


class StoreError(Exception):
    """Base exception for all snapstore errors."""


class MissingIdentifierError(StoreError, LookupError):
    """A record handed to to_entities() lacks the configured id field."""

    def __init__(self, id_field: str, record: object) -> None:
        self.id_field = id_field
        self.record = record
        super().__init__(f'No unique identifier "{id_field}" found in {_serialize(record)}')


class InvalidSelectorError(StoreError, TypeError):
    """select() or create_selector() got something it cannot apply to a snapshot."""


class FrozenMutationError(StoreError, TypeError):
    """Attempted to mutate part of a frozen snapshot."""


class StoreDisposedError(StoreError, RuntimeError):
    """update() was called on a disposed Store."""


def _serialize(record: object) -> str:
    try:
        return json.dumps(record, separators=(",", ":"), default=repr)
    except (TypeError, ValueError):
        # non-string keys or circular references
        return repr(record)
