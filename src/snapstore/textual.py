"""Textual integration for snapstore. Opt-in — requires textual.

bind() pushes values from a Store stream (usually store.select(...)) into
widgets. The guard, NoMatches handling and thread marshaling live here so
effect callbacks stay plain widget updates.
"""

import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

logger = logging.getLogger("snapstore.textual")

# Keyed by id(app) so multiple apps work in tests. An id is present only
# while inside a pause() block for that app.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bound effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def bind(app, stream, effect):
    """Subscribe effect to stream, guarded for use with Textual widgets.

    Values arriving while the app is paused or not running are skipped.
    Values published from another thread are marshaled through
    app.call_from_thread. NoMatches from widget queries is swallowed;
    any other exception propagates to the publisher.

    Returns the stream's unsubscribe function.

    Usage:
        bind(app, store.select("title"), lambda t: app.query_one("#title").update(t))
    """
    _main = threading.get_ident()

    def _guarded(value):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, value)
        else:
            _safe(value)

    def _safe(value):
        try:
            effect(value)
        except NoMatches:
            logger.debug("Skipped %r: widget not mounted", value)

    return stream.subscribe(_guarded)
