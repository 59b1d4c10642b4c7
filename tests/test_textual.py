"""Tests for snapstore.textual — Textual integration layer."""

import queue
import threading

import pytest
from textual.css.query import NoMatches

from snapstore import Store
from snapstore import textual as stx


class _MockApp:
    """Minimal mock matching the Textual App interface stx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


class _BlockingApp(_MockApp):
    """call_from_thread waits until the main loop runs the callback, like Textual."""

    def __init__(self):
        super().__init__()
        self.pending = queue.Queue()

    def call_from_thread(self, fn, *args):
        done = threading.Event()
        self.pending.put((fn, args, done))
        done.wait()


class TestBind:
    def test_fires_with_current_value(self):
        app = _MockApp()
        store = Store({"count": 1})
        effects = []
        stx.bind(app, store.select("count"), effects.append)
        store.update(lambda state: {"count": 2})
        assert effects == [1, 2]

    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        store = Store({"count": 1})
        effects = []
        stx.bind(app, store.select("count"), effects.append)
        store.update(lambda state: {"count": 2})
        assert effects == []

    def test_skips_during_pause(self):
        app = _MockApp()
        store = Store({"count": 1})
        effects = []
        stx.bind(app, store.select("count"), effects.append)
        with stx.pause(app):
            store.update(lambda state: {"count": 2})
        assert effects == [1]

    def test_catches_nomatch(self):
        """NoMatches from widget queries are swallowed."""
        app = _MockApp()
        store = Store({"count": 1})

        def _raise_nomatch(v):
            raise NoMatches("StatusFooter")

        unsubscribe = stx.bind(app, store.select("count"), _raise_nomatch)
        store.update(lambda state: {"count": 2})
        unsubscribe()

    def test_propagates_real_errors(self):
        app = _MockApp()
        store = Store({"count": 1})
        calls = []

        def _raise_value_error(v):
            calls.append(v)
            if v > 1:
                raise ValueError("boom")

        stx.bind(app, store.select("count"), _raise_value_error)
        with pytest.raises(ValueError, match="boom"):
            store.update(lambda state: {"count": 2})
        assert calls == [1, 2]

    def test_unsubscribe_stops_effects(self):
        app = _MockApp()
        store = Store({"count": 1})
        effects = []
        unsubscribe = stx.bind(app, store.select("count"), effects.append)
        unsubscribe()
        store.update(lambda state: {"count": 3})
        assert effects == [1]

    def test_thread_marshal(self):
        """Updates from a background thread go through call_from_thread."""
        app = _MockApp()
        store = Store({"count": 1})
        effects = []
        stx.bind(app, store.select("count"), effects.append)

        t = threading.Thread(target=lambda: store.update(lambda state: {"count": 2}))
        t.start()
        t.join()

        assert effects == [1, 2]
        assert len(app._call_from_thread_log) == 1

    def test_worker_update_does_not_block_main_loop(self):
        app = _BlockingApp()
        store = Store({"count": 0, "other": 0})
        effects = []
        stx.bind(app, store.select("count"), effects.append)

        worker = threading.Thread(target=lambda: store.update(lambda state: {"count": 1}))
        worker.start()
        fn, args, done = app.pending.get(timeout=2)  # worker is now blocked

        # The main loop can still take the store lock and update.
        assert store._lock.acquire(timeout=2)
        store._lock.release()
        store.update(lambda state: {"other": 1})

        fn(*args)
        done.set()
        worker.join(timeout=2)
        assert not worker.is_alive()
        assert effects == [0, 1]
        assert store.state == {"count": 1, "other": 1}


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert stx.is_safe(app)

        with pytest.raises(RuntimeError):
            with stx.pause(app):
                assert not stx.is_safe(app)
                raise RuntimeError("oops")

        assert stx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        app = _MockApp()
        attrs_before = set(vars(app))
        with stx.pause(app):
            attrs_during = set(vars(app))
        assert attrs_before == attrs_during
        assert attrs_before == set(vars(app))

    def test_multiple_apps_independent(self):
        app_a = _MockApp()
        app_b = _MockApp()
        with stx.pause(app_a):
            assert not stx.is_safe(app_a)
            assert stx.is_safe(app_b)
