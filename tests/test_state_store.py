from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path
from threading import Barrier, Thread

from devhub.infrastructure.state.memory_state_store import InMemoryStateStore

from fakes import utc


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def test_issued_state_is_valid_exactly_once():
    store = InMemoryStateStore(ttl_seconds=600)
    state = store.issue(origin="10.0.0.1")

    first = store.consume(token=state.token, origin="10.0.0.1")
    second = store.consume(token=state.token, origin="10.0.0.1")

    assert first.valid is True
    assert second.valid is False
    assert second.reason == "not_found"


def test_unknown_state_is_not_found():
    store = InMemoryStateStore()

    result = store.consume(token="never-issued", origin=None)

    assert result.valid is False
    assert result.reason == "not_found"


def test_state_tokens_are_random_and_long():
    store = InMemoryStateStore()
    tokens = {store.issue(origin=None).token for _ in range(50)}

    assert len(tokens) == 50
    assert all(len(token) >= 32 for token in tokens)


def test_state_older_than_window_is_expired_and_removed():
    clock = FakeClock(utc())
    store = InMemoryStateStore(ttl_seconds=600, clock=clock)
    state = store.issue(origin=None)

    clock.now = utc() + timedelta(seconds=601)
    result = store.consume(token=state.token, origin=None)

    assert result.valid is False
    assert result.reason == "expired"
    assert len(store) == 0


def test_origin_mismatch_is_logged_but_accepted(caplog):
    store = InMemoryStateStore()
    state = store.issue(origin="10.0.0.1")

    with caplog.at_level(logging.WARNING):
        result = store.consume(token=state.token, origin="10.0.0.2")

    assert result.valid is True
    assert "origin changed" in caplog.text


def test_sweep_removes_only_expired_states():
    clock = FakeClock(utc())
    store = InMemoryStateStore(ttl_seconds=600, clock=clock)
    old = store.issue(origin=None)
    clock.now = utc() + timedelta(seconds=500)
    fresh = store.issue(origin=None)

    clock.now = utc() + timedelta(seconds=700)
    removed = store.sweep()

    assert removed == 1
    assert store.consume(token=old.token, origin=None).reason == "not_found"
    assert store.consume(token=fresh.token, origin=None).valid is True


def test_concurrent_consume_accepts_single_caller():
    store = InMemoryStateStore()
    state = store.issue(origin=None)
    workers = 8
    barrier = Barrier(workers)
    results = []

    def _consume():
        barrier.wait()
        results.append(store.consume(token=state.token, origin=None))

    threads = [Thread(target=_consume) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sum(1 for result in results if result.valid) == 1


def test_sql_state_store_consumes_with_delete_returning():
    source = Path("devhub/infrastructure/state/sql_state_store.py").read_text(encoding="utf-8")

    assert "DELETE FROM public.oauth_states" in source
    assert "RETURNING token, origin, issued_at" in source
    assert "WHERE issued_at < :cutoff" in source
