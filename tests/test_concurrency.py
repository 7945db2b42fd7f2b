"""Tests for the bounded parallel map."""

import threading
import time
from concurrent.futures import wait as wait_all

import pytest

from portscout import concurrency
from portscout.concurrency import bounded_map


class ActiveCounter:
    """Instrumented work function that tracks peak concurrency."""

    def __init__(self, delay: float = 0.01) -> None:
        self.delay = delay
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def __call__(self, item):
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            time.sleep(self.delay)
            return item * 2
        finally:
            with self._lock:
                self.active -= 1


def test_yields_every_item():
    results = {item: future.result() for item, future in bounded_map(lambda x: x * 2, range(50), 8)}
    assert results == {i: i * 2 for i in range(50)}


@pytest.mark.parametrize("limit", [1, 3, 10])
def test_never_exceeds_max_workers(limit):
    counter = ActiveCounter()
    list(bounded_map(counter, range(60), max_workers=limit))
    assert 1 <= counter.peak <= limit


def test_reaches_the_concurrency_limit():
    counter = ActiveCounter(delay=0.05)
    list(bounded_map(counter, range(40), max_workers=5))
    assert counter.peak == 5


def test_exceptions_surface_through_future():
    def boom(item):
        if item == 3:
            raise RuntimeError("bad item")
        return item

    errors = []
    for item, future in bounded_map(boom, range(6), 2):
        try:
            future.result()
        except RuntimeError:
            errors.append(item)
    assert errors == [3]


def test_cancel_event_stops_dispatch():
    cancel = threading.Event()
    seen = []

    for item, future in bounded_map(lambda x: x, range(10_000), 4, cancel_event=cancel):
        seen.append(future.result())
        if len(seen) == 5:
            cancel.set()

    assert 5 <= len(seen) < 10_000
    assert len(set(seen)) == len(seen)


def test_preset_cancel_submits_nothing():
    cancel = threading.Event()
    cancel.set()
    assert list(bounded_map(lambda x: x, range(10), 2, cancel_event=cancel)) == []


def test_rejects_zero_workers():
    with pytest.raises(ValueError):
        list(bounded_map(lambda x: x, range(3), 0))


def test_consumes_items_lazily():
    consumed = []

    def items():
        for i in range(1000):
            consumed.append(i)
            yield i

    gen = bounded_map(lambda x: x, items(), max_workers=2, window=4)
    next(gen)
    assert len(consumed) <= 5
    gen.close()


def test_interrupt_while_waiting_yields_finished_work(monkeypatch):
    def interrupted_wait(futures, timeout=None, return_when=None):
        wait_all(futures)
        raise KeyboardInterrupt

    monkeypatch.setattr(concurrency, "wait", interrupted_wait)
    seen = []

    with pytest.raises(KeyboardInterrupt):
        for item, future in bounded_map(lambda x: x, range(4), max_workers=2, window=4):
            seen.append(future.result())

    assert sorted(seen) == [0, 1, 2, 3]
