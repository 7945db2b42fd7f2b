"""
Bounded Parallel Map

Runs a blocking function over many items on a thread pool while capping
how many calls are in flight, and hands each finished future back to the
caller as soon as it completes.

Work is submitted through a sliding window rather than all at once, so a
65535-port scan does not materialize 65535 futures before the first one
finishes, and cancellation can stop dispatch between completions.
"""

from __future__ import annotations

import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Generator, Iterable, TypeVar

T = TypeVar("T")
R = TypeVar("R")

# How often the dispatcher wakes up to notice a cancellation request.
POLL_INTERVAL = 0.1


def bounded_map(
    func: Callable[[T], R],
    items: Iterable[T],
    max_workers: int,
    cancel_event: threading.Event | None = None,
    window: int | None = None,
) -> Generator[tuple[T, Future[R]], None, None]:
    """
    Apply ``func`` to every item with at most ``max_workers`` running at once.

    Yields ``(item, future)`` pairs in completion order; calling
    ``future.result()`` re-raises anything ``func`` raised. Once
    ``cancel_event`` is set no further items are submitted, futures that
    have already finished are still yielded, and queued work is dropped.
    Calls still running at that point are abandoned rather than joined.
    A ``KeyboardInterrupt`` while waiting is re-raised only after the
    finished futures have been yielded.

    Args:
        func: Blocking callable applied to each item.
        items: Work items; consumed lazily.
        max_workers: Concurrency ceiling (must be >= 1).
        cancel_event: Optional event that stops dispatch when set.
        window: Maximum submitted-but-unfinished futures
            (default: twice ``max_workers``).
    """
    if max_workers < 1:
        raise ValueError("max_workers must be >= 1")

    window = window or max_workers * 2
    work = iter(items)
    pending: dict[Future[R], T] = {}
    executor = ThreadPoolExecutor(
        max_workers=max_workers, thread_name_prefix="portscout-probe"
    )

    def cancelled() -> bool:
        return cancel_event is not None and cancel_event.is_set()

    def refill() -> None:
        while len(pending) < window and not cancelled():
            try:
                item = next(work)
            except StopIteration:
                return
            pending[executor.submit(func, item)] = item

    try:
        refill()
        while pending:
            if cancelled():
                for future in [f for f in pending if f.done()]:
                    yield pending.pop(future), future
                break

            interrupted = False
            try:
                done, _ = wait(
                    pending, timeout=POLL_INTERVAL, return_when=FIRST_COMPLETED
                )
            except KeyboardInterrupt:
                # Hand back finished work before letting the interrupt through
                interrupted = True
                done = {f for f in pending if f.done()}
            for future in done:
                yield pending.pop(future), future
            if interrupted:
                raise KeyboardInterrupt
            refill()
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
