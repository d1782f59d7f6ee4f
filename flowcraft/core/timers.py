"""Cancellable single-shot timers.

Components schedule callbacks through a ``TimerScheduler``: anything with a
``call_later(delay, callback)`` method returning a handle with ``cancel()``.
A running ``asyncio`` event loop fits the protocol as-is; outside an event
loop ``ThreadingTimerScheduler`` backs timers with ``threading.Timer``.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerScheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingTimerScheduler:
    """Run callbacks on daemon ``threading.Timer`` threads.

    Callbacks run while holding ``lock`` so they never interleave with callers
    that hold the same lock (the graph model's lock).
    """

    def __init__(self, lock: threading.RLock | None = None):
        self.lock = lock or threading.RLock()

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, self._run, args=(callback,))
        timer.daemon = True
        timer.start()
        return timer

    def _run(self, callback: Callable[[], None]) -> None:
        with self.lock:
            callback()


class SingleShotTimer:
    """At most one pending call of ``callback``.

    ``start()`` cancels any pending call before scheduling a new one, so a
    burst of starts yields a single call ``delay`` seconds after the last.
    A call whose timer was cancelled after it began firing is dropped.
    """

    def __init__(self, timers: TimerScheduler, delay: float, callback: Callable[[], None]):
        self.timers = timers
        self.delay = delay
        self.callback = callback
        self._handle: TimerHandle | None = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        self.cancel()
        generation = self._generation
        self._handle = self.timers.call_later(self.delay, lambda: self._fire(generation))

    def cancel(self) -> bool:
        """Cancel the pending call. Returns True if one was pending."""
        self._generation += 1
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def _fire(self, generation: int) -> None:
        if generation != self._generation or self._handle is None:
            return
        self._handle = None
        self.callback()
