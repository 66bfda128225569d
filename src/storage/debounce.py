from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, Protocol


logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Schedules a deferred callback; `asyncio` event loops satisfy this too."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle: ...


class ThreadingScheduler:
    """Runs callbacks on daemon `threading.Timer` threads."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class Debouncer:
    """
    Trailing-edge debounce with a single pending slot.

    - `call(fn)` cancels any pending callback and schedules `fn` after
      `delay_seconds` of quiet.
    - A steady stream of calls closer together than the delay keeps
      postponing the callback; it never fires on a fixed cadence.
    - `flush()` runs the pending callback now, `cancel()` drops it.

    States: idle (no handle) and pending (one handle). A timer that fires after
    being superseded finds a different generation and does nothing. Taking and
    running a callback share one lock, so callbacks never overlap and an older
    one cannot finish after a newer one.
    """

    def __init__(self, delay_seconds: float, *, scheduler: Optional[Scheduler] = None) -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self._delay = delay_seconds
        self._scheduler = scheduler or ThreadingScheduler()
        self._lock = threading.Lock()
        self._run_lock = threading.RLock()
        self._handle: Optional[TimerHandle] = None
        self._pending: Optional[Callable[[], Any]] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._handle is not None

    def call(self, fn: Callable[[], Any]) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
                logger.debug("debounce: restarting pending timer")
            self._generation += 1
            generation = self._generation
            self._pending = fn
            self._handle = self._scheduler.call_later(self._delay, lambda: self._fire(generation))

    def _take(self, generation: Optional[int]) -> Optional[Callable[[], Any]]:
        with self._lock:
            if self._handle is None:
                return None
            if generation is not None and generation != self._generation:
                return None
            fn = self._pending
            self._handle = None
            self._pending = None
            return fn

    def _fire(self, generation: int) -> None:
        with self._run_lock:
            fn = self._take(generation)
            if fn is None:
                return
            # Runs on the scheduler's thread; nobody upstream sees the exception
            try:
                fn()
            except Exception:
                logger.exception("debounce: deferred callback failed")

    def flush(self) -> bool:
        """Run the pending callback immediately. Returns False when idle."""
        with self._lock:
            handle = self._handle
        if handle is None:
            return False
        handle.cancel()
        with self._run_lock:
            fn = self._take(None)
            if fn is None:
                return False
            fn()
        return True

    def cancel(self) -> bool:
        """Drop the pending callback without running it. Returns False when idle."""
        with self._lock:
            if self._handle is None:
                return False
            self._handle.cancel()
            self._handle = None
            self._pending = None
            self._generation += 1
            return True
