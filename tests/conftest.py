import os
import sys
from datetime import datetime, timedelta, timezone

import pytest


def pytest_configure():
    # Ensure `src/` is importable as top-level for `storage.*` / `persistence.*` imports
    root = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    src_path = os.path.join(root, "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


class _ManualHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual-time scheduler: callbacks fire only when `advance()` passes their due time."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers = []  # (due, seq, handle, callback)
        self._seq = 0

    def call_later(self, delay, callback):
        handle = _ManualHandle()
        self._seq += 1
        self._timers.append((self.now + delay, self._seq, handle, callback))
        return handle

    @property
    def active(self) -> int:
        return sum(1 for _, _, h, _ in self._timers if not h.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted(
                (t for t in self._timers if not t[2].cancelled and t[0] <= target),
                key=lambda t: (t[0], t[1]),
            )
            if not due:
                break
            timer = due[0]
            self._timers.remove(timer)
            self.now = timer[0]
            timer[3]()
        self.now = target
        self._timers = [t for t in self._timers if not t[2].cancelled]


class FakeClock:
    def __init__(self, t: datetime = datetime(2026, 10, 18, 9, 30, 0, 123000, tzinfo=timezone.utc)) -> None:
        self.t = t

    def __call__(self) -> datetime:  # acts like utc_now
        return self.t

    def advance(self, **kwargs) -> None:
        self.t += timedelta(**kwargs)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
