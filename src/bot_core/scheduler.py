# interval timers and disposable subscription sets
# src/bot_core/scheduler.py
"""
Background interval timers for bot_core.

Digging runs two best-effort periodic actions that are independent of the
tick cadence (arm swing and re-aim). They are expressed through a small
Scheduler protocol so tests can drive time by hand (see
bot_core.testing.fakes.ManualScheduler).

SubscriptionSet groups every handle a dig session owns (timers, event
listeners) so the whole set is torn down in one call.
"""

from __future__ import annotations

import logging
from threading import Event, Lock, Thread
from typing import Callable, List, Protocol

log = logging.getLogger(__name__)


class Subscription(Protocol):
    """Anything that can be cancelled: timers, event listeners."""

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Runs a callback repeatedly until the returned handle is cancelled."""

    def call_every(
        self,
        interval_s: float,
        fn: Callable[[], None],
        *,
        name: str = "interval",
    ) -> Subscription:
        ...


# ---------------------------------------------------------------------------
# Threading implementation
# ---------------------------------------------------------------------------


class _IntervalThread:
    """Daemon thread calling `fn` every `interval_s` until cancelled."""

    def __init__(self, interval_s: float, fn: Callable[[], None], name: str) -> None:
        self._interval_s = interval_s
        self._fn = fn
        self._stop = Event()
        self._thread = Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self._interval_s):
            try:
                self._fn()
            except Exception:
                # Interval actions are best-effort.
                log.debug("Interval callback %s failed", self._thread.name, exc_info=True)

    def cancel(self) -> None:
        self._stop.set()


class ThreadingScheduler:
    """
    Scheduler backed by one daemon thread per interval.

    Callbacks run off the caller's thread; they must take whatever lock
    guards the state they touch.
    """

    def call_every(
        self,
        interval_s: float,
        fn: Callable[[], None],
        *,
        name: str = "interval",
    ) -> Subscription:
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s!r}")
        return _IntervalThread(interval_s, fn, name)


# ---------------------------------------------------------------------------
# Disposable set
# ---------------------------------------------------------------------------


class SubscriptionSet:
    """
    Collection of subscriptions disposed together.

    dispose() is idempotent; anything added after disposal is cancelled
    immediately.
    """

    def __init__(self) -> None:
        self._items: List[Subscription] = []
        self._disposed = False
        self._lock = Lock()

    def add(self, sub: Subscription) -> Subscription:
        with self._lock:
            if not self._disposed:
                self._items.append(sub)
                return sub
        sub.cancel()
        return sub

    @property
    def disposed(self) -> bool:
        return self._disposed

    def __len__(self) -> int:
        return len(self._items)

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            items, self._items = self._items, []

        for sub in items:
            try:
                sub.cancel()
            except Exception:
                log.exception("Failed to cancel subscription %r", sub)
