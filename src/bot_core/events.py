# topic-keyed event emitter feeding the digging controller
# src/bot_core/events.py
"""
Event bridge for bot_core.

Provides a minimal, thread-safe, in-process topic emitter:

- Inward feeds (produced by WorldTracker / BotCoreImpl):
    - PHYSICS_TICK                    → fixed-cadence tick pulse, no payload
    - block_update_topic(position)   → (old_block, new_block); (None, None)
                                        when the world is unloaded
    - DEATH                           → local player died / respawned
- Outward notifications (produced by DiggingController):
    - DIGGING_COMPLETED               → the now-cleared block
    - DIGGING_ABORTED                 → the block that was being dug

Block-update topics are scoped per position so a dig session only ever
hears about its own target.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Callable, Dict, Hashable, List, Tuple

from contracts.types import Vec3

log = logging.getLogger(__name__)


# ============================================================
# Topics
# ============================================================

PHYSICS_TICK = "physics_tick"
DEATH = "death"
DIGGING_COMPLETED = "digging_completed"
DIGGING_ABORTED = "digging_aborted"

BLOCK_UPDATE = "block_update"


def block_update_topic(position: Vec3) -> Tuple[str, Tuple[int, int, int]]:
    """Topic for world changes at one block position."""
    return (BLOCK_UPDATE, position.block_key())


ListenerFn = Callable[..., None]


# ============================================================
# Listener handle
# ============================================================

class Listener:
    """
    Handle returned by EventEmitter.on().

    cancel() detaches the listener; safe to call more than once.
    """

    def __init__(self, emitter: "EventEmitter", topic: Hashable, fn: ListenerFn) -> None:
        self._emitter = emitter
        self.topic = topic
        self.fn = fn

    def cancel(self) -> None:
        self._emitter.off(self.topic, self.fn)


# ============================================================
# Emitter
# ============================================================

class EventEmitter:
    """
    Simple in-process topic emitter.

    Design goals:
    - Exact registration: off() removes one registration of exactly `fn`.
    - Thread-safe: the listener table is protected by a Lock.
    - Each emit iterates over a snapshot of listeners, so listeners may
      subscribe / unsubscribe from inside a callback.
    """

    def __init__(self) -> None:
        self._listeners: Dict[Hashable, List[ListenerFn]] = {}
        self._lock = Lock()

    # --------------------------------------------------------
    # Subscription API
    # --------------------------------------------------------

    def on(self, topic: Hashable, fn: ListenerFn) -> Listener:
        """Register `fn` for `topic` and return a cancellable handle."""
        with self._lock:
            self._listeners.setdefault(topic, []).append(fn)
        return Listener(self, topic, fn)

    def off(self, topic: Hashable, fn: ListenerFn) -> None:
        """
        Remove a previously registered listener.

        Safe to call even if `fn` is not present.
        """
        with self._lock:
            fns = self._listeners.get(topic)
            if not fns or fn not in fns:
                return
            fns.remove(fn)
            if not fns:
                del self._listeners[topic]

    def remove_all(self, topic: Hashable) -> None:
        """Drop every listener registered for `topic`."""
        with self._lock:
            self._listeners.pop(topic, None)

    def listener_count(self, topic: Hashable) -> int:
        with self._lock:
            return len(self._listeners.get(topic, ()))

    def topics(self) -> List[Hashable]:
        """Topics that currently have at least one listener."""
        with self._lock:
            return list(self._listeners)

    # --------------------------------------------------------
    # Publish API
    # --------------------------------------------------------

    def emit(self, topic: Hashable, *args: Any) -> None:
        """
        Call every listener of `topic` with `args`.

        A failing listener is logged and does not prevent the remaining
        listeners from running.
        """
        with self._lock:
            fns = list(self._listeners.get(topic, ()))

        for fn in fns:
            try:
                fn(*args)
            except Exception:
                log.exception("Listener for topic %r raised", topic)

    def clear(self) -> None:
        """
        Clear all listeners.

        Mostly useful for tests; probably not what you want in production.
        """
        with self._lock:
            self._listeners.clear()
