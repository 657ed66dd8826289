# src/bot_core/core.py
"""
Concrete BotCore implementation for the digging client.

This module wires together:
- PacketClient / IPC transport
- WorldTracker (blocks + player state, world-change events)
- EventEmitter (tick, block-update, death, dig notifications)
- DiggingController (single active excavation session)
- PacketLookController (viewpoint requests)

Public surface:
    class BotCoreImpl:
        connect() -> None
        disconnect() -> None
        tick() -> None
        dig(block, force_look, dig_face) -> Future
        stop_digging() -> None
        can_dig_block(block) -> bool
        dig_time(block) -> float
        block_at(position) -> Block | None

Design constraints:
- No packet or protocol details leak to callers.
- Dig outcomes are delivered through the returned Future and the
  digging_completed / digging_aborted events.
- Non-dig failures (connection, tick I/O) raise BotCoreError.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Optional

from contracts.types import Block, Vec3
from contracts.world import OrientationControl
from env.schema import EnvProfile

from .dig_time import DigTimeFn
from .digging import DiggingController, OrientationMode
from .events import PHYSICS_TICK, EventEmitter
from .faces import FaceHint
from .look import PacketLookController
from .net import PacketClient, create_packet_client_for_env
from .scheduler import Scheduler
from .tracing import DigTracer
from .world_tracker import WorldTracker


log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Domain errors
# ---------------------------------------------------------------------------


@dataclass
class BotCoreError(RuntimeError):
    """
    Domain-level error raised by BotCoreImpl for non-dig failures.

    Examples:
        - failed to connect or disconnect cleanly
        - tick loop I/O failures

    Dig failures do NOT raise this; they surface through the dig Future.
    """

    code: str
    details: dict[str, Any]

    def __str__(self) -> str:
        return f"BotCoreError(code={self.code!r}, details={self.details!r})"


# ---------------------------------------------------------------------------
# Implementation
# ---------------------------------------------------------------------------


class BotCoreImpl:
    """
    Agent body for digging.

    Orchestrates:
        - PacketClient / IPC (transport)
        - WorldTracker (world model + player state)
        - DiggingController (excavation sessions)

    tick() must be called at the fixed tick cadence (20 Hz by default);
    each call pumps the transport and then emits one physics tick.
    """

    def __init__(
        self,
        client: Optional[PacketClient] = None,
        *,
        env: Optional[EnvProfile] = None,
        orientation: Optional[OrientationControl] = None,
        dig_time_fn: Optional[DigTimeFn] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Optional[Callable[[], float]] = None,
        tracer: Optional[DigTracer] = None,
    ) -> None:
        """
        Build a BotCoreImpl.

        If `env` is None it is loaded from config/ via load_environment().
        If `client` is None it is constructed from that environment.
        """
        if env is None:
            from env.loader import load_environment

            env = load_environment()
        self._env = env

        # Transport layer
        self._client: PacketClient = client or create_packet_client_for_env(env)

        # Event bridge + world tracking
        self._events = EventEmitter()
        self._tracker = WorldTracker(self._client, self._events)

        self._orientation: OrientationControl = orientation or PacketLookController(
            self._client, self._tracker
        )

        self._tracer: DigTracer = tracer or DigTracer()

        self._digging = DiggingController(
            self._client,
            self._tracker,
            self._tracker,
            self._orientation,
            self._events,
            config=env.digging,
            dig_time_fn=dig_time_fn,
            scheduler=scheduler,
            clock=clock,
            tracer=self._tracer,
        )

        self._connected: bool = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """
        Establish connection to the game.

        Raises:
            BotCoreError if the underlying client fails to connect.
        """
        if self._connected:
            return

        try:
            self._client.connect()
        except Exception as exc:
            raise BotCoreError(
                code="connect_failed",
                details={"exception": repr(exc)},
            ) from exc

        self._connected = True
        log.info("BotCoreImpl connected (profile=%s)", getattr(self._env, "name", "default"))

    def disconnect(self) -> None:
        """
        Stop any dig and disconnect.

        Raises:
            BotCoreError if the underlying client fails to disconnect.
        """
        if not self._connected:
            return

        self._digging.stop_excavation()

        try:
            self._client.disconnect()
        except Exception as exc:
            self._connected = False
            raise BotCoreError(
                code="disconnect_failed",
                details={"exception": repr(exc)},
            ) from exc

        self._connected = False

    def tick(self) -> None:
        """
        Pump the transport layer, then emit one physics tick.

        Block updates received during the pump are handled before the tick,
        so a block confirmed as air this tick gets no further finish packet.
        """
        if not self._connected:
            return

        try:
            self._client.tick()
        except Exception as exc:
            raise BotCoreError(
                code="tick_failed",
                details={"exception": repr(exc)},
            ) from exc

        self._events.emit(PHYSICS_TICK)

    # ------------------------------------------------------------------
    # Digging
    # ------------------------------------------------------------------

    def dig(
        self,
        block: Optional[Block],
        force_look: OrientationMode = False,
        dig_face: FaceHint = "auto",
    ) -> Future:
        """Start digging `block`; see DiggingController.start_excavation."""
        return self._digging.start_excavation(block, force_look, dig_face)

    def stop_digging(self) -> None:
        self._digging.stop_excavation()

    def can_dig_block(self, block: Optional[Block]) -> bool:
        return self._digging.can_dig_block(block)

    def dig_time(self, block: Block) -> float:
        return self._digging.dig_time(block)

    @property
    def target_dig_block(self) -> Optional[Block]:
        return self._digging.target

    @property
    def last_dig_time(self) -> Optional[float]:
        return self._digging.last_dig_time

    # ------------------------------------------------------------------
    # World access
    # ------------------------------------------------------------------

    def block_at(self, position: Vec3) -> Optional[Block]:
        return self._tracker.block_at(position)

    @property
    def events(self) -> EventEmitter:
        """Subscribe here for digging_completed / digging_aborted."""
        return self._events

    def get_dig_traces(self) -> list[Any]:
        """
        Return a snapshot of recorded dig session traces.

        Primarily for debugging / monitoring tooling.
        """
        return self._tracer.get_records()
