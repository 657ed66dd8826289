# single-session dig controller
# src/bot_core/digging.py
"""
Excavation session controller for bot_core.

Owns the one active ExcavationSession and drives the dig exchange:

    Idle ──start──▶ Digging ──progress ≥ 1──▶ Finishing
      ▲               │  ▲ restart (cancel + begin)  │
      │               ▼  │                          ▼
      └──────── Completed (block became air) / Aborted (stop, supersede,
                death, transport error)

Packets (all "block_dig"):
    start   - once per session and again after every forced restart
    cancel  - on every stop and as the first half of a restart
    finish  - once progress reaches 1, then every tick until the world
              confirms the block is air

Inputs arrive from three independent sources (tick pulses, block updates,
stop/start calls) plus two interval timers. Every handler runs under one
re-entrant lock and first checks that its session is still the active
one, so a handler that loses a race does nothing.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from threading import RLock
from time import perf_counter
from typing import Callable, Optional, Union

from contracts.types import Block, BlockFace, Vec3
from contracts.world import OrientationControl, PlayerStateSource, WorldModel
from env.schema import DiggingConfig

from .dig_time import DigTimeFn, conditions_from_player, vanilla_dig_time
from .errors import DigAbortedError, InvalidTargetError
from .events import (
    DEATH,
    DIGGING_ABORTED,
    DIGGING_COMPLETED,
    PHYSICS_TICK,
    EventEmitter,
    block_update_topic,
)
from .faces import DEFAULT_FACE, FaceHint, FaceResolution, resolve_face
from .net import PacketClient
from .progress import ProgressTracker, TickOutcome
from .scheduler import Scheduler, ThreadingScheduler
from .session import ExcavationSession
from .tracing import DigTracer

log = logging.getLogger(__name__)

# orientation_mode value that disables face probing and viewpoint requests
ORIENTATION_IGNORE = "ignore"

# face reported in cancel packets that are not a same-block supersede
NEUTRAL_FACE = 0

# can_dig_block() measures from a fixed standing eye height
_CAN_DIG_EYE_HEIGHT = 1.65

OrientationMode = Union[bool, str]


def _resolved(value: object) -> Future:
    fut: Future = Future()
    fut.set_result(value)
    return fut


class DiggingController:
    """
    Start, maintain, restart and end the single active dig.

    Public contract:
      start_excavation(target, orientation_mode, face_hint) -> Future
      stop_excavation() -> None
      dig_time(block) -> float
      can_dig_block(block) -> bool
      close() -> None

    The future from start_excavation resolves with True when the world
    confirms the block broke, resolves with False right away when the
    target is out of reach, and fails with DigAbortedError when the session
    is stopped or superseded.
    """

    def __init__(
        self,
        client: PacketClient,
        world: WorldModel,
        player: PlayerStateSource,
        orientation: OrientationControl,
        events: EventEmitter,
        *,
        config: Optional[DiggingConfig] = None,
        dig_time_fn: Optional[DigTimeFn] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Optional[Callable[[], float]] = None,
        tracer: Optional[DigTracer] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._world = world
        self._player = player
        self._orientation = orientation
        self._events = events

        self._cfg = config if config is not None else DiggingConfig()
        self._dig_time_fn: DigTimeFn = dig_time_fn or vanilla_dig_time
        self._scheduler: Scheduler = scheduler or ThreadingScheduler()
        self._clock = clock or perf_counter
        self._tracer = tracer or DigTracer()
        self._log = logger or log

        self._progress = ProgressTracker(
            tick_s=self._cfg.tick_s,
            stall_grace_s=self._cfg.stall_grace_s,
        )

        self._lock = RLock()
        self._session: Optional[ExcavationSession] = None
        self.last_dig_time: Optional[float] = None

        self._death_listener = events.on(DEATH, self._on_death)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[ExcavationSession]:
        return self._session

    @property
    def is_digging(self) -> bool:
        return self._session is not None

    @property
    def target(self) -> Optional[Block]:
        session = self._session
        return session.target if session is not None else None

    # ------------------------------------------------------------------
    # Estimates and reachability
    # ------------------------------------------------------------------

    def dig_time(self, block: Block) -> float:
        """Seconds to break `block` with the current tool and conditions."""
        conditions = conditions_from_player(self._player.player_state())
        return self._dig_time_fn(block, conditions)

    def can_dig_block(self, block: Optional[Block]) -> bool:
        if block is None or not block.diggable:
            return False
        player = self._player.player_state()
        eye = player.position.offset(0.0, _CAN_DIG_EYE_HEIGHT, 0.0)
        return block.center.distance_to(eye) <= self._cfg.can_dig_reach

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start_excavation(
        self,
        target: Optional[Block],
        orientation_mode: OrientationMode = False,
        face_hint: FaceHint = "auto",
    ) -> Future:
        """
        Begin digging `target`, replacing any active session.

        orientation_mode:
            "ignore" → no face probing, no viewpoint requests, face TOP.
            bool     → look at the aim point (True snaps the view) and keep
                       re-aiming while the session lasts.

        Raises:
            InvalidTargetError if target is None.
            BlockNotInViewError if face probing finds no visible face.
        """
        if target is None:
            raise InvalidTargetError()

        player = self._player.player_state()
        eye = player.eye_position
        distance = target.center.distance_to(eye)
        if distance > self._cfg.reach:
            self._log.debug(
                "skip: block too far block=%s distance=%.2f reach=%.2f",
                target.name,
                distance,
                self._cfg.reach,
            )
            return _resolved(False)

        track = orientation_mode != ORIENTATION_IGNORE
        if track:
            resolution = resolve_face(
                target,
                face_hint,
                eye,
                self._world,
                max_distance=self._cfg.raycast_max_distance,
            )
            self._orientation.look_at(resolution.aim_point, bool(orientation_mode))
        else:
            resolution = FaceResolution(
                face=DEFAULT_FACE,
                aim_point=target.center,
                confirmed=False,
            )

        self._log.debug(
            "params block=%s position=%s in_water=%s on_ground=%s held=%s face_hint=%r",
            target.name,
            target.position.as_tuple(),
            player.is_in_water,
            player.on_ground,
            player.held_item.name if player.held_item else None,
            face_hint,
        )

        with self._lock:
            if self._session is not None:
                self._stop_locked("superseded", replacement=target, replacement_face=resolution.face)

            now = self._clock()
            session = ExcavationSession(
                target=target,
                face=resolution.face,
                aim_point=resolution.aim_point,
                started_at=now,
                created_at=now,
                track_orientation=track,
            )

            try:
                self._send_dig("start", target.position, session.face)
            except Exception as exc:
                self._log.exception("start packet failed for %s", target.position.as_tuple())
                err = DigAbortedError("transport_error", target)
                err.__cause__ = exc
                session.future.set_exception(err)
                return session.future

            self._session = session
            self._swing()
            self._subscribe(session)
            return session.future

    def stop_excavation(self) -> None:
        """Cancel the active dig; no-op when idle."""
        with self._lock:
            self._stop_locked("stopped")

    def close(self) -> None:
        """Stop any dig and detach from the agent's event stream."""
        self.stop_excavation()
        self._death_listener.cancel()

    # ------------------------------------------------------------------
    # Session wiring
    # ------------------------------------------------------------------

    def _subscribe(self, session: ExcavationSession) -> None:
        subs = session.subscriptions

        def on_tick() -> None:
            self._on_tick(session)

        def on_block_update(old: Optional[Block], new: Optional[Block]) -> None:
            self._on_block_update(session, old, new)

        subs.add(self._events.on(PHYSICS_TICK, on_tick))
        subs.add(self._events.on(block_update_topic(session.position), on_block_update))
        subs.add(
            self._scheduler.call_every(
                self._cfg.swing_interval_s,
                lambda: self._on_swing_timer(session),
                name="dig-swing",
            )
        )
        if session.track_orientation:
            subs.add(
                self._scheduler.call_every(
                    self._cfg.look_interval_s,
                    lambda: self._on_look_timer(session),
                    name="dig-look",
                )
            )

    def _teardown_locked(self, session: ExcavationSession) -> None:
        session.subscriptions.dispose()
        if self._session is session:
            self._session = None
        self.last_dig_time = self._clock()

    # ------------------------------------------------------------------
    # Terminal transitions
    # ------------------------------------------------------------------

    def _stop_locked(
        self,
        reason: str,
        *,
        replacement: Optional[Block] = None,
        replacement_face: Optional[BlockFace] = None,
    ) -> None:
        session = self._session
        if session is None:
            return

        # A replacement dig on the same block reports the new face in the
        # cancel packet; every other cancel reports 0.
        same_block = (
            replacement is not None
            and replacement.position.block_key() == session.position.block_key()
        )
        cancel_face = int(replacement_face) if same_block and replacement_face is not None else NEUTRAL_FACE

        self._teardown_locked(session)

        self._log.debug(
            "packet: cancel digging reason=%s face=%s location=%s",
            reason,
            cancel_face,
            session.position.as_tuple(),
        )
        send_error: Optional[BaseException] = None
        try:
            self._send_dig("cancel", session.position, cancel_face)
        except Exception as exc:
            self._log.error(
                "cancel packet failed for %s: %r",
                session.position.as_tuple(),
                exc,
            )
            send_error = exc
            reason = "transport_error"

        self._trace(session, reason)
        self._events.emit(DIGGING_ABORTED, session.target)
        if not session.future.done():
            err = DigAbortedError(reason, session.target)
            if send_error is not None:
                err.__cause__ = send_error
            session.future.set_exception(err)

    def _abort_transport_locked(self, session: ExcavationSession, exc: BaseException) -> None:
        self._log.error(
            "dig packet failed for %s; aborting session: %r",
            session.position.as_tuple(),
            exc,
        )
        self._teardown_locked(session)
        self._trace(session, "transport_error")
        self._events.emit(DIGGING_ABORTED, session.target)
        if not session.future.done():
            err = DigAbortedError("transport_error", session.target)
            err.__cause__ = exc
            session.future.set_exception(err)

    def _complete_locked(self, session: ExcavationSession, new_block: Block) -> None:
        self._teardown_locked(session)
        self._log.debug("complete: block became air location=%s", session.position.as_tuple())
        self._trace(session, "completed")
        self._events.emit(DIGGING_COMPLETED, new_block)
        if not session.future.done():
            session.future.set_result(True)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_tick(self, session: ExcavationSession) -> None:
        with self._lock:
            if self._session is not session:
                return

            estimate = self.dig_time(session.target)
            outcome = self._progress.advance(session, estimate, self._clock())

            try:
                if outcome is TickOutcome.RESTART:
                    self._restart_locked(session, estimate)
                elif outcome is TickOutcome.FINISH:
                    self._send_dig("finish", session.position, session.face)
            except Exception as exc:
                self._abort_transport_locked(session, exc)

    def _restart_locked(self, session: ExcavationSession, estimate: float) -> None:
        self._log.debug(
            "packet: abort and restart location=%s estimate=%s restarts=%d",
            session.position.as_tuple(),
            estimate,
            session.restarts,
        )
        self._send_dig("cancel", session.position, NEUTRAL_FACE)
        self._send_dig("start", session.position, session.face)
        session.reset_attempt(self._clock())

    def _on_block_update(
        self,
        session: ExcavationSession,
        old: Optional[Block],
        new: Optional[Block],
    ) -> None:
        # Servers may resend the block while it is being dug, and an
        # unloading world sends (None, None); only air ends the session.
        if new is None or not new.is_air:
            return
        with self._lock:
            if self._session is not session:
                return
            self._complete_locked(session, new)

    def _on_death(self) -> None:
        self._events.remove_all(DIGGING_ABORTED)
        self._events.remove_all(DIGGING_COMPLETED)
        with self._lock:
            self._stop_locked("death")

    def _on_swing_timer(self, session: ExcavationSession) -> None:
        with self._lock:
            if self._session is not session:
                return
            self._swing()

    def _on_look_timer(self, session: ExcavationSession) -> None:
        # Held across look_at so a concurrent stop cannot return before the
        # request goes out.
        with self._lock:
            if self._session is not session:
                return
            aim: Vec3 = session.aim_point
            try:
                self._orientation.look_at(aim, True)
            except Exception:
                self._log.debug("re-aim failed for %s", aim.as_tuple(), exc_info=True)

    # ------------------------------------------------------------------
    # Low-level emitters
    # ------------------------------------------------------------------

    def _send_dig(self, status: str, position: Vec3, face: int) -> None:
        x, y, z = position.block_key()
        self._client.send_packet(
            "block_dig",
            {
                "status": status,
                "x": x,
                "y": y,
                "z": z,
                "face": int(face),
            },
        )

    def _swing(self) -> None:
        try:
            self._client.send_packet("arm_animation", {"hand": "main"})
        except Exception:
            self._log.debug("arm swing failed", exc_info=True)

    def _trace(self, session: ExcavationSession, outcome: str) -> None:
        try:
            self._tracer.record(
                session=session,
                outcome=outcome,
                duration_s=self._clock() - session.created_at,
            )
        except Exception:
            # Tracing must never break the caller.
            self._log.exception("Dig tracing failed")


__all__ = [
    "DiggingController",
    "NEUTRAL_FACE",
    "ORIENTATION_IGNORE",
]
