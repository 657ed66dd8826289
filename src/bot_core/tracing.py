"""
Tracing and metrics for bot_core digging.

This module provides a thin, structured logging layer around dig sessions
so monitoring tools can see how each excavation ended and how many
restarts it needed.

It does NOT:
- Send packets
- Make control decisions
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Deque, List, Optional, Tuple

if TYPE_CHECKING:
    from .session import ExcavationSession


@dataclass
class DigTraceRecord:
    """
    Structured record of a single finished dig session.

    outcome is "completed", "stopped", "superseded", "death" or
    "transport_error".
    """

    timestamp: float           # wall-clock time (time.time())
    duration_s: float          # session lifetime in seconds

    block_name: str
    position: Tuple[int, int, int]
    face: int

    outcome: str
    restarts: int
    finishing: bool            # finish packets had started going out


class DigTracer:
    """
    In-memory dig tracer with optional logging.

    Responsibilities:
    - Keep a rolling buffer of recent DigTraceRecord entries.
    - Emit a single structured log line per session (info level).
    """

    def __init__(
        self,
        *,
        logger: Optional[logging.Logger] = None,
        max_records: int = 1_000,
    ) -> None:
        self._logger = logger or logging.getLogger("bot_core.dig")
        self._records: Deque[DigTraceRecord] = deque(maxlen=max_records)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def record(
        self,
        *,
        session: "ExcavationSession",
        outcome: str,
        duration_s: float,
    ) -> DigTraceRecord:
        """Record how `session` ended."""
        record = DigTraceRecord(
            timestamp=time.time(),
            duration_s=duration_s,
            block_name=session.target.name,
            position=session.position.block_key(),
            face=int(session.face),
            outcome=outcome,
            restarts=session.restarts,
            finishing=session.finishing,
        )
        self._records.append(record)

        self._logger.info(
            "dig_session block=%s pos=(%d,%d,%d) face=%d outcome=%s restarts=%d duration=%.3fs",
            record.block_name,
            *record.position,
            record.face,
            record.outcome,
            record.restarts,
            record.duration_s,
        )
        return record

    def get_records(self) -> List[DigTraceRecord]:
        """Return a snapshot of all currently buffered records."""
        return list(self._records)
