# per-tick dig progress and stall detection
# src/bot_core/progress.py
"""
Progress tracking for an active dig.

Each fixed-length tick:
  1. The completion-time estimate is recomputed by the caller (tool swaps,
     water, effects can change it mid-dig) and passed in.
  2. An infinite estimate asks for a restart.
  3. An attempt older than 2 * estimate + grace asks for a restart, before
     any more progress is added.
  4. Otherwise tick_s / estimate is added; at >= 1 the attempt is finishing
     and every following tick asks for a finish packet.

The tracker only mutates the session's progress fields; sending packets
and restarting are the controller's job.
"""

from __future__ import annotations

import math
from enum import Enum

from .session import ExcavationSession

# Summing tick fractions accumulates float error (20 x 0.05 != 1.0 exactly).
_ROUNDING_SLACK = 1e-9


class TickOutcome(Enum):
    CONTINUE = "continue"   # progress added, nothing to send
    FINISH = "finish"       # progress >= 1: (re)send the finish packet
    RESTART = "restart"     # cancel + begin again with a fresh attempt


class ProgressTracker:
    """
    Fixed-tick progress integrator.

    Parameters:
        tick_s:
            Logical tick length in seconds; independent of how late the
            tick actually arrived.
        stall_grace_s:
            Slack added to twice the estimate before an attempt counts as stalled.
    """

    def __init__(self, tick_s: float = 0.05, stall_grace_s: float = 0.15) -> None:
        if tick_s <= 0:
            raise ValueError(f"tick_s must be positive, got {tick_s!r}")
        self.tick_s = tick_s
        self.stall_grace_s = stall_grace_s

    def stall_deadline(self, estimate_s: float) -> float:
        """Seconds an attempt may run before it is restarted."""
        return 2.0 * estimate_s + self.stall_grace_s

    def advance(
        self,
        session: ExcavationSession,
        estimate_s: float,
        now: float,
    ) -> TickOutcome:
        """Apply one tick to `session` and report what the controller should do."""
        if math.isinf(estimate_s) or math.isnan(estimate_s):
            return TickOutcome.RESTART

        elapsed = now - session.started_at
        if elapsed > self.stall_deadline(estimate_s):
            return TickOutcome.RESTART

        if estimate_s <= 0:
            session.progress = max(session.progress, 1.0)
        else:
            session.progress += self.tick_s / estimate_s

        if session.progress >= 1.0 - _ROUNDING_SLACK:
            session.finishing = True
            return TickOutcome.FINISH

        return TickOutcome.CONTINUE


__all__ = ["ProgressTracker", "TickOutcome"]
