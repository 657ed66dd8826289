# digging error types
# src/bot_core/errors.py
"""
Errors raised or delivered by the digging controller.

    DiggingError
      ├── InvalidTargetError   - dig called without a block; raised, no state change
      ├── BlockNotInViewError  - no visible face; raised, no packets sent
      └── DigAbortedError      - set on the session future when it ends
                                 without the world confirming the break

An out-of-reach target is not an error: the returned future resolves
with False.
"""

from __future__ import annotations

from typing import Any, Optional


class DiggingError(RuntimeError):
    """Base class for digging failures."""


class InvalidTargetError(DiggingError, ValueError):
    """dig was called with an undefined or null block."""

    def __init__(self) -> None:
        super().__init__("dig was called with an undefined or null block")


class BlockNotInViewError(DiggingError):
    """No face of the target block can be seen from the eye position."""

    def __init__(self, block: Any) -> None:
        pos = getattr(block, "position", None)
        where = pos.as_tuple() if pos is not None else None
        super().__init__(f"Block not in view: {getattr(block, 'name', block)!r} at {where}")
        self.block = block


class DigAbortedError(DiggingError):
    """
    The dig session ended before the block broke.

    reason is one of:
        "stopped"          - stop_excavation() was called
        "superseded"       - a new dig request replaced this one
        "death"            - the agent died / respawned
        "transport_error"  - a dig packet could not be sent
    """

    def __init__(self, reason: str, block: Optional[Any] = None) -> None:
        super().__init__(f"Digging aborted ({reason})")
        self.reason = reason
        self.block = block


__all__ = [
    "DiggingError",
    "InvalidTargetError",
    "BlockNotInViewError",
    "DigAbortedError",
]
