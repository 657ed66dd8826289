# bot_core package
# src/bot_core/__init__.py
"""
bot_core package.

Exports:
    - BotCoreImpl: agent body wiring transport, world tracking and digging
    - BotCoreError: domain-level error type for non-dig failures
    - DiggingController: single-session excavation controller
    - dig error types
"""

from __future__ import annotations

from .core import BotCoreImpl, BotCoreError
from .digging import DiggingController
from .errors import (
    BlockNotInViewError,
    DigAbortedError,
    DiggingError,
    InvalidTargetError,
)

__all__ = [
    "BotCoreImpl",
    "BotCoreError",
    "DiggingController",
    "BlockNotInViewError",
    "DigAbortedError",
    "DiggingError",
    "InvalidTargetError",
]
