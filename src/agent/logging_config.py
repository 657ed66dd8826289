# src/agent/logging_config.py
"""
Central logging configuration for the digging client.

Call configure_logging() from your main entrypoint once, for example:

    from agent.logging_config import configure_logging
    configure_logging()

After that, bot_core logs (packet debug lines from bot_core.digging and
the per-session summaries from the "bot_core.dig" tracer) are visible on
stdout.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO


def configure_logging(
    level: int = logging.INFO,
    *,
    dig_debug: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure root logging if no handlers are attached yet.

    Args:
        level: default logging level (e.g., logging.INFO, logging.DEBUG)
        dig_debug: also enable DEBUG for the digging modules only
        stream: output stream (defaults to stdout)
    """
    root = logging.getLogger()

    if dig_debug:
        logging.getLogger("bot_core.digging").setLevel(logging.DEBUG)
        logging.getLogger("bot_core.faces").setLevel(logging.DEBUG)

    # Don't duplicate handlers if someone already configured logging.
    if root.handlers:
        return

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(level)
