"""
Centralized logging using Loguru with context-aware verbosity.

This module provides a LOG() function that respects the verbosity of the
state currently connected to the logging context, so the compiler passes can
log without having the state threaded through every call.

Usage:
    from htmlua.lib.log import LOG, state_connectToLogger

    # At the start of a page compile (or CLI run):
    state_connectToLogger(state)

    # Anywhere in that context:
    LOG("Compiling /index.html", level=1)
    LOG("Resolved 3 includes", level=2)
    LOG("Footnote 2: 'no'", level=3)
"""

from loguru import logger
from typing import Any, Optional
from contextvars import ContextVar
import sys

# Context variable to hold the current PageState/ProgramState
_program_state: ContextVar[Optional[Any]] = ContextVar('program_state', default=None)

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()  # Remove default handler
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Connect a state object to the logging context.

    Args:
        state: Any object with a ``verbosity`` attribute
    """
    _program_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message if the connected state's verbosity allows.

    Args:
        message: Log message to display
        level: Minimum verbosity level required (1=normal, 2=verbose, 3=debug)
        **kwargs: Additional loguru metadata

    With no state connected nothing is logged, which keeps library use
    (and the test suite) quiet unless a caller opts in.
    """
    state = _program_state.get()

    if state and hasattr(state, 'verbosity') and state.verbosity >= level:
        # depth=1 reports the caller's function/line rather than LOG itself
        logger.opt(depth=1).debug(message, **kwargs)
