"""Process-boundary safety net.

Anything that escapes the dispatcher's own safety net is a bug; the
process logs it and exits rather than keep running in a known-bad state.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import threading
from types import TracebackType
from typing import Any, Callable

logger = logging.getLogger(__name__)

EXIT_CODE = 1

_exit: Callable[[int], Any] = os._exit


def _terminate() -> None:
    for handler in logging.getLogger().handlers:
        handler.flush()
    _exit(EXIT_CODE)


def _excepthook(
    exc_type: type[BaseException],
    exc: BaseException,
    tb: TracebackType | None,
) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc, tb)
        return
    logger.critical("Uncaught exception", exc_info=(exc_type, exc, tb))
    _terminate()


def _thread_excepthook(args: threading.ExceptHookArgs) -> None:
    if args.exc_type is SystemExit:
        return
    logger.critical(
        "Uncaught exception in thread %s",
        args.thread.name if args.thread else "?",
        exc_info=(args.exc_type, args.exc_value, args.exc_traceback),  # type: ignore[arg-type]
    )
    _terminate()


def loop_exception_handler(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    """Asyncio counterpart of an unhandled promise rejection: log, then exit."""
    exc = context.get("exception")
    message = context.get("message", "Unhandled exception in event loop")
    if exc is not None:
        logger.critical("Unhandled task exception: %s", message, exc_info=exc)
    else:
        logger.critical("Unhandled event loop error: %s", message)
    _terminate()


def install_fail_fast(loop: asyncio.AbstractEventLoop | None = None) -> None:
    """Install the fail-fast hooks for the main thread, worker threads and *loop*."""
    sys.excepthook = _excepthook
    threading.excepthook = _thread_excepthook
    if loop is not None:
        loop.set_exception_handler(loop_exception_handler)
