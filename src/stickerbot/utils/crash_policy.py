"""
Kebijakan crash proses, dibuat eksplisit:

- exception sinkron yang tidak tertangkap (thread utama maupun thread lain)
  -> dicatat lalu proses keluar dengan status 1, supervisor proses yang
  me-restart;
- kegagalan asinkron yang tidak tertangani (task/loop) -> hanya dicatat.
"""

import asyncio
import logging
import os
import sys
import threading
from types import TracebackType
from typing import Any

logger = logging.getLogger(__name__)

EXIT_STATUS_UNCAUGHT = 1


def install_crash_policy(loop: asyncio.AbstractEventLoop) -> None:
    sys.excepthook = handle_uncaught_exception
    threading.excepthook = _handle_thread_exception
    loop.set_exception_handler(handle_async_exception)


def handle_uncaught_exception(
    exc_type: type[BaseException],
    exc: BaseException,
    tb: TracebackType | None,
) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc, tb)
        return
    logger.critical("Uncaught Exception", exc_info=(exc_type, exc, tb))
    _terminate()


def handle_async_exception(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    del loop
    exc = context.get("exception")
    message = context.get("message", "Unhandled Rejection")
    if exc is not None:
        logger.error("Unhandled Rejection: %s", message, exc_info=exc)
    else:
        logger.error("Unhandled Rejection: %s", message)


def _handle_thread_exception(args: threading.ExceptHookArgs) -> None:
    if args.exc_value is None:
        return
    handle_uncaught_exception(args.exc_type, args.exc_value, args.exc_traceback)


def _terminate() -> None:
    for handler in logging.getLogger().handlers:
        handler.flush()
    os._exit(EXIT_STATUS_UNCAUGHT)
