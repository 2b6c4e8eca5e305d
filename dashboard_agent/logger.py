"""Logging helpers.

``get_logger`` configures a single stream handler on the root logger.
``StructuredLogger`` is the port the adapter core logs recovered failures
through: every record carries the component and action that failed, plus an
optional metadata bag.
"""

import logging
import os
from typing import Any, Dict, Optional

_HANDLER_ATTACHED = False
_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level() -> int:
    level_name = os.getenv("DASHBOARD_AGENT_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger configured with a single stream handler."""
    global _HANDLER_ATTACHED

    level = _resolve_level()

    if not _HANDLER_ATTACHED:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root = logging.getLogger()
        root.addHandler(handler)
        root.setLevel(level)
        _HANDLER_ATTACHED = True

    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger


class StructuredLogger:
    """Logs messages tagged with ``component``/``action`` context."""

    def __init__(self, name: str = "dashboard_agent"):
        self._logger = get_logger(name)

    def error(
        self,
        message: str,
        error: Optional[BaseException] = None,
        component: Optional[str] = None,
        action: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._log(logging.ERROR, message, error, component, action, metadata)

    def warning(
        self,
        message: str,
        error: Optional[BaseException] = None,
        component: Optional[str] = None,
        action: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._log(logging.WARNING, message, error, component, action, metadata)

    def info(
        self,
        message: str,
        component: Optional[str] = None,
        action: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._log(logging.INFO, message, None, component, action, metadata)

    def _log(
        self,
        level: int,
        message: str,
        error: Optional[BaseException],
        component: Optional[str],
        action: Optional[str],
        metadata: Optional[Dict[str, Any]],
    ) -> None:
        text = message
        if component or action:
            text = f"[{component or '-'}:{action or '-'}] {message}"
        if error is not None:
            text = f"{text}: {error}"
        if metadata:
            text = f"{text} {metadata}"

        extra = {"component": component, "action": action, "metadata": metadata or {}}
        exc_info = error if (error is not None and level >= logging.ERROR) else None
        self._logger.log(level, text, exc_info=exc_info, extra=extra)


_default_logger: Optional[StructuredLogger] = None


def get_structured_logger() -> StructuredLogger:
    """Return the process-wide structured logger."""
    global _default_logger
    if _default_logger is None:
        _default_logger = StructuredLogger()
    return _default_logger
