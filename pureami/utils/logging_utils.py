"""
Centralized logging utilities for pureami.

Every helper prefixes its message with a category tag ([ACTION],
[PROTOCOL], [CONNECTION], [DATA]) so manager traffic can be filtered out
of a shared log. Helpers that know the request's ActionID attach it as
``correlation_id``, which ``JSONFormatter`` emits as a field.
"""

import logging
from typing import Any, Callable, Optional

LogCallback = Callable[..., None]


def _correlation(action_id: Optional[str]) -> Optional[dict]:
    return {"correlation_id": action_id} if action_id else None


def log_action(
    logger: logging.Logger, action: str, details: str = "", action_id: Optional[str] = None
) -> None:
    """Log a manager action being issued."""
    detail_str = f": {details}" if details else ""
    logger.info(f"[ACTION] {action}{detail_str}", extra=_correlation(action_id))


def log_action_error(
    logger: logging.Logger, action: str, error: Exception, action_id: Optional[str] = None
) -> None:
    """Log a manager action that failed at the transport or protocol level."""
    logger.error(f"[ACTION] {action} failed: {error}", extra=_correlation(action_id))


def log_protocol_event(
    logger: logging.Logger,
    event_type: str,
    details: str = "",
    action_id: Optional[str] = None,
) -> None:
    """Log protocol events (send, correlate, list start/complete)."""
    detail_str = f": {details}" if details else ""
    logger.debug(f"[PROTOCOL] {event_type}{detail_str}", extra=_correlation(action_id))


def logger_callback(logger: logging.Logger) -> LogCallback:
    """
    Wrap ``logger`` as a ``log(message, log_level=...)`` callback.

    Protocol components log through such a callback so a session can
    redirect their lines to its reporter.
    """

    def log(message: str, log_level: int = logging.DEBUG) -> None:
        logger.log(log_level, message)

    return log


def log_debug_operation(
    logger: logging.Logger, operation: str, details: Any = None
) -> None:
    if details is not None:
        logger.debug(f"{operation}: {details}")
    else:
        logger.debug(operation)


def log_connection_event(
    logger: logging.Logger,
    event_type: str,
    host: Optional[str] = None,
    port: Optional[int] = None,
) -> None:
    """Log connection lifecycle changes, with the manager address when known."""
    if host:
        address = f"{host}:{port}" if port else host
        logger.info(f"[CONNECTION] {event_type} - {address}")
    else:
        logger.info(f"[CONNECTION] {event_type}")


def log_stream_data(
    logger: logging.Logger, direction: str, size: int, buffered: Optional[int] = None
) -> None:
    """Log bytes moving over the manager socket."""
    buffered_str = f" (buffered {buffered})" if buffered is not None else ""
    logger.debug(f"[DATA] {direction} {size} bytes{buffered_str}")
