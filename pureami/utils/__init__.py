"""Utilities package for pureami."""

from .logging_utils import (
    log_action,
    log_action_error,
    log_connection_event,
    log_debug_operation,
    log_protocol_event,
    log_stream_data,
    logger_callback,
)

__all__ = [
    "log_action",
    "log_action_error",
    "log_connection_event",
    "log_debug_operation",
    "log_protocol_event",
    "log_stream_data",
    "logger_callback",
]
