"""
Centralized error handling utilities for transport operations.

Provides a context manager and helpers that turn low-level socket errors
into pureami exceptions carrying host/port/operation context, so the frame
reader, correlator and session share one translation path.
"""

import logging
from typing import Any, Dict, Optional

from .exceptions import ConnectionError, ProtocolError

logger = logging.getLogger(__name__)


class safe_socket_operation:
    """
    Context manager for socket reads and writes.

    Catches OSError (which includes socket.timeout); logs and raises
    ConnectionError with the operation context attached.
    """

    def __init__(
        self, operation: str, host: Optional[str] = None, port: Optional[int] = None
    ) -> None:
        self.operation = operation
        self.host = host
        self.port = port

    def __enter__(self) -> "safe_socket_operation":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is not None and issubclass(exc_type, OSError):
            context: Dict[str, Any] = {"operation": self.operation}
            if self.host is not None:
                context["host"] = self.host
            if self.port is not None:
                context["port"] = self.port
            if getattr(exc_val, "errno", None) is not None:
                context["errno"] = exc_val.errno
            logger.error(f"Socket {self.operation} failed: {exc_val}")
            raise ConnectionError(
                f"Socket {self.operation} failed: {exc_val}",
                context=context,
                original_exception=exc_val,
            ) from exc_val
        return None


def raise_protocol_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> None:
    """Raise a ProtocolError for protocol-shape violations that cannot be skipped."""
    logger.error(message)
    raise ProtocolError(message, context=context)
