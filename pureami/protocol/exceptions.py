"""Exceptions for protocol handling."""

from ..exceptions import ConnectionError, NotConnectedError, ProtocolError, ReadTimeout

__all__ = [
    "ConnectionError",
    "ProtocolError",
    "ReadTimeout",
    "NotConnectedError",
]
