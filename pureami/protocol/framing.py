"""
Block framing for the manager protocol.

``FrameReader`` turns the byte stream of a manager connection into
:class:`Message` blocks, and ``encode_request`` builds the request blocks
that go the other way.
"""

import logging
import socket
from collections.abc import Mapping
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple, Union

from ..utils.logging_utils import (
    LogCallback,
    log_debug_operation,
    log_stream_data,
    logger_callback,
)
from .errors import safe_socket_operation
from .exceptions import NotConnectedError, ReadTimeout
from .message import BlockType, Message
from .utils import (
    BLOCK_TERMINATOR,
    ENCODING,
    HEADER_ACTION,
    HEADER_ACTION_ID,
    LF,
    READ_CHUNK_SIZE,
    format_value,
    same_header,
)

logger = logging.getLogger(__name__)

Parameters = Union[Mapping, Iterable[Tuple[str, Any]], None]


def iter_parameters(parameters: Parameters) -> Iterator[Tuple[str, Any]]:
    """Yield ``(name, value)`` pairs from a mapping or an iterable of pairs."""
    if parameters is None:
        return iter(())
    if isinstance(parameters, Mapping):
        return iter(parameters.items())
    return iter(parameters)


def find_action_id(parameters: Parameters) -> Optional[str]:
    """Return a caller-supplied scalar ActionID parameter, if any."""
    action_id = None
    for name, value in iter_parameters(parameters):
        if value is None or isinstance(value, (list, tuple)):
            continue
        if same_header(name, HEADER_ACTION_ID):
            action_id = format_value(value)
    return action_id or None


def encode_request(
    action: str, parameters: Parameters = None, action_id: Optional[str] = None
) -> bytes:
    """
    Serialize a request block.

    Args:
        action: Action name, written as the leading ``Action`` header
        parameters: Mapping or iterable of pairs; list/tuple values repeat
            the header once per element, ``None`` values are skipped
        action_id: When given, appended as a trailing ``ActionID`` header

    Returns:
        The CRLF-delimited block including its terminating blank line.
    """
    lines = [f"{HEADER_ACTION}: {action}"]
    for name, value in iter_parameters(parameters):
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            lines.extend(f"{name}: {format_value(item)}" for item in value)
        else:
            lines.append(f"{name}: {format_value(value)}")
    if action_id is not None:
        lines.append(f"{HEADER_ACTION_ID}: {action_id}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode(ENCODING)


def parse_block(raw: bytes) -> Message:
    """
    Parse one block (without its terminator) into a Message.

    Lines are split on the first colon; lines without a colon are skipped.
    The block type comes from the header name on the first raw line.
    """
    text = raw.decode(ENCODING, errors="replace")
    lines = [line.rstrip("\r") for line in text.split("\n")] if text else []
    block_type = BlockType.from_first_line(lines[0]) if lines else BlockType.EMPTY
    pairs: List[Tuple[str, str]] = []
    for line in lines:
        if ":" not in line:
            if line.strip():
                log_debug_operation(logger, "Skipping line without colon", line)
            continue
        name, value = line.split(":", 1)
        pairs.append((name.strip(), value.strip()))
    return Message(pairs, block_type=block_type)


class FrameReader:
    """
    Splits a manager byte stream into blocks.

    Owns the read buffer for one connection. Bytes read past a block
    boundary stay buffered for the next call, and the banner line is read
    through the same buffer so nothing is lost between the two. Blocks of
    unknown type are reported through ``log`` at WARNING level.
    """

    def __init__(
        self,
        sock: Any = None,
        on_event: Optional[Callable[[Message], Any]] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
        log: Optional[LogCallback] = None,
    ) -> None:
        self._sock = sock
        self.on_event = on_event
        self.host = host
        self.port = port
        self._log = log or logger_callback(logger)
        self._buffer = bytearray()

    @property
    def buffered(self) -> int:
        """Number of bytes read but not yet consumed."""
        return len(self._buffer)

    def attach(
        self, sock: Any, host: Optional[str] = None, port: Optional[int] = None
    ) -> None:
        """Bind to a freshly opened socket, discarding any stale buffer."""
        self._sock = sock
        self.host = host
        self.port = port
        self._buffer.clear()

    def detach(self) -> None:
        self._sock = None
        self._buffer.clear()

    def _fill(self) -> bool:
        """Read one chunk into the buffer; False on end of stream or timeout."""
        if self._sock is None:
            raise NotConnectedError("Not connected to a manager")
        with safe_socket_operation("read", self.host, self.port):
            try:
                chunk = self._sock.recv(READ_CHUNK_SIZE)
            except socket.timeout:
                log_debug_operation(logger, "Socket read timed out")
                return False
        if not chunk:
            log_debug_operation(logger, "End of stream")
            return False
        self._buffer.extend(chunk)
        log_stream_data(logger, "Received", len(chunk), len(self._buffer))
        return True

    def read_line(self) -> str:
        """
        Read exactly one line (used for the connection banner).

        Returns:
            The line without its terminator; an empty string when the stream
            ended before any data arrived.
        """
        while True:
            pos = self._buffer.find(LF)
            if pos != -1:
                raw = bytes(self._buffer[:pos])
                del self._buffer[: pos + 1]
                break
            if not self._fill():
                raw = bytes(self._buffer)
                self._buffer.clear()
                break
        return raw.decode(ENCODING, errors="replace").rstrip("\r")

    def read_one_message(self, allow_timeout: bool = False) -> Message:
        """
        Read and parse the next block.

        Args:
            allow_timeout: When the stream ends (or times out) before a block
                terminator arrives, return what was accumulated instead of
                raising.

        Raises:
            ReadTimeout: Stream ended mid-block and ``allow_timeout`` is False.
            ConnectionError: The socket read failed.
        """
        while True:
            pos = self._buffer.find(BLOCK_TERMINATOR)
            if pos != -1:
                raw = bytes(self._buffer[:pos])
                del self._buffer[: pos + len(BLOCK_TERMINATOR)]
                break
            if not self._fill():
                if not allow_timeout:
                    raise ReadTimeout(
                        "Read timeout on manager socket",
                        context={
                            "host": self.host,
                            "port": self.port,
                            "buffered": len(self._buffer),
                        },
                    )
                raw = bytes(self._buffer)
                self._buffer.clear()
                break

        message = parse_block(raw)
        self._classify(message)
        return message

    def _classify(self, message: Message) -> None:
        if message.block_type is BlockType.EVENT:
            if self.on_event is not None:
                self.on_event(message)
        elif message.block_type is BlockType.UNKNOWN:
            self._log(
                f"Unhandled response packet from Manager: {message.to_dict()!r}",
                log_level=logging.WARNING,
            )
