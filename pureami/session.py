"""
Session management for pureami: socket lifecycle, login and the request API.
"""

import logging
import socket
from enum import Enum
from typing import Any, Callable, Optional

from .actions import ActionCatalog
from .config import ManagerConfig
from .exceptions import PureAMIError
from .protocol.correlator import ActionIDGenerator, Correlator
from .protocol.events import EventDispatcher, HandlerLike
from .protocol.framing import FrameReader, Parameters
from .protocol.message import Message
from .protocol.utils import ACTION_LOGIN, ACTION_LOGOFF
from .utils.logging_utils import log_action_error, log_connection_event

logger = logging.getLogger(__name__)

SocketFactory = Callable[..., Any]


class ConnectionState(Enum):
    """Lifecycle of a manager session."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    LOGGED_IN = "logged_in"
    CLOSED = "closed"


class Session:
    """
    Synchronous Asterisk Manager session.

    Owns one socket together with its read buffer, handler registry and
    correlator. Every request blocks until its correlated response arrives;
    events seen meanwhile are dispatched inline on the calling thread.
    Callers sharing a session across threads must serialize requests.
    """

    def __init__(
        self,
        config: Optional[ManagerConfig] = None,
        *,
        socket_factory: SocketFactory = socket.create_connection,
        reporter: Optional[Any] = None,
    ) -> None:
        """
        Initialize a session.

        Args:
            config: Connection settings; defaults to ``ManagerConfig()``
            socket_factory: Called as ``factory((host, port), timeout)`` to
                open the stream
            reporter: Optional object with ``conlog(message, level)`` that
                receives session log lines instead of the logger
        """
        self.config = config or ManagerConfig()
        self._socket_factory = socket_factory
        self.reporter = reporter
        self._sock: Optional[Any] = None
        self._state = ConnectionState.DISCONNECTED
        self.server: Optional[str] = None
        self.port: Optional[int] = None
        self.banner: Optional[str] = None

        self.dispatcher = EventDispatcher(log=self._log)
        self.reader = FrameReader(on_event=self.dispatcher.dispatch, log=self._log)
        self.correlator = Correlator(
            self.reader,
            id_generator=ActionIDGenerator(),
            max_list_messages=self.config.max_list_messages,
        )
        self.actions = ActionCatalog(self)

    # State

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._sock is not None

    @property
    def logged_in(self) -> bool:
        return self._state is ConnectionState.LOGGED_IN

    def set_reporter(self, reporter: Optional[Any]) -> None:
        """Route session log lines through ``reporter.conlog`` (e.g. an AGI console)."""
        self.reporter = reporter

    def _log(self, message: str, level: int = 1, log_level: int = logging.DEBUG) -> None:
        """
        Emit one session log line.

        ``level`` is the verbosity handed to ``reporter.conlog``; ``log_level``
        is used when no reporter is attached, raised to at least INFO when
        ``write_log`` is set.
        """
        if self.reporter is not None:
            self.reporter.conlog(message, level)
        elif self.config.write_log:
            logger.log(max(log_level, logging.INFO), message)
        else:
            logger.log(log_level, message)

    # Lifecycle

    def connect(
        self,
        server: Optional[str] = None,
        username: Optional[str] = None,
        secret: Optional[str] = None,
    ) -> bool:
        """
        Open the connection, read the banner and log in.

        Arguments default to the configured values; ``server`` may carry a
        ``host:port`` suffix. An already open connection is logged off
        and closed first.

        Returns:
            True once logged in. False when the address is malformed, the
            socket cannot be opened, no banner arrives or login is refused;
            the session is then left disconnected and may be retried.
        """
        if username is None:
            username = self.config.username
        if secret is None:
            secret = self.config.secret
        try:
            host, port = self.config.split_server(server)
        except ValueError as e:
            self._log(f"Unable to connect to manager {server or self.config.server}: {e}")
            return False

        if self._sock is not None:
            self.disconnect()
        self.server, self.port = host, port
        self.dispatcher.server = self.server
        self.dispatcher.port = self.port

        try:
            sock = self._socket_factory(
                (self.server, self.port), self.config.connect_timeout
            )
        except OSError as e:
            self._log(
                f"Unable to connect to manager {self.server}:{self.port} "
                f"({e.errno}): {e.strerror or e}"
            )
            self._state = ConnectionState.DISCONNECTED
            return False

        if hasattr(sock, "settimeout"):
            sock.settimeout(self.config.read_timeout)
        self._attach(sock)
        self._state = ConnectionState.CONNECTED
        log_connection_event(logger, "Connected", self.server, self.port)

        try:
            banner = self.reader.read_line()
            if not banner:
                self._log("Asterisk Manager header not received.")
                self._teardown()
                return False
            self.banner = banner
            self._log(f"Received header of length/{len(banner)}")

            response = self.send_request(
                ACTION_LOGIN, [("Username", username), ("Secret", secret)]
            )
        except PureAMIError as e:
            log_action_error(logger, ACTION_LOGIN, e)
            self._teardown()
            return False

        if not response.is_success:
            self._log("Failed to login.")
            self._teardown()
            return False

        self._state = ConnectionState.LOGGED_IN
        log_connection_event(logger, "Logged in", self.server, self.port)
        return True

    def disconnect(self) -> None:
        """Log off when logged in, then close the socket."""
        try:
            if self.logged_in:
                try:
                    self.send_request(ACTION_LOGOFF)
                except PureAMIError as e:
                    log_action_error(logger, ACTION_LOGOFF, e)
        finally:
            self._close_socket()
            self._state = ConnectionState.CLOSED
            log_connection_event(logger, "Disconnected", self.server, self.port)

    close = disconnect

    def _attach(self, sock: Any) -> None:
        self._sock = sock
        self.reader.attach(sock, self.server, self.port)
        self.correlator.attach(sock)

    def _close_socket(self) -> None:
        sock = self._sock
        self._sock = None
        self.reader.detach()
        self.correlator.detach()
        if sock is not None:
            sock.close()

    def _teardown(self) -> None:
        self._close_socket()
        self._state = ConnectionState.DISCONNECTED

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.disconnect()

    # Requests

    def new_action_id(self) -> str:
        """Generate a correlation identifier for a caller-built request."""
        return self.correlator.next_action_id()

    def send_request(self, action: str, parameters: Parameters = None) -> Message:
        """
        Send ``action`` with ``parameters`` and return the correlated response.

        Raises:
            NotConnectedError: No socket is open.
            ConnectionError: The socket failed.
            ReadTimeout: The stream ended before the response completed.
        """
        return self.correlator.send_request(action, parameters)

    def wait_response(
        self, allow_timeout: bool = False, action_id: Optional[str] = None
    ) -> Message:
        """Wait for the next message, or for the one correlated with ``action_id``."""
        return self.correlator.wait_response(allow_timeout, action_id)

    def read_one_message(self, allow_timeout: bool = False) -> Message:
        """Read and classify exactly one block."""
        return self.reader.read_one_message(allow_timeout)

    # Events

    def add_event_handler(self, event: str, handler: HandlerLike) -> bool:
        """Register a handler for ``event`` or ``"*"``; first registration wins."""
        return self.dispatcher.add_handler(event, handler)

    def remove_event_handler(self, event: str) -> bool:
        """Remove the handler for ``event``; False when none was registered."""
        return self.dispatcher.remove_handler(event)

    def process_event(self, message: Message) -> Any:
        """Dispatch one event message; returns the handler's result or None."""
        return self.dispatcher.dispatch(message)

    def __repr__(self) -> str:
        return f"Session(server={self.server!r}, port={self.port}, state={self._state.value})"
