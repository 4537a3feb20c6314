"""Connection settings consumed by the manager session."""

import os
from typing import Mapping, Optional, Tuple

from .protocol.correlator import DEFAULT_MAX_LIST_MESSAGES
from .protocol.utils import DEFAULT_PORT

_TRUE_VALUES = ("true", "1", "yes", "on")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _parse_port(value: str) -> int:
    port = int(value)
    if not 0 < port < 65536:
        raise ValueError(f"Port out of range: {port}")
    return port


def _parse_timeout(value: str) -> Optional[float]:
    value = value.strip()
    if not value or value.lower() == "none":
        return None
    return float(value)


class ManagerConfig:
    """Configuration for one manager connection."""

    def __init__(
        self,
        server: str = "localhost",
        port: int = DEFAULT_PORT,
        username: Optional[str] = None,
        secret: Optional[str] = None,
        write_log: bool = False,
        connect_timeout: Optional[float] = None,
        read_timeout: Optional[float] = None,
        max_list_messages: int = DEFAULT_MAX_LIST_MESSAGES,
    ):
        """
        Initialize connection configuration.

        Args:
            server: Host name, optionally ``host:port``
            port: Port used when ``server`` carries none
            username: Login user name
            secret: Login secret
            write_log: Promote session log lines from DEBUG to INFO
            connect_timeout: Socket connect timeout in seconds (None blocks)
            read_timeout: Socket read timeout in seconds (None blocks)
            max_list_messages: Upper bound on records collected for one event list
        """
        self.server = server
        self.port = int(port)
        self.username = username
        self.secret = secret
        self.write_log = write_log
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.max_list_messages = max_list_messages

    def split_server(self, server: Optional[str] = None) -> Tuple[str, int]:
        """
        Resolve ``server`` (or the configured one) into ``(host, port)``.

        A ``host:port`` value overrides the configured port. IPv6 literals
        are accepted bare (``::1``) or bracketed (``[::1]:5038``).

        Raises:
            ValueError: The port part is empty, not a number or out of range.
        """
        server = server if server is not None else self.server
        if server.startswith("["):
            host, _, rest = server[1:].partition("]")
            if not rest:
                return host, self.port
            if not rest.startswith(":"):
                raise ValueError(f"Malformed manager address {server!r}")
            return host, _parse_port(rest[1:])
        if server.count(":") == 1:
            host, _, port = server.rpartition(":")
            return host, _parse_port(port)
        return server, self.port

    @classmethod
    def from_env(
        cls, prefix: str = "PUREAMI_", environ: Optional[Mapping[str, str]] = None
    ) -> "ManagerConfig":
        """Build a configuration from ``<prefix>SERVER``, ``<prefix>PORT``, etc."""
        env = os.environ if environ is None else environ
        kwargs = {}
        if f"{prefix}SERVER" in env:
            kwargs["server"] = env[f"{prefix}SERVER"]
        if f"{prefix}PORT" in env:
            kwargs["port"] = int(env[f"{prefix}PORT"])
        if f"{prefix}USERNAME" in env:
            kwargs["username"] = env[f"{prefix}USERNAME"]
        if f"{prefix}SECRET" in env:
            kwargs["secret"] = env[f"{prefix}SECRET"]
        if f"{prefix}WRITE_LOG" in env:
            kwargs["write_log"] = _parse_bool(env[f"{prefix}WRITE_LOG"])
        if f"{prefix}CONNECT_TIMEOUT" in env:
            kwargs["connect_timeout"] = _parse_timeout(env[f"{prefix}CONNECT_TIMEOUT"])
        if f"{prefix}READ_TIMEOUT" in env:
            kwargs["read_timeout"] = _parse_timeout(env[f"{prefix}READ_TIMEOUT"])
        return cls(**kwargs)

    def __repr__(self) -> str:
        secret = "***" if self.secret else None
        return (
            f"ManagerConfig(server={self.server!r}, port={self.port}, "
            f"username={self.username!r}, secret={secret!r}, "
            f"write_log={self.write_log})"
        )
