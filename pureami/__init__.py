"""
pureami package init.
Exports the manager session, protocol types and logging setup.
"""

import argparse
import datetime
import json
import logging
import os
import sys
from typing import List, Optional, Tuple

from .actions import ACTIONS, ActionCatalog, ActionSpec
from .config import ManagerConfig
from .exceptions import (
    ConnectionError,
    NotConnectedError,
    ProtocolError,
    PureAMIError,
    ReadTimeout,
)
from .protocol.events import WILDCARD, CallableHandler, EventHandler
from .protocol.message import BlockType, Message
from .session import ConnectionState, Session


class JSONFormatter(logging.Formatter):
    """JSON formatter with structured logging support."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.datetime.now().isoformat(),
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        # ActionID of the request the record belongs to
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id:
            log_entry["correlation_id"] = correlation_id

        extra = getattr(record, "pureami_extra", {})
        if extra:
            log_entry.update(extra)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "WARNING") -> None:
    """
    Setup basic logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    use_json = os.environ.get("PUREAMI_LOG_JSON", "false").lower() == "true"
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    if use_json:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
    else:
        logging.basicConfig(level=getattr(logging, level.upper()))


def _parse_parameters(items: List[str]) -> List[Tuple[str, str]]:
    """Turn ``Key=Value`` arguments into ordered pairs; repeated keys repeat."""
    pairs = []
    for item in items:
        if "=" not in item:
            raise ValueError(f"Expected Key=Value, got {item!r}")
        key, value = item.split("=", 1)
        pairs.append((key.strip(), value.strip()))
    return pairs


def _format_message(message: Message) -> str:
    lines = [f"{name}: {value}" for name, value in message.pairs]
    for event in message.events or ():
        lines.append("")
        lines.extend(f"{name}: {value}" for name, value in event.pairs)
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point: log in, send one action and print the response."""
    parser = argparse.ArgumentParser(
        description="pureami - send one Asterisk Manager action"
    )
    parser.add_argument("host", help="Manager host (host or host:port)")
    parser.add_argument("action", help="Action name, e.g. Ping or QueueStatus")
    parser.add_argument(
        "params", nargs="*", default=[], help="Action headers as Key=Value"
    )
    parser.add_argument("--port", type=int, default=None, help="Port (default 5038)")
    parser.add_argument("--username", default=None, help="Login user name")
    parser.add_argument("--secret", default=None, help="Login secret")
    parser.add_argument("--json", action="store_true", help="Print the response as JSON")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    log = logging.getLogger(__name__)

    config = ManagerConfig.from_env()
    if args.port is not None:
        config.port = args.port
    if args.username is not None:
        config.username = args.username
    if args.secret is not None:
        config.secret = args.secret

    try:
        parameters = _parse_parameters(args.params)
    except ValueError as e:
        parser.error(str(e))

    session = Session(config)
    if not session.connect(args.host):
        log.error(f"Connection to {args.host} failed")
        print(f"Connection to {args.host} failed", file=sys.stderr)
        return 1
    try:
        response = session.send_request(args.action, parameters)
    except PureAMIError as e:
        print(f"Request failed: {e}", file=sys.stderr)
        return 1
    finally:
        session.disconnect()

    if args.json:
        print(json.dumps(response.to_dict(), indent=2))
    else:
        print(_format_message(response))
    return 0 if response.is_success else 1


__all__ = [
    "ACTIONS",
    "ActionCatalog",
    "ActionSpec",
    "BlockType",
    "CallableHandler",
    "ConnectionError",
    "ConnectionState",
    "EventHandler",
    "ManagerConfig",
    "Message",
    "NotConnectedError",
    "ProtocolError",
    "PureAMIError",
    "ReadTimeout",
    "Session",
    "WILDCARD",
    "main",
    "setup_logging",
]
