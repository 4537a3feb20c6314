"""Wire constants and small helpers for the Asterisk Manager protocol."""

from typing import Any

# Line and block terminators
CRLF = b"\r\n"
LF = b"\n"
BLOCK_TERMINATOR = CRLF + CRLF

ENCODING = "utf-8"

DEFAULT_PORT = 5038
READ_CHUNK_SIZE = 4096

# Well-known header names
HEADER_ACTION = "Action"
HEADER_ACTION_ID = "ActionID"
HEADER_RESPONSE = "Response"
HEADER_EVENT = "Event"
HEADER_EVENT_LIST = "EventList"
HEADER_MESSAGE = "Message"

# Header values
RESPONSE_SUCCESS = "Success"
EVENT_LIST_START = "start"
EVENT_LIST_COMPLETE = "Complete"

# Actions issued by the engine itself
ACTION_LOGIN = "login"
ACTION_LOGOFF = "logoff"


def format_value(value: Any) -> str:
    """Render a parameter value the way the manager expects it on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def same_header(a: str, b: str) -> bool:
    """Header names compare case-insensitively."""
    return a.lower() == b.lower()
