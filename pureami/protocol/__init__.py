"""Manager protocol engine: framing, correlation and event dispatch."""

from .correlator import ActionIDGenerator, Correlator
from .events import CallableHandler, EventDispatcher, EventHandler, WILDCARD
from .framing import FrameReader, encode_request, parse_block
from .message import BlockType, Message

__all__ = [
    "ActionIDGenerator",
    "BlockType",
    "CallableHandler",
    "Correlator",
    "EventDispatcher",
    "EventHandler",
    "FrameReader",
    "Message",
    "WILDCARD",
    "encode_request",
    "parse_block",
]
