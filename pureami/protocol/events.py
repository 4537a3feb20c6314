"""Routing of unsolicited manager events to registered handlers."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Union

from ..utils.logging_utils import LogCallback, logger_callback
from .message import Message
from .utils import HEADER_EVENT

logger = logging.getLogger(__name__)

WILDCARD = "*"


class EventHandler(ABC):
    """A capability that receives dispatched events."""

    @abstractmethod
    def handle(
        self, event: str, message: Message, server: Optional[str], port: Optional[int]
    ) -> Any:
        """
        Handle one event.

        Args:
            event: Lower-cased event name
            message: The parsed event block
            server: Host of the manager connection the event arrived on
            port: Port of that connection
        """


class CallableHandler(EventHandler):
    """Adapts a plain function or callable object to :class:`EventHandler`."""

    def __init__(self, func: Callable[..., Any]) -> None:
        if not callable(func):
            raise TypeError(f"Event handler must be callable, got {type(func).__name__}")
        self.func = func

    def handle(
        self, event: str, message: Message, server: Optional[str], port: Optional[int]
    ) -> Any:
        return self.func(event, message, server, port)

    def __repr__(self) -> str:
        name = getattr(self.func, "__qualname__", repr(self.func))
        return f"CallableHandler({name})"


HandlerLike = Union[EventHandler, Callable[..., Any]]


def as_handler(handler: HandlerLike) -> EventHandler:
    """Wrap callables so the registry only ever holds EventHandler instances."""
    if isinstance(handler, EventHandler):
        return handler
    return CallableHandler(handler)


class EventDispatcher:
    """
    Registry of event handlers keyed by lower-cased event name.

    The wildcard key ``"*"`` lives in the same registry and is consulted
    only when no exact handler matches. Handlers run synchronously on the
    caller's stack and their exceptions propagate to the caller.

    Registry and dispatch messages go through ``log``, called as
    ``log(message, log_level=...)``; a session passes its own log so an
    attached reporter receives them.
    """

    def __init__(
        self,
        server: Optional[str] = None,
        port: Optional[int] = None,
        log: Optional[LogCallback] = None,
    ):
        self.server = server
        self.port = port
        self._log = log or logger_callback(logger)
        self._handlers: Dict[str, EventHandler] = {}

    def add_handler(self, event: str, handler: HandlerLike) -> bool:
        """
        Register ``handler`` for ``event`` (or ``"*"``).

        Returns:
            False when a handler is already registered for that key; the
            existing one is kept.
        """
        key = event.lower()
        if key in self._handlers:
            self._log(f"{key} handler is already defined, not over-writing.")
            return False
        self._handlers[key] = as_handler(handler)
        logger.debug(f"Registered {key} handler")
        return True

    def remove_handler(self, event: str) -> bool:
        """Remove the handler for ``event``; False when none was registered."""
        key = event.lower()
        if key in self._handlers:
            del self._handlers[key]
            return True
        self._log(f"{key} handler is not defined.")
        return False

    def has_handler(self, event: str) -> bool:
        return event.lower() in self._handlers

    def lookup(self, event: str) -> Optional[EventHandler]:
        """Exact handler for ``event``, falling back to the wildcard."""
        key = event.lower()
        handler = self._handlers.get(key)
        if handler is None:
            handler = self._handlers.get(WILDCARD)
        return handler

    def dispatch(self, message: Message) -> Any:
        """
        Route one event message to its handler.

        Returns:
            The handler's result, or None when no handler matched.
        """
        event = (message.get(HEADER_EVENT) or "").lower()
        self._log(f"Got event.. {event}")
        handler = self.lookup(event)
        if handler is None:
            self._log(f"No event handler for event '{event}'")
            return None
        self._log(f"Execute handler {handler!r}")
        return handler.handle(event, message, self.server, self.port)

    def __len__(self) -> int:
        return len(self._handlers)
